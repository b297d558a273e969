"""Sources of directory listings, and the collaborators the browser talks to.

The browser only sees the :class:`Backend` contract.  Which implementation
is active depends on the session's browse mode.
"""

from __future__ import annotations

from typing import Callable, Protocol

from musikbrowse.items import Item, Song
from musikbrowse.library import LocalLibrary


class LibraryService(Protocol):
    """The remote media library (see :class:`musikbrowse.remote.LibraryClient`)."""

    def list_directory(self, path: str) -> list[Item]: ...

    def list_directory_recursive(self, path: str) -> list[Song]: ...

    def load_playlist(self, name: str) -> bool: ...

    def get_playlist_contents(self, name: str) -> list[Song]: ...

    def delete_playlist(self, name: str) -> bool: ...

    def delete_entry(
        self, path: str, is_directory: bool, report: Callable[[str], None]
    ) -> bool: ...

    def add_entry(self, path: str) -> bool: ...

    def get_supported_extensions(self) -> set[str]: ...

    def is_local_transport(self) -> bool: ...

    def music_directory_root(self) -> str: ...


class ActiveQueue(Protocol):
    """The externally owned play queue."""

    def refresh(self) -> None: ...

    def contains_hash(self, song_hash: str) -> bool: ...

    def add(self, song: Song, already_queued: bool, play_now: bool) -> bool: ...

    def play_newly_added(self) -> None: ...


class Backend(Protocol):
    is_local: bool

    def list(self, path: str) -> list[Item]: ...

    def list_recursive(self, path: str) -> list[Song]: ...


class RemoteBackend:
    """Listings from the library service, in the order it returns them."""

    is_local = False

    def __init__(self, service: LibraryService) -> None:
        self._service = service

    def list(self, path: str) -> list[Item]:
        return self._service.list_directory(path)

    def list_recursive(self, path: str) -> list[Song]:
        return self._service.list_directory_recursive(path)


class LocalBackend:
    """Listings walked from the local filesystem, already sorted."""

    is_local = True

    def __init__(self, library: LocalLibrary, current_path: Callable[[], str]) -> None:
        self._library = library
        self._current_path = current_path

    def list(self, path: str) -> list[Item]:
        return self._library.walk(path or self._current_path())

    def list_recursive(self, path: str) -> list[Song]:
        items = self._library.walk(path or self._current_path(), recursive=True)
        return [item for item in items if isinstance(item, Song)]
