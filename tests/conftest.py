"""Shared fakes for the library service and the play queue."""

from __future__ import annotations

from typing import Callable

import pytest

from musikbrowse.config import Config
from musikbrowse.items import Item, Song
from musikbrowse.session import BrowserSession


class FakeService:
    """In-memory music database keyed by browser paths (``/a/b``)."""

    def __init__(
        self,
        *,
        local_transport: bool = False,
        extensions: set[str] | None = None,
    ) -> None:
        self.directories: dict[str, list[Item]] = {}
        self.recursive: dict[str, list[Song]] = {}
        self.playlists: dict[str, list[Song]] = {}
        self.local_transport = local_transport
        self.extensions = extensions if extensions is not None else {"mp3", "flac"}
        self.extension_requests = 0
        self.loaded: list[str] = []
        self.added: list[str] = []
        self.deleted_playlists: list[str] = []
        self.deleted_entries: list[tuple[str, bool]] = []
        self.fail = False

    def list_directory(self, path: str) -> list[Item]:
        return list(self.directories.get(path, []))

    def list_directory_recursive(self, path: str) -> list[Song]:
        return list(self.recursive.get(path, []))

    def load_playlist(self, name: str) -> bool:
        self.loaded.append(name)
        return not self.fail

    def get_playlist_contents(self, name: str) -> list[Song]:
        return list(self.playlists.get(name, []))

    def delete_playlist(self, name: str) -> bool:
        self.deleted_playlists.append(name)
        return not self.fail

    def delete_entry(
        self, path: str, is_directory: bool, report: Callable[[str], None]
    ) -> bool:
        self.deleted_entries.append((path, is_directory))
        return not self.fail

    def add_entry(self, path: str) -> bool:
        self.added.append(path)
        return not self.fail

    def get_supported_extensions(self) -> set[str]:
        self.extension_requests += 1
        return set(self.extensions)

    def is_local_transport(self) -> bool:
        return self.local_transport

    def music_directory_root(self) -> str:
        return ""


class FakeQueue:
    """Play queue that remembers content hashes."""

    def __init__(self, songs: list[Song] | None = None) -> None:
        self.hashes = {song.hash for song in songs or []}
        self.calls: list[tuple[str, bool, bool]] = []
        self.rejected: set[str] = set()
        self.played_new = 0
        self.refreshes = 0

    def refresh(self) -> None:
        self.refreshes += 1

    def contains_hash(self, song_hash: str) -> bool:
        return song_hash in self.hashes

    def add(self, song: Song, already_queued: bool, play_now: bool) -> bool:
        self.calls.append((song.uri, already_queued, play_now))
        if song.uri in self.rejected:
            return False
        if already_queued and not play_now:
            self.hashes.discard(song.hash)
            return False
        self.hashes.add(song.hash)
        return True

    def play_newly_added(self) -> None:
        self.played_new += 1


@pytest.fixture()
def service() -> FakeService:
    return FakeService()


@pytest.fixture()
def queue() -> FakeQueue:
    return FakeQueue()


@pytest.fixture()
def messages() -> list[str]:
    return []


@pytest.fixture()
def make_session(service, queue, messages):
    """Build a session over the fake service and queue."""

    def _make(config: Config | None = None, **kwargs) -> BrowserSession:
        return BrowserSession(
            service, queue, config, on_status=messages.append, **kwargs
        )

    return _make
