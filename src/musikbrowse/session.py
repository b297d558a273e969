"""Browsing session state machine.

States
------
The session state is the pair ``(mode, current_path)``:

- REMOTE, ``/``       : root of the daemon's music database (initial state).
- REMOTE, ``/a/b``    : a database sub-directory.
- LOCAL, ``/home/me`` : a directory on the local filesystem.

``current_path`` always starts with ``/``.  Every path other than ``/``
gets a synthetic ``..`` row at the top of its listing.

Transitions
-----------
navigate(path)       -> (mode, path)       rebuilds the listing
enter() on ``..``    -> (mode, parent)     cursor lands on the directory left
enter() on directory -> (mode, directory)
toggle_mode()        -> (LOCAL, home) or (REMOTE, ``/``)
                        requires a UNIX socket connection to the daemon
locate(song)         -> (song's origin, song's directory)

All other operations (queueing, selecting, filtering, searching,
deleting) leave the state unchanged.  Failures never raise: they are
reported on the status channel and show up as ``False`` or empty results.
"""

from __future__ import annotations

import logging
from enum import Enum, auto
from typing import Callable, assert_never

from musikbrowse import selection
from musikbrowse.backends import (
    ActiveQueue,
    Backend,
    LibraryService,
    LocalBackend,
    RemoteBackend,
)
from musikbrowse.config import Config
from musikbrowse.items import (
    Directory,
    Item,
    Playlist,
    Song,
    item_name,
    is_parent_directory,
    parent_directory,
    sort_items,
)
from musikbrowse.library import LocalLibrary, SupportedExtensions, delete_tree
from musikbrowse.matching import PatternError, compile_matcher, entry_matches
from musikbrowse.view import ListView, Row

log = logging.getLogger(__name__)

_LOCAL_REQUIRES_SOCKET = (
    "For browsing local filesystem connection to MPD via UNIX Socket is required"
)


class Mode(Enum):
    REMOTE = auto()
    LOCAL = auto()


def normalize_path(path: str) -> str:
    """Return *path* with a leading ``/`` and no trailing one."""
    stripped = path.strip("/")
    return "/" + stripped if stripped else "/"


def parent_path(path: str) -> str:
    slash = path.rfind("/")
    return path[:slash] if slash > 0 else "/"


class BrowserSession:
    """Browses the music database or the local filesystem."""

    def __init__(
        self,
        service: LibraryService,
        queue: ActiveQueue,
        config: Config | None = None,
        *,
        view: ListView | None = None,
        read_tags: Callable[[Song], None] | None = None,
        on_status: Callable[[str], None] | None = None,
    ) -> None:
        self._service = service
        self._queue = queue
        self._config = config if config is not None else Config()
        self._view = view if view is not None else ListView()
        self._on_status = on_status
        self._filter = ""

        library = LocalLibrary(
            SupportedExtensions(service.get_supported_extensions),
            show_hidden=self._config.show_hidden_files,
            read_tags=read_tags,
        )
        self._local = LocalBackend(library, lambda: self._current_path)
        self._remote = RemoteBackend(service)

        self._mode = Mode.REMOTE
        self._current_path = "/"
        if self._config.start_local and service.is_local_transport():
            self._mode = Mode.LOCAL
            self._current_path = self._config.home_directory()

    # -- public properties ---------------------------------------------------

    @property
    def mode(self) -> Mode:
        return self._mode

    @property
    def is_local(self) -> bool:
        return self._mode is Mode.LOCAL

    @property
    def current_path(self) -> str:
        return self._current_path

    @property
    def current_filter(self) -> str:
        return self._filter

    @property
    def view(self) -> ListView:
        return self._view

    @property
    def config(self) -> Config:
        return self._config

    @property
    def sort_mode(self) -> str:
        # Local listings carry no modification times.
        return "name" if self.is_local else self._config.sort_mode

    @property
    def _backend(self) -> Backend:
        return self._local if self.is_local else self._remote

    def _report(self, message: str) -> None:
        if self._on_status is not None:
            self._on_status(message)
        else:
            log.info(message)

    # -- listing -------------------------------------------------------------

    def show(self) -> None:
        """Build the listing on first display, otherwise refresh highlights."""
        if self._view.empty():
            self.navigate(self._current_path)
        else:
            self.refresh_highlights()

    def navigate(self, path: str, subdir: str = "") -> None:
        """Replace the listing with the contents of *path*.

        If one of the new rows is named *subdir* the cursor is put on it,
        which keeps the user's place when going back up a level.
        """
        path = normalize_path(path)
        self._view.scroll_offset = 0
        if path != self._current_path:
            self._view.reset_cursor()
        self._current_path = path
        self._filter = ""

        self._view.clear()
        if path != "/":
            self._view.add_row(parent_directory())

        items = self._backend.list(path)
        self._queue.refresh()
        if not self._backend.is_local:
            items = sort_items(items, self.sort_mode)

        highlight = -1
        for item in items:
            match item:
                case Directory() | Playlist():
                    if subdir and item.name == subdir:
                        highlight = self._view.size()
                    self._view.add_row(item)
                case Song():
                    self._view.add_row(
                        item, highlighted=self._queue.contains_hash(item.hash)
                    )
                case _:
                    assert_never(item)

        if highlight >= 0:
            self._view.move_cursor_to(highlight)
        else:
            self._view.move_cursor_to(self._view.cursor_index())
        log.debug("Listed %s: %d rows", path, self._view.size())

    def refresh_highlights(self) -> None:
        """Re-read the queue and re-check membership of every song row."""
        self._queue.refresh()
        for row in self._view.all_rows():
            if isinstance(row.item, Song):
                row.highlighted = self._queue.contains_hash(row.item.hash)

    def current_song(self) -> Song | None:
        row = self._view.current()
        if row is not None and isinstance(row.item, Song):
            return row.item
        return None

    # -- entering and queueing -----------------------------------------------

    def enter(self) -> None:
        """Open the row under the cursor.

        Directories are navigated into, songs are toggled in the queue
        and played, playlists are loaded and played.
        """
        row = self._view.current()
        if row is None:
            return
        item = row.item
        match item:
            case Directory():
                if row.is_parent:
                    self.navigate(parent_path(self._current_path), self._current_path)
                else:
                    self.navigate(item.name, self._current_path)
            case Song():
                row.highlighted = self._queue.add(item, row.highlighted, True)
            case Playlist():
                self._queue.refresh()
                if self._service.load_playlist(item.name):
                    self._report(f'Playlist "{item.name}" loaded')
                    self._queue.play_newly_added()
                    self.refresh_highlights()
            case _:
                assert_never(item)

    def add_to_queue(self, append: bool = True) -> bool:
        """Queue the row under the cursor without navigating.

        With ``append=False`` the added entries also start playing.
        Directories are added as a whole; the result is a single success
        flag for the batch.  The cursor then moves down one row.
        """
        row = self._view.current()
        if row is None or row.is_parent:
            return False
        result = self._add_row(row, play_now=not append)
        self._view.scroll_down()
        return result

    def _add_row(self, row: Row, play_now: bool) -> bool:
        item = row.item
        match item:
            case Directory():
                if self.is_local:
                    self._report(f'Scanning directory "{item.name}"...')
                    result = self._add_songs(self._local.list_recursive(item.name))
                else:
                    result = self._service.add_entry(item.name)
                if result:
                    self._report(f'Directory "{item.name}" added')
                self.refresh_highlights()
                return result
            case Song():
                row.highlighted = self._queue.add(item, row.highlighted, play_now)
                return row.highlighted
            case Playlist():
                self._queue.refresh()
                if not self._service.load_playlist(item.name):
                    return False
                self._report(f'Playlist "{item.name}" loaded')
                if play_now:
                    self._queue.play_newly_added()
                self.refresh_highlights()
                return True
            case _:
                assert_never(item)

    def _add_songs(self, songs: list[Song]) -> bool:
        results = []
        for song in songs:
            added = self._queue.add(song, False, False)
            if not added:
                self._report(f'Couldn\'t add "{song.uri}"')
            results.append(added)
        return bool(results) and all(results)

    # -- selection -----------------------------------------------------------

    def toggle_selection(self) -> bool:
        """Toggle the row under the cursor and move to the next row."""
        if self._view.empty():
            return False
        changed = selection.toggle(self._view, self._view.cursor_index())
        self._view.scroll_down()
        return changed

    def reverse_selection(self) -> None:
        selection.reverse_selection(self._view)

    def expand_selection(self) -> list[Song]:
        """Return the songs behind the selected rows (or the cursor row)."""
        return selection.expand_selection(
            self._view,
            self._backend.list_recursive,
            self._service.get_playlist_contents,
        )

    # -- filtering and searching ---------------------------------------------

    def apply_filter(self, pattern: str) -> bool:
        """Show only the rows matching *pattern*; an empty pattern shows all."""
        self._view.show_all()
        self._filter = ""
        if not pattern:
            return True
        try:
            matcher = compile_matcher(pattern, self._config.regex_type)
        except PatternError as exc:
            self._report(str(exc))
            return False
        self._view.set_visibility_mask(
            lambda row: entry_matches(matcher, row.item, True, self._config)
        )
        self._filter = pattern
        return True

    def search(self, pattern: str) -> bool:
        """Mark the rows matching *pattern* for next/previous navigation."""
        if self._view.empty() or not pattern:
            return False
        try:
            matcher = compile_matcher(pattern, self._config.regex_type)
        except PatternError as exc:
            self._report(str(exc))
            return False
        found = self._view.mark_search_hits(
            lambda row: entry_matches(matcher, row.item, False, self._config)
        )
        if not found:
            self._report("Nothing found")
        return found

    def next_found(self, wrap: bool) -> bool:
        if not self._view.next_found(wrap):
            self._report("No match")
            return False
        return True

    def prev_found(self, wrap: bool) -> bool:
        if not self._view.prev_found(wrap):
            self._report("No match")
            return False
        return True

    # -- deleting ------------------------------------------------------------

    def delete(self) -> bool:
        """Delete the entry under the cursor and rebuild the listing."""
        row = self._view.current()
        if row is None:
            return False
        return self.delete_item(row.item)

    def delete_item(self, item: Item) -> bool:
        """Delete *item*; directories are cleared first.

        Every removal is reported on its own.  The result reflects only
        the removal of *item* itself.
        """
        if is_parent_directory(item):
            return False

        if not self.is_local and isinstance(item, Playlist) and self._current_path == "/":
            deleted = self._service.delete_playlist(item.name)
            if deleted:
                self._report(f'Playlist "{item.name}" deleted')
        else:
            is_directory = isinstance(item, Directory)
            path = item_name(item)
            if self.is_local:
                deleted = delete_tree(path, is_directory, self._report)
            else:
                deleted = self._service.delete_entry(path, is_directory, self._report)

        if deleted:
            self.navigate(self._current_path)
        return deleted

    # -- mode and locating ---------------------------------------------------

    def toggle_mode(self) -> bool:
        """Switch between the music database and the local filesystem."""
        if not self._service.is_local_transport():
            self._report(_LOCAL_REQUIRES_SOCKET)
            return False

        self._mode = Mode.REMOTE if self.is_local else Mode.LOCAL
        self._report(
            "Browse mode: "
            + ("Local filesystem" if self.is_local else "MPD database")
        )
        self._current_path = (
            self._config.home_directory() if self.is_local else "/"
        )
        self._view.reset_cursor()
        self.navigate(self._current_path)
        return True

    def locate(self, song: Song) -> bool:
        """Show *song* in its directory, switching mode to where it came from.

        Returns whether the song's row was found.
        """
        if not song.directory:
            return False

        self._mode = Mode.REMOTE if song.from_database else Mode.LOCAL
        self.navigate(song.directory)
        for index, row in enumerate(self._view):
            if isinstance(row.item, Song) and row.item.hash == song.hash:
                self._view.move_cursor_to(index)
                return True
        return False
