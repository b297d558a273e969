"""Music Player Daemon access through python-mpd2.

:class:`LibraryClient` answers directory, playlist and decoder queries
against the daemon's database.  :class:`MPDQueue` is the daemon's play
queue, seen through the small contract the browser needs.

Protocol and transport errors are logged, reported on the status channel
and turned into empty results or ``False``.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Callable

from mpd import MPDClient, MPDError

from musikbrowse.items import Directory, Item, Playlist, Song
from musikbrowse.library import delete_tree

log = logging.getLogger(__name__)

# lsinfo keys that describe the entry rather than tag it.
_NON_TAG_KEYS = frozenset({"file", "directory", "playlist", "last-modified", "format", "duration", "time"})

_FAILED = object()


def _first(value: Any) -> str:
    # python-mpd2 returns a list when a tag occurs more than once.
    if isinstance(value, list):
        return str(value[0]) if value else ""
    return str(value)


def _strip_file_scheme(uri: str) -> str:
    return uri[len("file://"):] if uri.startswith("file://") else uri


def song_from_entry(entry: dict[str, Any]) -> Song:
    uri = _strip_file_scheme(_first(entry["file"]))
    tags = {
        key: _first(value)
        for key, value in entry.items()
        if key not in _NON_TAG_KEYS
    }
    last_modified = entry.get("last-modified")
    return Song(
        uri,
        tags=tags,
        from_database=not uri.startswith("/"),
        last_modified=_first(last_modified) if last_modified else None,
    )


def item_from_entry(entry: dict[str, Any]) -> Item | None:
    """Convert one ``lsinfo`` entry; unknown entry types give ``None``."""
    if "file" in entry:
        return song_from_entry(entry)
    if "directory" in entry:
        return Directory("/" + _first(entry["directory"]).strip("/"))
    if "playlist" in entry:
        return Playlist(_first(entry["playlist"]))
    return None


def service_path(path: str) -> str:
    """Translate a browser path (``/a/b``) into a database path (``a/b``)."""
    return path.strip("/")


class _Commands:
    """Runs daemon commands, absorbing failures."""

    def __init__(self, client: MPDClient, on_status: Callable[[str], None] | None) -> None:
        self._client = client
        self._on_status = on_status

    def _report(self, message: str) -> None:
        if self._on_status is not None:
            self._on_status(message)

    def _run(self, description: str, command: str, *args: Any) -> Any:
        try:
            return getattr(self._client, command)(*args)
        except (MPDError, OSError) as exc:
            log.warning("%s failed: %s", description, exc)
            self._report(f"{description} failed: {exc}")
            return _FAILED


class LibraryClient(_Commands):
    """The daemon's music database."""

    def __init__(
        self,
        client: MPDClient,
        *,
        host: str = "localhost",
        music_dir: str | None = None,
        on_status: Callable[[str], None] | None = None,
    ) -> None:
        super().__init__(client, on_status)
        self._host = host
        self._music_dir = music_dir

    @classmethod
    def connect(
        cls,
        host: str,
        port: int = 6600,
        *,
        music_dir: str | None = None,
        timeout: float = 10,
        on_status: Callable[[str], None] | None = None,
    ) -> LibraryClient:
        """Connect to the daemon at *host* (a UNIX socket when it starts with ``/``)."""
        client = MPDClient()
        client.timeout = timeout
        client.connect(host, port)
        log.info("Connected to MPD %s at %s", client.mpd_version, host)
        return cls(client, host=host, music_dir=music_dir, on_status=on_status)

    @property
    def mpd(self) -> MPDClient:
        return self._client

    def is_local_transport(self) -> bool:
        return self._host.startswith("/")

    # -- listing -------------------------------------------------------------

    def list_directory(self, path: str) -> list[Item]:
        target = service_path(path)
        args = (target,) if target else ()
        entries = self._run(f'Listing "{path or "/"}"', "lsinfo", *args)
        if entries is _FAILED:
            return []
        items = (item_from_entry(entry) for entry in entries)
        return [item for item in items if item is not None]

    def list_directory_recursive(self, path: str) -> list[Song]:
        target = service_path(path)
        args = (target,) if target else ()
        entries = self._run(f'Listing "{path or "/"}"', "listallinfo", *args)
        if entries is _FAILED:
            return []
        return [song_from_entry(entry) for entry in entries if "file" in entry]

    # -- playlists -----------------------------------------------------------

    def load_playlist(self, name: str) -> bool:
        return self._run(f'Loading playlist "{name}"', "load", name) is not _FAILED

    def get_playlist_contents(self, name: str) -> list[Song]:
        entries = self._run(f'Reading playlist "{name}"', "listplaylistinfo", name)
        if entries is _FAILED:
            return []
        return [song_from_entry(entry) for entry in entries if "file" in entry]

    def delete_playlist(self, name: str) -> bool:
        return self._run(f'Deleting playlist "{name}"', "rm", name) is not _FAILED

    # -- files ---------------------------------------------------------------

    def add_entry(self, path: str) -> bool:
        return self._run(f'Adding "{path}"', "add", service_path(path)) is not _FAILED

    def delete_entry(
        self, path: str, is_directory: bool, report: Callable[[str], None]
    ) -> bool:
        """Delete a database entry's file (or directory tree) from disk."""
        root = self.music_directory_root()
        if not root:
            report(f'Couldn\'t remove "{path}": music directory is unknown')
            return False
        return delete_tree(os.path.join(root, service_path(path)), is_directory, report)

    def music_directory_root(self) -> str:
        """Return the library's music directory, asking the daemon if unset."""
        if self._music_dir is None:
            config = self._run("Reading music directory", "config")
            if config is _FAILED or not isinstance(config, dict):
                return ""
            self._music_dir = _first(config.get("music_directory", ""))
        return self._music_dir

    def get_supported_extensions(self) -> set[str]:
        decoders = self._run("Reading decoder list", "decoders")
        if decoders is _FAILED:
            return set()
        extensions: set[str] = set()
        for plugin in decoders:
            suffixes = plugin.get("suffix", [])
            if isinstance(suffixes, str):
                suffixes = [suffixes]
            extensions.update(s.lower() for s in suffixes)
        return extensions


class MPDQueue(_Commands):
    """The daemon's play queue.

    Queue membership is tracked as a set of content hashes rebuilt from
    ``playlistinfo`` after every change made through this object.  Changes
    made elsewhere (``load``, ``add``, other clients) are only seen after
    :meth:`refresh`, which also records the length that
    :meth:`play_newly_added` starts from.
    """

    def __init__(
        self, client: MPDClient, *, on_status: Callable[[str], None] | None = None
    ) -> None:
        super().__init__(client, on_status)
        self._hashes: set[str] | None = None
        self._length = 0

    def refresh(self) -> None:
        entries = self._run("Reading queue", "playlistinfo")
        if entries is _FAILED:
            entries = []
        self._hashes = {song_from_entry(e).hash for e in entries if "file" in e}
        self._length = len(entries)

    def contains_hash(self, song_hash: str) -> bool:
        if self._hashes is None:
            self.refresh()
        return song_hash in self._hashes  # type: ignore[operator]

    def _ids_of(self, song: Song) -> list[str]:
        entries = self._run("Reading queue", "playlistinfo")
        if entries is _FAILED:
            return []
        return [
            e["id"]
            for e in entries
            if "file" in e and song_from_entry(e).hash == song.hash
        ]

    def add(self, song: Song, already_queued: bool, play_now: bool) -> bool:
        """Add *song*, or toggle it off when it is already queued.

        Returns whether the song is in the queue afterwards.
        """
        if already_queued:
            ids = self._ids_of(song)
            if play_now and ids:
                return self._run(f'Playing "{song.uri}"', "playid", ids[0]) is not _FAILED
            if not play_now:
                results = [
                    self._run(f'Removing "{song.uri}"', "deleteid", song_id) is not _FAILED
                    for song_id in ids
                ]
                self.refresh()
                return not all(results)

        song_id = self._run(f'Adding "{song.uri}"', "addid", song.uri)
        if song_id is _FAILED:
            return False
        if play_now:
            self._run(f'Playing "{song.uri}"', "playid", song_id)
        self.refresh()
        return True

    def play_newly_added(self) -> None:
        """Start playing the first entry added since the last refresh."""
        previous = self._length
        self.refresh()
        if self._length > previous:
            self._run("Starting playback", "play", previous)
