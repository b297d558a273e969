"""Local music library: walks and clears directories on the filesystem.

A directory listing contains sub-directories and files whose extension
the music daemon can decode.  Everything else is ignored::

    <directory>/
        Album A/            -> Directory("<directory>/Album A")
        01 - First.mp3      -> Song("<directory>/01 - First.mp3")
        cover.jpg           -> (skipped)
        .hidden/            -> (skipped unless hidden files are shown)

In recursive mode sub-directories are descended into in place, so the
result contains songs only.  Each directory's own entries are sorted when
that directory is finished; the combined result is not re-sorted.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Iterable

from musikbrowse.items import Directory, Item, Song, sort_items

log = logging.getLogger(__name__)


class SupportedExtensions:
    """Lazily fetched set of decodable file extensions (without dots).

    The set is requested from *fetch* on first use and kept for the
    lifetime of the holder.  An empty answer is not kept, so a failed
    first request is retried next time.
    """

    def __init__(self, fetch: Callable[[], Iterable[str]]) -> None:
        self._fetch = fetch
        self._extensions: frozenset[str] | None = None

    def get(self) -> frozenset[str]:
        if self._extensions is None:
            extensions = frozenset(ext.lower().lstrip(".") for ext in self._fetch())
            if not extensions:
                return extensions
            log.debug("Supported extensions: %s", ", ".join(sorted(extensions)))
            self._extensions = extensions
        return self._extensions

    def matches(self, filename: str) -> bool:
        _, dot, ext = filename.rpartition(".")
        if not dot:
            return False
        return ext.lower() in self.get()


class LocalLibrary:
    """Read-only view on a directory tree of audio files."""

    def __init__(
        self,
        extensions: SupportedExtensions,
        *,
        show_hidden: bool = False,
        read_tags: Callable[[Song], None] | None = None,
    ) -> None:
        self._extensions = extensions
        self._show_hidden = show_hidden
        self._read_tags = read_tags

    def walk(self, directory: str, recursive: bool = False) -> list[Item]:
        """Return the entries of *directory*.

        A directory that cannot be opened yields an empty list.
        """
        result: list[Item] = []
        self._walk(Path(directory), result, recursive)
        return result

    def _walk(self, directory: Path, out: list[Item], recursive: bool) -> None:
        try:
            entries = list(directory.iterdir())
        except OSError as exc:
            log.warning("Cannot list %s: %s", directory, exc)
            return

        batch_start = len(out)
        for entry in entries:
            if entry.name.startswith(".") and not self._show_hidden:
                continue
            if entry.is_dir():
                if recursive:
                    self._walk(entry, out, True)
                    batch_start = len(out)
                else:
                    out.append(Directory(str(entry)))
            elif self._extensions.matches(entry.name):
                song = Song(str(entry), from_database=False)
                if not recursive and self._read_tags is not None:
                    self._read_tags(song)
                out.append(song)
        out[batch_start:] = sort_items(out[batch_start:])


# -- deleting ----------------------------------------------------------------


def _is_real_dir(path: Path) -> bool:
    return path.is_dir() and not path.is_symlink()


def _remove(path: Path, report: Callable[[str], None]) -> bool:
    try:
        if _is_real_dir(path):
            path.rmdir()
        else:
            path.unlink()
    except OSError as exc:
        log.debug("Removing %s failed: %s", path, exc)
        report(f'Couldn\'t remove "{path}": {exc.strerror or exc}')
        return False
    report(f'Deleting "{path}"...')
    return True


def clear_directory(path: Path | str, report: Callable[[str], None]) -> None:
    """Remove everything below *path*, leaving *path* itself in place.

    Sub-directories are cleared before they are removed.  Failures are
    reported and the remaining siblings are still attempted.
    """
    path = Path(path)
    try:
        entries = sorted(
            path.iterdir(),
            key=lambda e: (not _is_real_dir(e), e.name.casefold()),
        )
    except OSError as exc:
        log.warning("Cannot list %s: %s", path, exc)
        return

    for entry in entries:
        if _is_real_dir(entry):
            clear_directory(entry, report)
        _remove(entry, report)


def delete_tree(
    path: Path | str, is_directory: bool, report: Callable[[str], None]
) -> bool:
    """Delete *path*, clearing it first when it is a directory.

    Only the removal of *path* itself decides the result.
    """
    path = Path(path)
    if is_directory:
        clear_directory(path, report)
    return _remove(path, report)
