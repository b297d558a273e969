"""Browsable entries: directories, songs and saved playlists.

An :data:`Item` is exactly one of :class:`Directory`, :class:`Song` or
:class:`Playlist`.  Consumers dispatch with ``match`` and close the match
with :func:`typing.assert_never`, so adding a fourth kind fails loudly.

Songs are shared between a listing and the active queue.  They are
compared by :attr:`Song.hash`, never by identity.
"""

from __future__ import annotations

import hashlib
import posixpath
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Iterable, Literal, Union, assert_never

PARENT_DIRECTORY = ".."


class ItemKind(Enum):
    # Values give the grouping order used when sorting a listing.
    DIRECTORY = 0
    SONG = 1
    PLAYLIST = 2


@dataclass(frozen=True)
class Directory:
    name: str

    @property
    def kind(self) -> ItemKind:
        return ItemKind.DIRECTORY


@dataclass(frozen=True)
class Playlist:
    name: str

    @property
    def kind(self) -> ItemKind:
        return ItemKind.PLAYLIST


class _BlankTags(dict):
    def __missing__(self, key: str) -> str:
        return ""


@dataclass
class Song:
    """A playable file.

    ``uri`` is relative to the library root for songs coming from the
    remote library and an absolute path for local files.  ``tags`` may be
    filled in later by metadata enrichment; the content hash depends on
    the URI only, so enrichment never changes queue membership.
    """

    uri: str
    tags: dict[str, str] = field(default_factory=dict)
    from_database: bool = True
    last_modified: str | None = None

    @property
    def kind(self) -> ItemKind:
        return ItemKind.SONG

    @property
    def hash(self) -> str:
        return hashlib.sha1(self.uri.encode("utf-8", "surrogateescape")).hexdigest()

    @property
    def directory(self) -> str:
        return posixpath.dirname(self.uri)

    @property
    def basename(self) -> str:
        return posixpath.basename(self.uri)

    def to_string(self, fmt: str) -> str:
        """Render the song through a ``str.format`` template.

        Unknown or missing tags render as empty strings; when nothing but
        separators is left, or the template itself is malformed, the
        file's base name is used instead.
        """
        values = _BlankTags(self.tags)
        values.update(
            file=self.uri,
            basename=self.basename,
            directory=self.directory,
        )
        values.setdefault("track", self.tags.get("tracknumber", ""))
        try:
            text = fmt.format_map(values)
        except (ValueError, AttributeError, IndexError, TypeError):
            return self.basename
        if not any(ch.isalnum() for ch in text):
            return self.basename
        return text


Item = Union[Directory, Song, Playlist]

SortMode = Literal["name", "mtime"]


def is_parent_directory(item: Item) -> bool:
    return isinstance(item, Directory) and item.name == PARENT_DIRECTORY


def parent_directory() -> Directory:
    return Directory(PARENT_DIRECTORY)


def item_name(item: Item) -> str:
    """Return the path or identifier an item refers to."""
    match item:
        case Directory(name=name) | Playlist(name=name):
            return name
        case Song():
            return item.uri
        case _:
            assert_never(item)


def _sort_key(item: Item, sort_mode: SortMode) -> tuple:
    match item:
        case Directory():
            key: tuple = (posixpath.basename(item.name).casefold(),)
        case Song():
            if sort_mode == "mtime":
                # Newest first; songs without a timestamp go last.
                stamp = _timestamp(item.last_modified)
                key = (stamp is None, -(stamp or 0.0))
            else:
                key = (item.basename.casefold(),)
        case Playlist():
            key = (item.name.casefold(),)
        case _:
            assert_never(item)
    return (item.kind.value, *key)


def _timestamp(text: str | None) -> float | None:
    if not text:
        return None
    try:
        return datetime.fromisoformat(text).timestamp()
    except ValueError:
        return None


def sort_items(items: Iterable[Item], sort_mode: SortMode = "name") -> list[Item]:
    """Sort items case-insensitively, grouped by kind.

    Directories come first, then songs, then playlists.  The sort is
    stable, so entries with equal keys keep their original order.
    """
    return sorted(items, key=lambda item: _sort_key(item, sort_mode))
