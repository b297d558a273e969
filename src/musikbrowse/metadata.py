"""Tag reading for local audio files.

libsndfile (through soundfile) exposes a small set of string tags for the
containers it understands.  Files it cannot open, such as m4a, aac or
wma, are read with mutagen's easy tag interface instead.  Anything
neither library can read is simply left untagged.
"""

from __future__ import annotations

import logging

import soundfile as sf
from mutagen import File as MutagenFile, MutagenError

from musikbrowse.items import Song

log = logging.getLogger(__name__)

# Tag names shared by SoundFile.copy_metadata() and mutagen easy tags.
_TAG_KEYS = ("title", "artist", "album", "date", "genre", "tracknumber", "comment")


def _sndfile_tags(path: str) -> dict[str, str] | None:
    try:
        with sf.SoundFile(path) as f:
            return f.copy_metadata()
    except (RuntimeError, OSError) as exc:
        log.debug("libsndfile cannot read %s: %s", path, exc)
        return None


def _mutagen_tags(path: str) -> dict[str, str] | None:
    try:
        audio = MutagenFile(path, easy=True)
    except (MutagenError, OSError) as exc:
        log.debug("mutagen cannot read %s: %s", path, exc)
        return None
    if audio is None or audio.tags is None:
        return None
    tags = {}
    for key in _TAG_KEYS:
        values = audio.tags.get(key)
        if values:
            tags[key] = str(values[0])
    return tags


def read_tags(song: Song) -> None:
    """Fill ``song.tags`` from the file at ``song.uri`` (best effort)."""
    metadata = _sndfile_tags(song.uri)
    if metadata is None:
        metadata = _mutagen_tags(song.uri)
    if metadata is None:
        log.debug("No tags for %s", song.uri)
        return

    for key in _TAG_KEYS:
        value = metadata.get(key)
        if value:
            song.tags[key] = value
