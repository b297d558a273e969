"""Matching listing entries against filter and search patterns.

Filtering and searching share one matcher.  They differ only in how they
treat the parent marker: a filter always keeps ``..`` visible so the
user can leave the directory, while a search never reports it as a hit.
"""

from __future__ import annotations

import fnmatch
import posixpath
import re
from typing import Callable, assert_never

from musikbrowse.config import Config
from musikbrowse.items import Directory, Item, Playlist, Song, is_parent_directory

TextMatcher = Callable[[str], bool]


class PatternError(ValueError):
    """Raised when a filter or search pattern does not compile."""


def compile_matcher(pattern: str, regex_type: str = "regex") -> TextMatcher:
    """Compile *pattern* into a case-insensitive text predicate.

    ``regex_type`` selects how the pattern is read: ``regex`` (Python
    regular expression), ``literal`` (plain substring) or ``glob``
    (shell wildcards).
    """
    if regex_type == "literal":
        source = re.escape(pattern)
    elif regex_type == "glob":
        # Translated globs are anchored at both ends; pad them to match anywhere.
        source = fnmatch.translate(f"*{pattern}*")
    elif regex_type == "regex":
        source = pattern
    else:
        raise PatternError(f"Unknown regex type '{regex_type}'.")

    try:
        rx = re.compile(source, re.IGNORECASE)
    except re.error as exc:
        raise PatternError(f"Invalid pattern '{pattern}': {exc}") from exc
    return lambda text: rx.search(text) is not None


def item_to_string(item: Item, config: Config) -> str:
    match item:
        case Directory():
            return f"[{posixpath.basename(item.name)}]"
        case Song():
            return item.to_string(config.song_format)
        case Playlist():
            return config.playlist_prefix + posixpath.basename(item.name)
        case _:
            assert_never(item)


def entry_matches(
    matcher: TextMatcher, item: Item, filtering: bool, config: Config
) -> bool:
    if is_parent_directory(item):
        return filtering
    return matcher(item_to_string(item, config))
