"""Tests for filter/search pattern matching."""

from __future__ import annotations

import pytest

from musikbrowse.config import Config
from musikbrowse.items import Directory, Playlist, Song, parent_directory
from musikbrowse.matching import PatternError, compile_matcher, entry_matches, item_to_string


class TestCompileMatcher:
    def test_regex_is_case_insensitive_search(self):
        matcher = compile_matcher("ro+ck")
        assert matcher("Classic ROOCK")
        assert not matcher("jazz")

    def test_literal_escapes_metacharacters(self):
        matcher = compile_matcher("a.c", "literal")
        assert matcher("xa.cx")
        assert not matcher("abc")

    def test_glob_matches_anywhere(self):
        matcher = compile_matcher("live*199?", "glob")
        assert matcher("[Live at Leeds 1997]")
        assert not matcher("Studio 1997")

    def test_empty_pattern_matches_everything(self):
        for regex_type in ("regex", "literal", "glob"):
            assert compile_matcher("", regex_type)("anything")

    def test_invalid_regex(self):
        with pytest.raises(PatternError, match="Invalid pattern"):
            compile_matcher("(")

    def test_unknown_regex_type(self):
        with pytest.raises(PatternError):
            compile_matcher("x", "pcre")


class TestItemToString:
    def test_directory_is_bracketed_basename(self):
        assert item_to_string(Directory("/Rock/Queen"), Config()) == "[Queen]"

    def test_song_uses_format(self):
        cfg = Config(song_format="{title}")
        assert item_to_string(Song("a.mp3", tags={"title": "Hi"}), cfg) == "Hi"

    def test_playlist_prefix(self):
        cfg = Config(playlist_prefix="pl: ")
        assert item_to_string(Playlist("lists/Road Trip"), cfg) == "pl: Road Trip"


class TestEntryMatches:
    def test_parent_visible_when_filtering(self):
        never = compile_matcher("zzz")
        assert entry_matches(never, parent_directory(), True, Config())

    def test_parent_never_a_search_hit(self):
        always = compile_matcher("")
        assert not entry_matches(always, parent_directory(), False, Config())

    def test_other_items_use_display_string(self):
        matcher = compile_matcher(r"^\[Queen\]$")
        assert entry_matches(matcher, Directory("/Rock/Queen"), True, Config())
        assert not entry_matches(matcher, Directory("/Rock/Queens"), False, Config())
