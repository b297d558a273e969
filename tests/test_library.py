"""Tests for the local filesystem library."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from musikbrowse.items import Directory, Song
from musikbrowse.library import LocalLibrary, SupportedExtensions, clear_directory, delete_tree


@pytest.fixture()
def extensions():
    return SupportedExtensions(lambda: {"mp3", "FLAC", ".ogg"})


@pytest.fixture()
def library(extensions):
    return LocalLibrary(extensions)


def _uris(items):
    return [item.uri if isinstance(item, Song) else item.name for item in items]


class TestSupportedExtensions:
    def test_fetched_once(self):
        fetch = MagicMock(return_value={"mp3"})
        ext = SupportedExtensions(fetch)
        fetch.assert_not_called()
        assert ext.matches("a.mp3")
        assert ext.matches("b.MP3")
        fetch.assert_called_once()

    def test_normalises_case_and_dots(self, extensions):
        assert extensions.get() == frozenset({"mp3", "flac", "ogg"})

    def test_file_without_extension(self, extensions):
        assert not extensions.matches("README")

    def test_empty_answer_is_retried(self):
        fetch = MagicMock(side_effect=[set(), {"mp3"}])
        ext = SupportedExtensions(fetch)
        assert not ext.matches("a.mp3")
        assert ext.matches("a.mp3")
        assert fetch.call_count == 2


class TestWalk:
    def test_returns_sorted_entries(self, tmp_path, library):
        (tmp_path / "zebra.mp3").touch()
        (tmp_path / "Alpha.flac").touch()
        (tmp_path / "beta").mkdir()
        (tmp_path / "Gamma").mkdir()
        items = library.walk(str(tmp_path))
        assert _uris(items) == [
            str(tmp_path / "beta"),
            str(tmp_path / "Gamma"),
            str(tmp_path / "Alpha.flac"),
            str(tmp_path / "zebra.mp3"),
        ]

    def test_songs_are_local(self, tmp_path, library):
        (tmp_path / "a.mp3").touch()
        [song] = library.walk(str(tmp_path))
        assert isinstance(song, Song)
        assert not song.from_database
        assert song.directory == str(tmp_path)

    def test_filters_unsupported_files(self, tmp_path, library):
        (tmp_path / "cover.jpg").touch()
        (tmp_path / "notes").touch()
        (tmp_path / "track.ogg").touch()
        assert _uris(library.walk(str(tmp_path))) == [str(tmp_path / "track.ogg")]

    def test_hidden_entries_skipped(self, tmp_path, library):
        (tmp_path / ".secret.mp3").touch()
        (tmp_path / ".cache").mkdir()
        assert library.walk(str(tmp_path)) == []

    def test_hidden_entries_shown_when_enabled(self, tmp_path, extensions):
        (tmp_path / ".secret.mp3").touch()
        (tmp_path / ".cache").mkdir()
        lib = LocalLibrary(extensions, show_hidden=True)
        assert _uris(lib.walk(str(tmp_path))) == [
            str(tmp_path / ".cache"),
            str(tmp_path / ".secret.mp3"),
        ]

    def test_unreadable_directory_is_empty(self, tmp_path, library):
        assert library.walk(str(tmp_path / "nope")) == []

    def test_empty_directory(self, tmp_path, library):
        assert library.walk(str(tmp_path)) == []

    def test_root_join_has_single_separator(self, library):
        for uri in _uris(library.walk("/")):
            assert not uri.startswith("//")

    def test_tags_read_for_songs(self, tmp_path, extensions):
        (tmp_path / "a.mp3").touch()
        read_tags = MagicMock()
        lib = LocalLibrary(extensions, read_tags=read_tags)
        [song] = lib.walk(str(tmp_path))
        read_tags.assert_called_once_with(song)


class TestRecursiveWalk:
    def test_only_songs(self, tmp_path, library):
        (tmp_path / "a.mp3").touch()
        sub = tmp_path / "sub" / "deeper"
        sub.mkdir(parents=True)
        (sub / "b.mp3").touch()
        items = library.walk(str(tmp_path), recursive=True)
        assert all(isinstance(item, Song) for item in items)
        assert sorted(_uris(items)) == sorted(
            [str(tmp_path / "a.mp3"), str(sub / "b.mp3")]
        )

    def test_each_directory_sorted(self, tmp_path, library):
        album = tmp_path / "Album"
        album.mkdir()
        for name in ("b.mp3", "A.mp3", "c.flac"):
            (album / name).touch()
        items = library.walk(str(tmp_path), recursive=True)
        assert _uris(items) == [
            str(album / "A.mp3"),
            str(album / "b.mp3"),
            str(album / "c.flac"),
        ]

    def test_subdirectory_block_is_contiguous(self, tmp_path, library):
        (tmp_path / "z.mp3").touch()
        album = tmp_path / "Album"
        album.mkdir()
        (album / "2.mp3").touch()
        (album / "1.mp3").touch()
        uris = _uris(library.walk(str(tmp_path), recursive=True))
        start = uris.index(str(album / "1.mp3"))
        assert uris[start + 1] == str(album / "2.mp3")
        assert str(tmp_path / "z.mp3") in uris

    def test_tags_not_read(self, tmp_path, extensions):
        (tmp_path / "a.mp3").touch()
        read_tags = MagicMock()
        lib = LocalLibrary(extensions, read_tags=read_tags)
        lib.walk(str(tmp_path), recursive=True)
        read_tags.assert_not_called()


class TestDeleteTree:
    def test_directory_contents_removed_before_directory(self, tmp_path):
        target = tmp_path / "Dir"
        target.mkdir()
        (target / "song.mp3").touch()
        (target / "sub").mkdir()
        messages = []
        assert delete_tree(target, True, messages.append)
        assert messages == [
            f'Deleting "{target / "sub"}"...',
            f'Deleting "{target / "song.mp3"}"...',
            f'Deleting "{target}"...',
        ]
        assert not target.exists()

    def test_nested_directories(self, tmp_path):
        target = tmp_path / "Dir"
        (target / "a" / "b").mkdir(parents=True)
        (target / "a" / "b" / "x.mp3").touch()
        assert delete_tree(target, True, lambda _: None)
        assert not target.exists()

    def test_single_file(self, tmp_path):
        song = tmp_path / "song.mp3"
        song.touch()
        messages = []
        assert delete_tree(song, False, messages.append)
        assert messages == [f'Deleting "{song}"...']

    def test_missing_target_reports_failure(self, tmp_path):
        messages = []
        assert not delete_tree(tmp_path / "ghost.mp3", False, messages.append)
        assert messages[0].startswith("Couldn't remove")

    def test_partial_failure_continues(self, tmp_path, monkeypatch):
        target = tmp_path / "Dir"
        target.mkdir()
        (target / "a.mp3").touch()
        (target / "locked.mp3").touch()
        (target / "z.mp3").touch()

        original_unlink = Path.unlink

        def unlink(self, *args, **kwargs):
            if self.name == "locked.mp3":
                raise PermissionError(13, "Permission denied")
            return original_unlink(self, *args, **kwargs)

        monkeypatch.setattr(Path, "unlink", unlink)
        messages = []
        assert not delete_tree(target, True, messages.append)
        assert not (target / "a.mp3").exists()
        assert not (target / "z.mp3").exists()
        assert (target / "locked.mp3").exists()
        assert any("locked.mp3" in m and "Permission denied" in m for m in messages)

    def test_symlinked_directory_not_followed(self, tmp_path):
        outside = tmp_path / "outside"
        outside.mkdir()
        (outside / "keep.mp3").touch()
        target = tmp_path / "Dir"
        target.mkdir()
        (target / "link").symlink_to(outside, target_is_directory=True)
        assert delete_tree(target, True, lambda _: None)
        assert (outside / "keep.mp3").exists()


class TestClearDirectory:
    def test_keeps_directory(self, tmp_path):
        (tmp_path / "a.mp3").touch()
        clear_directory(tmp_path, lambda _: None)
        assert tmp_path.is_dir()
        assert list(tmp_path.iterdir()) == []

    def test_missing_directory_is_ignored(self, tmp_path):
        messages = []
        clear_directory(tmp_path / "ghost", messages.append)
        assert messages == []
