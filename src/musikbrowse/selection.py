"""Row selection and expansion of selected rows into songs."""

from __future__ import annotations

from typing import Callable, assert_never

from musikbrowse.items import Directory, Playlist, Song
from musikbrowse.view import ListView, Row


def toggle(view: ListView, index: int) -> bool:
    """Flip the selection bit of the row at display *index*.

    The parent marker cannot be selected.  Returns whether anything changed.
    """
    row = view.at(index)
    if row.is_parent:
        return False
    row.selected = not row.selected
    return True


def reverse_selection(view: ListView) -> None:
    for row in view:
        if not row.is_parent:
            row.selected = not row.selected


def selected_rows(view: ListView) -> list[Row]:
    """Return the selected rows, or the cursor row if none is selected."""
    rows = [row for row in view if row.selected]
    if not rows:
        current = view.current()
        if current is not None:
            rows = [current]
    return [row for row in rows if not row.is_parent]


def expand_selection(
    view: ListView,
    expand_directory: Callable[[str], list[Song]],
    expand_playlist: Callable[[str], list[Song]],
) -> list[Song]:
    """Turn the selected rows into a flat list of songs.

    Directories and playlists are replaced in place by their full
    contents, so the result follows display order.
    """
    result: list[Song] = []
    for row in selected_rows(view):
        item = row.item
        match item:
            case Song():
                result.append(item)
            case Directory():
                result.extend(expand_directory(item.name))
            case Playlist():
                result.extend(expand_playlist(item.name))
            case _:
                assert_never(item)
    return result
