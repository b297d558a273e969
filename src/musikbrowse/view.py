"""In-memory list view holding the rows of the current listing.

The view keeps every row it was given and a visibility mask on top of
them.  Indices passed to and returned from the public methods are
*display* indices, i.e. positions among the visible rows.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterator

from musikbrowse.items import Item, is_parent_directory


@dataclass
class Row:
    """One displayed entry.

    ``highlighted`` mirrors queue membership of the wrapped song and is
    recomputed by the session; ``selected`` is toggled by the user.
    """

    item: Item
    selected: bool = False
    highlighted: bool = False

    @property
    def is_parent(self) -> bool:
        return is_parent_directory(self.item)


class ListView:
    """Orderable, indexable, scrollable list with per-row selection bits."""

    def __init__(self) -> None:
        self._rows: list[Row] = []
        self._visible: list[int] = []
        self._filtered = False
        self._hits: list[int] = []
        self._cursor = 0
        self.scroll_offset = 0

    # -- content -------------------------------------------------------------

    def clear(self) -> None:
        """Drop all rows.  The cursor position is kept for the next fill."""
        self._rows = []
        self._visible = []
        self._filtered = False
        self._hits = []

    def add_row(self, item: Item, highlighted: bool = False) -> Row:
        row = Row(item, highlighted=highlighted)
        self._rows.append(row)
        self._visible.append(len(self._rows) - 1)
        return row

    def size(self) -> int:
        return len(self._visible)

    def __len__(self) -> int:
        return len(self._visible)

    def __iter__(self) -> Iterator[Row]:
        return (self._rows[i] for i in self._visible)

    def empty(self) -> bool:
        return not self._visible

    def at(self, index: int) -> Row:
        return self._rows[self._visible[index]]

    def all_rows(self) -> list[Row]:
        """Return every row, including the ones hidden by a filter."""
        return list(self._rows)

    # -- cursor --------------------------------------------------------------

    def cursor_index(self) -> int:
        return self._cursor

    def current(self) -> Row | None:
        if not 0 <= self._cursor < len(self._visible):
            return None
        return self.at(self._cursor)

    def move_cursor_to(self, index: int) -> None:
        if not self._visible:
            self._cursor = 0
            return
        self._cursor = max(0, min(index, len(self._visible) - 1))

    def scroll_down(self) -> None:
        self.move_cursor_to(self._cursor + 1)

    def reset_cursor(self) -> None:
        self._cursor = 0
        self.scroll_offset = 0

    # -- filtering -----------------------------------------------------------

    @property
    def filtered(self) -> bool:
        return self._filtered

    def show_all(self) -> None:
        self._replace_visible(list(range(len(self._rows))))
        self._filtered = False

    def set_visibility_mask(self, predicate: Callable[[Row], bool]) -> None:
        """Hide every row for which *predicate* is false."""
        self._replace_visible(
            [i for i, row in enumerate(self._rows) if predicate(row)]
        )
        self._filtered = True

    def _replace_visible(self, visible: list[int]) -> None:
        # Keep the cursor on the same row when it survives the change.
        current = None
        if 0 <= self._cursor < len(self._visible):
            current = self._visible[self._cursor]
        self._visible = visible
        self._hits = []
        if current is not None and current in visible:
            self._cursor = visible.index(current)
        else:
            self._cursor = 0

    # -- searching -----------------------------------------------------------

    def mark_search_hits(self, predicate: Callable[[Row], bool]) -> bool:
        """Remember the visible rows matching *predicate*.

        Returns ``True`` if at least one row matched.
        """
        self._hits = [
            pos for pos, i in enumerate(self._visible) if predicate(self._rows[i])
        ]
        return bool(self._hits)

    def search_hits(self) -> list[int]:
        return list(self._hits)

    def next_found(self, wrap: bool) -> bool:
        """Move the cursor to the next search hit after it."""
        for pos in self._hits:
            if pos > self._cursor:
                self._cursor = pos
                return True
        if wrap and self._hits:
            self._cursor = self._hits[0]
            return True
        return False

    def prev_found(self, wrap: bool) -> bool:
        """Move the cursor to the previous search hit before it."""
        for pos in reversed(self._hits):
            if pos < self._cursor:
                self._cursor = pos
                return True
        if wrap and self._hits:
            self._cursor = self._hits[-1]
            return True
        return False
