"""Row cursor and values formatted when they are used."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterable, Iterator

if TYPE_CHECKING:
    from .base import BridgeAbstract


class RowCursor:
    """
    List of rows with an explicit current row.

    Iterating moves the current row along, so late values resolved inside
    the loop see the row of that iteration.
    """

    def __init__(self, rows: Iterable[dict[str, Any]]):
        self.rows = list(rows)
        self._index = 0

    def __repr__(self) -> str:
        return f"RowCursor(rows={len(self.rows)}, index={self._index})"

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[dict[str, Any]]:
        self._index = 0
        while self._index < len(self.rows):
            yield self.rows[self._index]
            self._index += 1

    def current(self) -> dict[str, Any] | None:
        if 0 <= self._index < len(self.rows):
            return self.rows[self._index]
        return None

    def next(self) -> dict[str, Any] | None:
        self._index += 1
        return self.current()

    def reset(self) -> RowCursor:
        self._index = 0
        return self


class LateBridgeFormat:
    """The formatted value of a field in the current row of a bridge's cursor."""

    def __init__(self, bridge: BridgeAbstract, field_name: str):
        self.bridge = bridge
        self.field_name = field_name

    def __repr__(self) -> str:
        return f"LateBridgeFormat({self.field_name!r})"

    def __str__(self) -> str:
        value = self.resolve()
        return "" if value is None else str(value)

    def resolve(self, cursor: RowCursor | None = None) -> Any:
        if cursor is None:
            cursor = self.bridge.get_repeater()

        current = cursor.current() if cursor is not None else None
        value = current.get(self.field_name) if current else None
        return self.bridge.format(self.field_name, value)
