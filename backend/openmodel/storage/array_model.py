"""
Array based data models.

These models hold their whole data set as a list of row dicts and do the
filtering and sorting in Python. Subclasses only implement _load_all()
and, when writable, _save_all().
"""

from __future__ import annotations

import functools
import logging
from abc import abstractmethod
from typing import TYPE_CHECKING, Any, MutableMapping

from openmodel.core.constants import (
    FILTER_BETWEEN_MAX,
    FILTER_BETWEEN_MIN,
    FILTER_CONTAINS,
    FILTER_CONTAINS_NOT,
    FILTER_NOT,
    LOAD_TRANSFORMER,
    NO_SQL,
    TYPE_CHILD_MODEL,
    SortOrder,
)
from openmodel.core.converters import ValueConverter, loose_equals
from openmodel.core.exceptions import ModelError

from .base import DataReader, DataWriter

if TYPE_CHECKING:
    from openmodel.model.meta_model import MetaModel

logger = logging.getLogger(__name__)


def _is_group_key(name: Any) -> bool:
    return isinstance(name, int) and not isinstance(name, bool)


def _contains(haystack: Any, needle: Any) -> bool:
    if haystack is None:
        return needle in (None, "")
    return str(needle) in str(haystack)


def _compare(left: Any, right: Any) -> int:
    """Compare two row values, None first and numbers numerically."""
    if left is None or right is None:
        if left is None and right is None:
            return 0
        return -1 if left is None else 1
    if ValueConverter.is_numeric(left) and ValueConverter.is_numeric(right):
        left, right = float(left), float(right)
    elif type(left) is not type(right):
        left, right = str(left), str(right)
    if left == right:
        return 0
    return 1 if left > right else -1


def sort_rows(rows: list[dict[str, Any]], sort: dict[str, SortOrder]) -> list[dict[str, Any]]:
    """Stable multi-key sort of row dicts."""

    def compare_rows(a: dict[str, Any], b: dict[str, Any]) -> int:
        for name, direction in sort.items():
            result = _compare(a.get(name), b.get(name))
            if result:
                return -result if direction == SortOrder.DESC else result
        return 0

    return sorted(rows, key=functools.cmp_to_key(compare_rows))


class ArrayModelAbstract(DataReader, DataWriter):
    """
    Model over a complete list of rows.

    Filter semantics (per filter key, combined with AND at the top level):
    - callable value: called with the field value, or the whole row for an int key
    - {"like": x} / {"notlike": x}: substring test
    - {"min": a, "max": b}: inclusive range
    - "not" key: negates the sub filter
    - int key with a dict or list value: nested group, AND and OR alternate
    - int key with a scalar value: the truthiness of that value
    - list value: loose equality with any of the values
    - scalar value: identical or case-insensitive string equality
    """

    def __init__(self, meta_model: MetaModel):
        super().__init__(meta_model)
        self._changed = 0

    @abstractmethod
    def _load_all(self) -> list[dict[str, Any]]:
        pass

    def _save_all(self, data: list[dict[str, Any]]) -> None:
        raise ModelError(
            f"Model {self.get_name()} of class {self.__class__.__name__} is read only.",
            model=self.get_name(),
            operation="save",
        )

    def apply_filters_to_row(self, row: dict[str, Any], filter: dict[Any, Any], logical_and: bool = True) -> bool:
        """Check whether a row passes a filter."""
        return self._apply_filters_to_row(row, filter, logical_and)

    def _apply_filters_to_row(self, row: dict[str, Any], filter: Any, logical_and: bool) -> bool:
        items = filter.items() if isinstance(filter, dict) else enumerate(filter)

        for name, value in items:
            if callable(value):
                result = bool(value(row if _is_group_key(name) else row.get(name)))

            elif isinstance(value, (dict, list, tuple)):
                result = self._apply_complex_filter(row, name, value, logical_and)

            elif _is_group_key(name):
                result = ValueConverter.is_truthy(value)

            else:
                current = row.get(name)
                result = current is value or current == value or (
                    current is not None
                    and value is not None
                    and str(current).casefold() == str(value).casefold()
                )

            if logical_and != result:
                return result

        return logical_and

    def _apply_complex_filter(self, row: dict[str, Any], name: Any, value: Any, logical_and: bool) -> bool:
        if isinstance(value, dict):
            if len(value) == 1:
                if FILTER_CONTAINS in value:
                    return _contains(row.get(name), value[FILTER_CONTAINS])
                if FILTER_CONTAINS_NOT in value:
                    return not _contains(row.get(name), value[FILTER_CONTAINS_NOT])
            elif len(value) == 2 and FILTER_BETWEEN_MIN in value and FILTER_BETWEEN_MAX in value:
                current = row.get(name)
                return (
                    _compare(current, value[FILTER_BETWEEN_MIN]) >= 0
                    and _compare(current, value[FILTER_BETWEEN_MAX]) <= 0
                )

        if _is_group_key(name):
            return self._apply_filters_to_row(row, value, not logical_and)
        if name == FILTER_NOT:
            return not self._apply_filters_to_row(row, value, not logical_and)

        current = row.get(name)
        values = value.values() if isinstance(value, dict) else value
        return any(loose_equals(current, val) for val in values)

    def _filter_data(self, data: list[dict[str, Any]], filter: dict[Any, Any]) -> list[dict[str, Any]]:
        return [row for row in data if self._apply_filters_to_row(row, filter, True)]

    def _find_current_row(
        self,
        row: dict[str, Any],
        data: list[dict[str, Any]],
        filter: dict[Any, Any] | None,
    ) -> int | None:
        find = {}
        for field in self.meta_model.get_keys().values():
            if row.get(field) is not None:
                find[field] = row[field]
        if filter:
            find.update(filter)

        if not find:
            return None

        for index, current in enumerate(data):
            if all(
                current.get(field) is not None and loose_equals(value, current[field])
                for field, value in find.items()
            ):
                return index
        return None

    def _storable(self, row: dict[str, Any]) -> dict[str, Any]:
        """The row without the nested sub model values, those are saved by the transformers."""
        return {
            name: value
            for name, value in row.items()
            if not self.meta_model.get(name, NO_SQL) and self.meta_model.get(name, "type") != TYPE_CHILD_MODEL
        }

    def load(self, filter: Any = None, sort: Any = None) -> list[dict[str, Any]]:
        filter = self.check_filter(filter)
        sort = self.check_sort(sort)

        data = self._load_all()
        if filter:
            data = self._filter_data(data, filter)
        if sort:
            data = sort_rows(data, sort)

        return self.meta_model.process_after_load(data, False, False)

    def save(self, new_values: dict[str, Any], filter: dict[Any, Any] | None = None) -> dict[str, Any]:
        data = self._load_all()
        index = self._find_current_row(new_values, data, filter)

        if index is not None:
            new_values = {**data[index], **new_values}

        before = self.meta_model.process_before_save(new_values)
        stored = self._storable(before)
        if index is not None:
            if stored != data[index]:
                data[index] = stored
                self._changed += 1
        else:
            data.append(stored)
            self._changed += 1

        self._save_all(data)
        logger.debug(f"Saved row in {self.get_name()}, {self._changed} changed so far")

        after = self.meta_model.process_after_save(before)
        if self.meta_model.get_meta(LOAD_TRANSFORMER) or self.meta_model.has_dependencies():
            return self.meta_model.process_row_after_load(after, False)
        return after

    def delete(self, filter: Any = None) -> int:
        data = self._load_all()
        checked = self.check_filter(filter)

        kept = []
        deleted = 0
        for row in data:
            if not checked or self._apply_filters_to_row(row, checked, True):
                deleted += 1
            else:
                kept.append(row)

        self._save_all(kept)
        logger.debug(f"Deleted {deleted} rows from {self.get_name()}")
        return deleted

    def get_changed(self) -> int:
        return self._changed

    def set_changed(self, changed: int = 0) -> ArrayModelAbstract:
        self._changed = changed
        return self


class MemoryModel(ArrayModelAbstract):
    """Writable model over a list of rows kept in memory."""

    def __init__(self, meta_model: MetaModel, rows: list[dict[str, Any]] | None = None):
        super().__init__(meta_model)
        self._data = [dict(row) for row in rows or []]
        if self._data:
            for name in self._data[0]:
                if not meta_model.has(name):
                    meta_model.set(name, {})

    def _load_all(self) -> list[dict[str, Any]]:
        return [dict(row) for row in self._data]

    def _save_all(self, data: list[dict[str, Any]]) -> None:
        self._data = [dict(row) for row in data]


class SessionModel(ArrayModelAbstract):
    """
    Writable model stored in a session mapping.

    Any mutable mapping works as session, the rows are stored under
    "<ClassName>_<model name>_data".
    """

    def __init__(self, meta_model: MetaModel, session: MutableMapping[str, Any]):
        super().__init__(meta_model)
        self.session = session
        self._session_key = f"{self.__class__.__name__}_{meta_model.get_name()}_data"

    def _load_all(self) -> list[dict[str, Any]]:
        return [dict(row) for row in self.session.get(self._session_key, [])]

    def _save_all(self, data: list[dict[str, Any]]) -> None:
        self.session[self._session_key] = [dict(row) for row in data]
