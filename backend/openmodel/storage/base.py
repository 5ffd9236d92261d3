"""
Base data model module.

A data model combines a meta model with storage. DataReader holds the
stored filter and sort, normalises the filter and sort passed to a load
and implements the load variants on top of load(). DataWriter marks the
models that can also save and delete.

Filters are dicts:
    {"name": "x"}                        equality
    {"name": ["x", "y"]}                 membership
    {"name": {"like": "x"}}              contains
    {"age": {"min": 10, "max": 20}}      inclusive range
    {"not": {"name": "x"}}               negation
    {0: {"a": 1, "b": 2}}                nested group, AND and OR alternate
Sorts are dicts of field name to SortOrder, strings like "name DESC" or
lists of those strings.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from openmodel.core.constants import SortOrder
from openmodel.core.exceptions import ModelError

if TYPE_CHECKING:
    from openmodel.bridge.base import BridgeAbstract
    from openmodel.bridge.late import RowCursor
    from openmodel.model.meta_model import MetaModel

logger = logging.getLogger(__name__)


def to_sort_order(value: Any) -> SortOrder:
    """DESC for SortOrder.DESC or 'desc' in any case, ASC otherwise."""
    if isinstance(value, SortOrder):
        return value
    if isinstance(value, str) and value.strip().lower() == SortOrder.DESC.value:
        return SortOrder.DESC
    return SortOrder.ASC


def parse_sort_string(value: str) -> tuple[str, SortOrder]:
    """Split 'name DESC' into ('name', SortOrder.DESC)."""
    stripped = value.strip()
    upper = stripped.upper()
    if upper.endswith(" DESC"):
        return stripped[:-5].strip(), SortOrder.DESC
    if upper.endswith(" ASC"):
        return stripped[:-4].strip(), SortOrder.ASC
    return stripped, SortOrder.ASC


class DataReader(ABC):
    """Readable data model."""

    def __init__(self, meta_model: MetaModel):
        self.meta_model = meta_model
        self._filter: dict[Any, Any] = {}
        self._sort: dict[str, SortOrder] = {}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.get_name()!r})"

    def check_filter(self, filter: Any) -> dict[Any, Any]:
        """The filter to use, run through the meta model transformers."""
        if filter is None:
            return self.meta_model.process_filter(self.get_filter())
        if isinstance(filter, dict):
            return self.meta_model.process_filter(dict(filter))
        if filter:
            return self.meta_model.process_filter({0: filter})
        return {}

    def check_sort(self, sort: Any) -> dict[str, SortOrder]:
        """The sort to use as {field: SortOrder}, run through the meta model transformers."""
        if sort is None:
            sort = self.get_sort()

        output: dict[str, SortOrder] = {}
        if isinstance(sort, str):
            name, direction = parse_sort_string(sort)
            output[name] = direction
        elif isinstance(sort, (list, tuple)):
            for item in sort:
                name, direction = parse_sort_string(item)
                output[name] = direction
        elif isinstance(sort, dict):
            for key, value in sort.items():
                if isinstance(key, int):
                    name, direction = parse_sort_string(value)
                    output[name] = direction
                else:
                    output[key] = to_sort_order(value)

        return self.meta_model.process_sort(output)

    @abstractmethod
    def load(self, filter: Any = None, sort: Any = None) -> list[dict[str, Any]]:
        """Load the rows matching the filter, in sort order."""

    def load_first(self, filter: Any = None, sort: Any = None) -> dict[str, Any]:
        rows = self.load(filter, sort)
        if not rows:
            return {}
        return rows[0]

    def load_count(self, filter: Any = None, sort: Any = None) -> int:
        return len(self.load(filter, sort))

    def load_page(self, page: int, items: int, filter: Any = None, sort: Any = None) -> list[dict[str, Any]]:
        rows, _ = self.load_page_with_count(page, items, filter, sort)
        return rows

    def load_page_with_count(
        self,
        page: int,
        items: int,
        filter: Any = None,
        sort: Any = None,
    ) -> tuple[list[dict[str, Any]], int]:
        """
        Load one page of rows.

        Args:
            page: Page number, starting at 1
            items: Rows per page

        Returns:
            Tuple of the page rows and the total row count
        """
        rows = self.load(filter, sort)
        start = (page - 1) * items
        return rows[start:start + items], len(rows)

    def load_new(self, count: int | None = None) -> Any:
        """A new row with the default values, or a list of count new rows."""
        if count is not None:
            return [self.load_new() for _ in range(count)]
        return self.meta_model.process_one_row_after_load(self.load_new_raw(), True, False)

    def load_new_raw(self) -> dict[str, Any]:
        row = self.meta_model.get_col("default")
        for name in self.meta_model.get_item_names():
            row.setdefault(name, None)
        return row

    def load_post_data(
        self,
        post_data: dict[str, Any],
        create: bool = False,
        filter: Any = None,
        sort: Any = None,
    ) -> dict[str, Any]:
        """
        Combine posted form data with the stored (or new) row.

        Posted values win, multi select fields missing from the post are
        set to an empty list and the stored values fill the rest.
        """
        if not isinstance(self, DataWriter):
            raise ModelError(
                f"Function load_post_data may not be used for {self.__class__.__name__} "
                f"as it is not a DataWriter.",
                model=self.get_name(),
                operation="load_post_data",
            )

        model_data = self.load_new_raw() if create else self.load_first(filter, sort)

        row = dict(post_data)
        if post_data and model_data:
            for name in self.meta_model.get_items_for(elementClass="MultiCheckbox"):
                row.setdefault(name, [])
            for name in self.meta_model.get_items_for(elementClass="MultiSelect"):
                row.setdefault(name, [])
        for name, value in model_data.items():
            row.setdefault(name, value)

        return self.meta_model.process_one_row_after_load(row, create, True)

    def load_repeatable(self, filter: Any = None, sort: Any = None) -> RowCursor | None:
        from openmodel.bridge.late import RowCursor

        rows = self.load(filter, sort)
        if rows:
            return RowCursor(rows)
        return None

    def get_filter(self) -> dict[Any, Any]:
        return dict(self._filter)

    def set_filter(self, filter: dict[Any, Any]) -> DataReader:
        self._filter = dict(filter)
        return self

    def has_filter(self) -> bool:
        return bool(self._filter)

    def get_sort(self) -> dict[str, SortOrder]:
        return dict(self._sort)

    def set_sort(self, sort: dict[str, Any]) -> DataReader:
        self._sort = {name: to_sort_order(value) for name, value in sort.items()}
        return self

    def has_sort(self) -> bool:
        return bool(self._sort)

    def get_bridge_for(self, identifier: Any, *args: Any) -> BridgeAbstract:
        return self.meta_model.get_loader().create_bridge(identifier, self, *args)

    def get_meta_model(self) -> MetaModel:
        return self.meta_model

    def get_name(self) -> str:
        return self.meta_model.get_name()

    def get_item_names(self) -> list[str]:
        return self.meta_model.get_item_names()

    def has_new(self) -> bool:
        return isinstance(self, DataWriter)


class DataWriter(ABC):
    """Data model that can also save and delete rows."""

    @abstractmethod
    def save(self, new_values: dict[str, Any], filter: dict[Any, Any] | None = None) -> dict[str, Any]:
        """
        Save a row.

        Args:
            new_values: The row values, missing fields keep their stored value
            filter: Identifies the stored row, overriding the key values in the row

        Returns:
            The saved row as it would be loaded
        """

    @abstractmethod
    def delete(self, filter: Any = None) -> int:
        """Delete the rows matching the filter and return their count."""

    @abstractmethod
    def get_changed(self) -> int:
        """The number of rows changed by the saves so far."""
