"""
SQL table model.

Usage:
    runner = SqlRunner("sqlite:///app.db")
    model = SqlTableModel(MetaModel("orders"), "orders", runner)
    model.meta_model.set("status", label="Status", multiOptions={"N": "New", "D": "Done"})

    rows = model.load({"status": "N"}, "created DESC")
    row = model.save({"order_id": 12, "status": "D"})
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from openmodel.core.constants import AUTO_SAVE, LOAD_TRANSFORMER, NO_SQL
from openmodel.core.converters import loose_equals

from .base import DataReader, DataWriter
from .sql_runner import SqlRunner

if TYPE_CHECKING:
    from openmodel.model.meta_model import MetaModel

logger = logging.getLogger(__name__)


def _value_changed(old: Any, new: Any) -> bool:
    if (old is None) != (new is None):
        return True
    return not loose_equals(old, new)


class SqlTableModel(DataReader, DataWriter):
    """
    Read / write model over a single table.

    The field settings of the table columns (type, key, required,
    maxlength, default) are read from the database, settings already in
    the meta model win. Fields with the noSql setting are never selected
    or saved, fields with a column_expression are selected as that
    expression.
    """

    def __init__(self, meta_model: MetaModel, table_name: str, sql_runner: SqlRunner):
        super().__init__(meta_model)
        self.table_name = table_name
        self.sql_runner = sql_runner
        self._changed = 0

        self._table_columns = self.sql_runner.get_table_meta_data(table_name)
        for name, settings in self._table_columns.items():
            missing = {key: value for key, value in settings.items() if not meta_model.has(name, key)}
            meta_model.set(name, missing)
        meta_model.get_keys(reset=True)

        logger.debug(f"Created SQL model {meta_model.get_name()} on table {table_name}")

    def _select_columns(self) -> dict[str, str]:
        columns = {}
        for name in self.meta_model.get_item_names():
            if self.meta_model.get(name, NO_SQL):
                continue
            expression = self.meta_model.get(name, "column_expression")
            if expression:
                columns[name] = expression
            elif name in self._table_columns:
                columns[name] = name
        return columns

    def _sql_filter(self, filter: dict[Any, Any]) -> dict[Any, Any]:
        return {
            name: value
            for name, value in filter.items()
            if not isinstance(name, str) or not self.meta_model.get(name, NO_SQL)
        }

    def _sql_sort(self, sort: dict[str, Any]) -> dict[str, Any]:
        columns = self._select_columns()
        return {name: direction for name, direction in sort.items() if name in columns}

    def _where(self, filter: Any):
        return self.sql_runner.create_where(self.meta_model, self._sql_filter(self.check_filter(filter)))

    def load(self, filter: Any = None, sort: Any = None) -> list[dict[str, Any]]:
        rows = self.sql_runner.fetch_rows(
            self.table_name,
            self._select_columns(),
            self._where(filter),
            self._sql_sort(self.check_sort(sort)),
        )
        logger.debug(f"Loaded {len(rows)} rows from {self.table_name}")
        return self.meta_model.process_after_load(rows, False, False)

    def load_count(self, filter: Any = None, sort: Any = None) -> int:
        return self.sql_runner.fetch_count(self.table_name, self._where(filter))

    def load_page_with_count(
        self,
        page: int,
        items: int,
        filter: Any = None,
        sort: Any = None,
    ) -> tuple[list[dict[str, Any]], int]:
        where = self._where(filter)
        total = self.sql_runner.fetch_count(self.table_name, where)
        rows = self.sql_runner.fetch_rows(
            self.table_name,
            self._select_columns(),
            where,
            self._sql_sort(self.check_sort(sort)),
            offset=(page - 1) * items,
            limit=items,
        )
        return self.meta_model.process_after_load(rows, False, False), total

    def _key_filter(self, row: dict[str, Any], filter: dict[Any, Any] | None) -> dict[str, Any]:
        output = {}
        for name in self.meta_model.get_keys().values():
            if row.get(name) not in (None, ""):
                output[name] = row[name]
        if filter:
            output.update(filter)
        return output

    def save(self, new_values: dict[str, Any], filter: dict[Any, Any] | None = None) -> dict[str, Any]:
        row = self.meta_model.process_before_save(dict(new_values))
        key_filter = self._key_filter(row, filter)

        old = {}
        if key_filter:
            old = self.sql_runner.fetch_row(
                self.table_name,
                None,
                self.sql_runner.create_where(self.meta_model, key_filter),
            )
        is_new = not old

        values = {
            name: value
            for name, value in self.meta_model.process_row_before_save(row, is_new).items()
            if name in self._table_columns and not self.meta_model.get(name, NO_SQL)
        }

        if is_new:
            for name in self.meta_model.get_keys().values():
                if values.get(name) is None:
                    values.pop(name, None)
            key = self.sql_runner.insert(self.table_name, values)
            keys = list(self.meta_model.get_keys().values())
            if key is not None and len(keys) == 1 and row.get(keys[0]) in (None, ""):
                row[keys[0]] = key
            self._changed += 1
            logger.debug(f"Inserted row in {self.table_name}")
        else:
            changes = {
                name: value
                for name, value in values.items()
                if _value_changed(old.get(name), value)
            }
            if changes:
                for name, value in values.items():
                    if self.meta_model.get(name, AUTO_SAVE):
                        changes.setdefault(name, value)
                self.sql_runner.update(
                    self.table_name,
                    changes,
                    self.sql_runner.create_where(self.meta_model, key_filter),
                )
                self._changed += 1
                logger.debug(f"Updated row in {self.table_name}: {list(changes)}")
            row = {**old, **row}

        after = self.meta_model.process_after_save(row)
        if self.meta_model.get_meta(LOAD_TRANSFORMER) or self.meta_model.has_dependencies():
            return self.meta_model.process_row_after_load(after, False)
        return after

    def delete(self, filter: Any = None) -> int:
        deleted = self.sql_runner.delete(self.table_name, self._where(filter))
        logger.debug(f"Deleted {deleted} rows from {self.table_name}")
        return deleted

    def get_changed(self) -> int:
        return self._changed

    def set_changed(self, changed: int = 0) -> SqlTableModel:
        self._changed = changed
        return self
