"""
SQL access for data models.

SqlRunner wraps a SQLAlchemy engine and translates the dict filter and
sort language of the data models to SQLAlchemy Core expressions. Tables
are reflected on first use.

Usage:
    runner = SqlRunner("sqlite:///app.db")
    rows = runner.fetch_rows("orders", None, {"status": ["N", "P"]}, {"created": SortOrder.DESC})
    runner.update("orders", {"status": "D"}, {"order_id": 12})
"""

from __future__ import annotations

import logging
import re
from datetime import date, datetime, time
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from sqlalchemy import (
    MetaData,
    Table,
    and_,
    column,
    create_engine,
    delete,
    false,
    func,
    insert,
    literal_column,
    not_,
    or_,
    select,
    text,
    true,
    update,
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import NoSuchTableError, SQLAlchemyError

from openmodel.core.constants import (
    FILTER_BETWEEN_MAX,
    FILTER_BETWEEN_MIN,
    FILTER_CONTAINS,
    FILTER_CONTAINS_NOT,
    FILTER_NOT,
    TYPE_DATE,
    TYPE_DATETIME,
    TYPE_NUMERIC,
    TYPE_STRING,
    TYPE_TIME,
    SortOrder,
)
from openmodel.core.exceptions import ModelError, StorageError

if TYPE_CHECKING:
    from openmodel.core.config import StorageSettings
    from openmodel.model.meta_model import MetaModel

logger = logging.getLogger(__name__)

IDENTIFIER_PATTERN = re.compile(r"^\w+$")

Where = Any


class SqlRunner:
    """Runs the SQL statements of the SQL based models and options."""

    def __init__(self, engine: Engine | str, echo: bool = False):
        if isinstance(engine, str):
            engine = create_engine(engine, echo=echo)
        self.engine = engine
        self._metadata = MetaData()
        self._tables: dict[str, Table] = {}

    @classmethod
    def from_settings(cls, settings: StorageSettings) -> SqlRunner:
        """A runner for the configured database URL."""
        return cls(settings.resolve_database_url(), echo=settings.echo_sql)

    def __repr__(self) -> str:
        return f"SqlRunner({self.engine.url!r})"

    def get_table(self, table_name: str) -> Table:
        """The reflected table."""
        if table_name not in self._tables:
            try:
                self._tables[table_name] = Table(table_name, self._metadata, autoload_with=self.engine)
            except NoSuchTableError as e:
                raise StorageError(f"Unknown table {table_name}", table=table_name) from e
            except SQLAlchemyError as e:
                raise StorageError(f"Cannot reflect table {table_name}: {e}", table=table_name) from e
            logger.debug(f"Reflected table {table_name}")
        return self._tables[table_name]

    def clear_tables(self) -> None:
        """Forget the reflected tables, for use after schema changes."""
        self._tables.clear()
        self._metadata = MetaData()

    # ------------------------------------------------------------------
    # Expression building
    # ------------------------------------------------------------------

    @staticmethod
    def _column(meta_model: MetaModel | None, name: str) -> Any:
        if meta_model is not None:
            expression = meta_model.get(name, "column_expression")
            if expression:
                return literal_column(str(expression))
        return column(name)

    def create_where(
        self,
        meta_model: MetaModel | None,
        filter: dict[Any, Any] | None,
        logical_and: bool = True,
    ) -> Where | None:
        """
        Translate a filter dict to a SQL expression.

        Returns None for an empty filter. Callable filter values only
        work on array models and raise a ModelError.
        """
        if not filter:
            return None

        items = filter.items() if isinstance(filter, dict) else enumerate(filter)
        clauses = []
        for name, value in items:
            if callable(value):
                raise ModelError(
                    f"Callable filter on {name} cannot be translated to SQL.",
                    model=meta_model.get_name() if meta_model else None,
                    operation="create_where",
                )

            is_group = isinstance(name, int) and not isinstance(name, bool)

            if isinstance(value, dict) and len(value) == 1 and FILTER_CONTAINS in value:
                clauses.append(self._column(meta_model, name).like(f"%{value[FILTER_CONTAINS]}%"))
            elif isinstance(value, dict) and len(value) == 1 and FILTER_CONTAINS_NOT in value:
                clauses.append(self._column(meta_model, name).not_like(f"%{value[FILTER_CONTAINS_NOT]}%"))
            elif (
                isinstance(value, dict)
                and len(value) == 2
                and FILTER_BETWEEN_MIN in value
                and FILTER_BETWEEN_MAX in value
            ):
                clauses.append(
                    self._column(meta_model, name).between(value[FILTER_BETWEEN_MIN], value[FILTER_BETWEEN_MAX])
                )
            elif isinstance(value, (dict, list, tuple)):
                if is_group:
                    sub = self.create_where(meta_model, value, not logical_and)
                    if sub is not None:
                        clauses.append(sub)
                elif name == FILTER_NOT:
                    sub = self.create_where(meta_model, value, not logical_and)
                    if sub is not None:
                        clauses.append(not_(sub))
                else:
                    values = list(value.values()) if isinstance(value, dict) else list(value)
                    clauses.append(self._column(meta_model, name).in_(values) if values else false())
            elif is_group:
                if isinstance(value, str):
                    clauses.append(text(value))
                else:
                    clauses.append(true() if value else false())
            elif value is None:
                clauses.append(self._column(meta_model, name).is_(None))
            else:
                clauses.append(self._column(meta_model, name) == value)

        if not clauses:
            return None
        if len(clauses) == 1:
            return clauses[0]
        return and_(*clauses) if logical_and else or_(*clauses)

    def create_sort(self, sort: dict[str, Any] | None, meta_model: MetaModel | None = None) -> list[Any]:
        output = []
        for name, direction in (sort or {}).items():
            col = self._column(meta_model, name)
            output.append(col.desc() if direction == SortOrder.DESC else col.asc())
        return output

    def create_columns(self, table_name: str, columns: Any = None) -> list[Any]:
        """
        Select columns.

        Args:
            columns: None for all table columns, a list of names or a dict
                of {alias: column name or SQL expression}
        """
        table = self.get_table(table_name)
        if not columns:
            return list(table.columns)

        items = columns.items() if isinstance(columns, dict) else ((name, name) for name in columns)
        output = []
        for alias, expression in items:
            if isinstance(expression, str) and expression in table.columns:
                col = table.columns[expression]
            elif IDENTIFIER_PATTERN.match(str(expression)):
                col = column(expression)
            else:
                col = literal_column(str(expression))
            output.append(col.label(alias) if alias != expression else col)
        return output

    def _where(self, where: Any) -> Where | None:
        if isinstance(where, dict):
            return self.create_where(None, where)
        return where

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def fetch_rows(
        self,
        table_name: str,
        columns: Any = None,
        where: Any = None,
        sort: dict[str, Any] | None = None,
        offset: int | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """Fetch rows as dicts. A dict where is translated by create_where()."""
        table = self.get_table(table_name)
        stmt = select(*self.create_columns(table_name, columns)).select_from(table)

        where = self._where(where)
        if where is not None:
            stmt = stmt.where(where)
        order = self.create_sort(sort)
        if order:
            stmt = stmt.order_by(*order)
        if offset:
            stmt = stmt.offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)

        try:
            with self.engine.connect() as conn:
                result = conn.execute(stmt)
                return [dict(row._mapping) for row in result]
        except SQLAlchemyError as e:
            raise StorageError(f"Select from {table_name} failed: {e}", table=table_name, operation="fetch") from e

    def fetch_row(self, table_name: str, columns: Any = None, where: Any = None, sort: dict[str, Any] | None = None) -> dict[str, Any]:
        rows = self.fetch_rows(table_name, columns, where, sort, limit=1)
        return rows[0] if rows else {}

    def fetch_count(self, table_name: str, where: Any = None) -> int:
        table = self.get_table(table_name)
        stmt = select(func.count()).select_from(table)
        where = self._where(where)
        if where is not None:
            stmt = stmt.where(where)

        try:
            with self.engine.connect() as conn:
                return int(conn.execute(stmt).scalar() or 0)
        except SQLAlchemyError as e:
            raise StorageError(f"Count on {table_name} failed: {e}", table=table_name, operation="count") from e

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    def _table_values(self, table: Table, values: dict[str, Any]) -> dict[str, Any]:
        return {name: value for name, value in values.items() if name in table.columns}

    def insert(self, table_name: str, values: dict[str, Any]) -> Any:
        """Insert a row and return the generated key, a tuple for compound keys."""
        table = self.get_table(table_name)
        try:
            with self.engine.begin() as conn:
                result = conn.execute(insert(table).values(**self._table_values(table, values)))
                key = result.inserted_primary_key
        except SQLAlchemyError as e:
            raise StorageError(f"Insert into {table_name} failed: {e}", table=table_name, operation="insert") from e

        if key is None:
            return None
        if len(key) == 1:
            return key[0]
        return tuple(key)

    def update(self, table_name: str, values: dict[str, Any], where: Any = None) -> int:
        table = self.get_table(table_name)
        data = self._table_values(table, values)
        if not data:
            return 0

        stmt = update(table).values(**data)
        where = self._where(where)
        if where is not None:
            stmt = stmt.where(where)

        try:
            with self.engine.begin() as conn:
                return conn.execute(stmt).rowcount
        except SQLAlchemyError as e:
            raise StorageError(f"Update of {table_name} failed: {e}", table=table_name, operation="update") from e

    def delete(self, table_name: str, where: Any = None) -> int:
        table = self.get_table(table_name)
        stmt = delete(table)
        where = self._where(where)
        if where is not None:
            stmt = stmt.where(where)

        try:
            with self.engine.begin() as conn:
                return conn.execute(stmt).rowcount
        except SQLAlchemyError as e:
            raise StorageError(f"Delete from {table_name} failed: {e}", table=table_name, operation="delete") from e

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    @staticmethod
    def _base_type(sql_type: Any) -> int:
        try:
            python_type = sql_type.python_type
        except NotImplementedError:
            return TYPE_STRING

        if issubclass(python_type, (int, float, Decimal)):
            return TYPE_NUMERIC
        if issubclass(python_type, datetime):
            return TYPE_DATETIME
        if issubclass(python_type, date):
            return TYPE_DATE
        if issubclass(python_type, time):
            return TYPE_TIME
        return TYPE_STRING

    def get_table_meta_data(self, table_name: str) -> dict[str, dict[str, Any]]:
        """
        Field settings from the table definition.

        Returns:
            {column name: {table, type, key, required, maxlength, default}},
            without the settings that do not apply
        """
        table = self.get_table(table_name)
        output: dict[str, dict[str, Any]] = {}

        for col in table.columns:
            settings: dict[str, Any] = {
                "table": table_name,
                "type": self._base_type(col.type),
            }
            if col.primary_key:
                settings["key"] = True
            elif not col.nullable and col.server_default is None and col.default is None:
                settings["required"] = True

            length = getattr(col.type, "length", None)
            if length:
                settings["maxlength"] = length

            if col.server_default is not None:
                default = getattr(col.server_default, "arg", None)
                if default is not None:
                    settings["default"] = str(getattr(default, "text", default)).strip("'\"")

            output[col.name] = settings

        return output
