"""Dependency filling multiOptions from a lookup table."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from openmodel.core.constants import SortOrder
from openmodel.core.exceptions import ConfigurationError

from .base import DependencyAbstract

if TYPE_CHECKING:
    from openmodel.model.meta_model import MetaModel
    from openmodel.storage.sql_runner import SqlRunner

logger = logging.getLogger(__name__)


class SqlOptionsDependency(DependencyAbstract):
    """
    Loads the options of a field from a table, filtered by other fields of the row.

    Args:
        field_name: The field receiving the multiOptions
        table_name: The lookup table
        value_column: Column with the option values
        label_column: Column with the option labels
        links: {row field: lookup column} filters, integer keys hold fixed
            filter parts that do not depend on the row
        fixed_filter: Filter always applied to the lookup
        empty_option: Label of the '' option put first, None for no empty option
        sql_runner: The runner executing the lookup
    """

    default_effects = ["multiOptions"]

    def __init__(
        self,
        field_name: str,
        table_name: str,
        value_column: str,
        label_column: str,
        links: dict[Any, str] | None = None,
        fixed_filter: dict[Any, Any] | None = None,
        empty_option: str | None = None,
        sql_runner: SqlRunner | None = None,
    ) -> None:
        self.field_name = field_name
        self.table_name = table_name
        self.value_column = value_column
        self.label_column = label_column
        self.links = links or {}
        self.fixed_filter = fixed_filter or {}
        self.empty_option = empty_option
        self.sql_runner = sql_runner
        self.required = False

        self.depends_on_fields = [field for field in self.links if not isinstance(field, int)]
        self.effected_fields = [field_name]
        super().__init__()

    def apply_to_model(self, meta_model: MetaModel) -> None:
        super().apply_to_model(meta_model)

        self.required = bool(meta_model.get(self.field_name, "required"))
        meta_model.set(self.field_name, multiOptions=self.get_options())

    def get_changes(self, context: dict[str, Any], new: bool) -> dict[str, dict[str, Any]]:
        filter = {}
        for context_field, lookup_field in self.links.items():
            if isinstance(context_field, int):
                filter[context_field] = lookup_field
            elif context.get(context_field) is not None:
                filter[lookup_field] = context[context_field]

        return {self.field_name: {"multiOptions": self.get_options(filter)}}

    def get_options(self, filter: dict[Any, Any] | None = None) -> dict[Any, str]:
        if self.sql_runner is None:
            raise ConfigurationError(
                f"No sql runner set for the options of {self.field_name}",
                config_key="sql_runner",
            )

        options: dict[Any, str] = {}
        if self.empty_option:
            options[""] = self.empty_option

        where = dict(self.fixed_filter)
        where.update(filter or {})
        rows = self.sql_runner.fetch_rows(
            self.table_name,
            {"value": self.value_column, "label": self.label_column},
            where,
            {self.label_column: SortOrder.ASC},
        )
        for row in rows:
            options[row["value"]] = row["label"]
        return options
