"""Types for fields holding nested rows or options from a lookup table."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from openmodel.core.constants import NO_SQL, TYPE_CHILD_MODEL
from openmodel.dependency.sql_options import SqlOptionsDependency

from .base import AbstractModelType, AbstractUntypedType

if TYPE_CHECKING:
    from openmodel.model.meta_model import MetaModel


class SubModelType(AbstractModelType):
    """Field holding the rows of a sub model, not stored in the parent table."""

    def get_base_type(self) -> int:
        return TYPE_CHILD_MODEL

    def get_settings(self) -> dict[str, Any]:
        return {NO_SQL: True}


class SqlOptionsType(AbstractUntypedType):
    """
    Select field with options from a lookup table.

    Usage:
        meta.set("city", label="City", type=SqlOptionsType(
            "cities", "city_id", "city_name", links={"country": "city_country"},
        ))

    The options are reloaded per row, filtered on the linked fields.
    """

    EMPTY_OPTION = "emptyOption"

    def __init__(
        self,
        table_name: str,
        value_column: str,
        label_column: str | None = None,
        links: dict[Any, str] | None = None,
        empty_option: str | None = None,
        fixed_filter: dict[Any, Any] | None = None,
    ) -> None:
        super().__init__()
        self.table_name = table_name
        self.value_column = value_column
        self.label_column = label_column or value_column
        self.links = links or {}
        self.empty_option = empty_option
        self.fixed_filter = fixed_filter or {}

    def apply(self, meta_model: MetaModel, name: str) -> None:
        super().apply(meta_model, name)

        if self.empty_option is None:
            self.empty_option = meta_model.get_with_default(name, self.EMPTY_OPTION, None)

        meta_model.add_dependency([
            SqlOptionsDependency,
            name,
            self.table_name,
            self.value_column,
            self.label_column,
            self.links,
            self.fixed_filter,
            self.empty_option,
        ])

    def get_settings(self) -> dict[str, Any]:
        return {"elementClass": "Select"}
