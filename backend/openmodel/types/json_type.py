"""Type storing structured values as JSON text."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from openmodel.core.constants import LOAD_TRANSFORMER, SAVE_TRANSFORMER, TYPE_STRING

from .base import AbstractModelType

if TYPE_CHECKING:
    from openmodel.model.meta_model import MetaModel


def _is_scalar(value: Any) -> bool:
    return isinstance(value, (str, int, float, bool))


class JsonType(AbstractModelType):
    """
    JSON column type.

    Args:
        max_table: Number of list items shown in table view before 'more'
        separator: Separator between list items in table view
        more: Text appended when items are left out in table view
    """

    def __init__(self, max_table: int = 3, separator: str = "<br />", more: str = "...") -> None:
        self.max_table = max_table
        self.separator = separator
        self.more = more

    def apply(self, meta_model: MetaModel, name: str) -> None:
        meta_model.set(name, formatFunction=self.format)
        meta_model.set_on_load(name, self.load_value)
        meta_model.set_on_save(name, self.save_value)

    def apply_table_view(self, meta_model: MetaModel, name: str) -> None:
        meta_model.set(name, formatFunction=self.format_table)

    def format(self, value: Any) -> Any:
        if value is None:
            return ""
        if _is_scalar(value):
            return value
        if isinstance(value, list) and all(_is_scalar(val) for val in value):
            return ", ".join(str(val) for val in value)
        return json.dumps(value, ensure_ascii=False, default=str)

    def format_table(self, value: Any) -> Any:
        if value is None or _is_scalar(value):
            return value
        if isinstance(value, (list, dict)):
            items = list(value.values()) if isinstance(value, dict) else value
            output = [str(val) for val in items[:self.max_table + 1]]
            if len(items) > self.max_table + 1:
                output.append(self.more)
            return self.separator.join(output)
        return json.dumps(value, ensure_ascii=False, default=str)

    def load_value(
        self,
        value: Any,
        is_new: bool = False,
        name: str | None = None,
        context: dict | None = None,
        is_post: bool = False,
    ) -> Any:
        if value is None:
            return None
        if isinstance(value, (list, dict)):
            return value
        if isinstance(value, str):
            return json.loads(value) if value else None
        return None

    def save_value(
        self,
        value: Any,
        is_new: bool = False,
        name: str | None = None,
        context: dict | None = None,
    ) -> str | None:
        if value is None:
            return None
        return json.dumps(value, ensure_ascii=False, default=str)

    def get_base_type(self) -> int:
        return TYPE_STRING

    def get_settings(self) -> dict[str, Any]:
        return {
            "formatFunction": self.format,
            LOAD_TRANSFORMER: self.load_value,
            SAVE_TRANSFORMER: self.save_value,
        }
