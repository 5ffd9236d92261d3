"""Type storing a list of values as a single separated string."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from openmodel.core.constants import LOAD_TRANSFORMER, SAVE_TRANSFORMER, TYPE_STRING

from .base import AbstractModelType

if TYPE_CHECKING:
    from openmodel.model.meta_model import MetaModel


class ConcatenatedType(AbstractModelType):
    """
    Stores ['a', 'b'] as ' a b ' and loads it back as a list.

    Args:
        separator_char: Separator in storage, only the first character is used
        display_separator: Separator used by format()
        value_pad: Put the separator around the stored value too, so a
            LIKE '% a %' search finds whole values
    """

    def __init__(self, separator_char: str = " ", display_separator: str = " ", value_pad: bool = True) -> None:
        self.separator_char = (separator_char + " ")[0]
        self.display_separator = display_separator
        self.value_pad = value_pad
        self.options: dict[Any, Any] | None = None

    def apply(self, meta_model: MetaModel, name: str) -> None:
        meta_model.set(name, formatFunction=self.format)
        meta_model.set_on_load(name, self.load_value)
        meta_model.set_on_save(name, self.save_value)
        self.options = meta_model.get(name, "multiOptions")

    def format(self, value: Any) -> Any:
        if not isinstance(value, (list, tuple)):
            value = self.load_value(value)

        options = self.options or {}
        if isinstance(value, (list, tuple)):
            return self.display_separator.join(str(options.get(val, val)) for val in value)
        return options.get(value, value)

    def get_base_type(self) -> int:
        return TYPE_STRING

    def get_settings(self) -> dict[str, Any]:
        return {
            "formatFunction": self.format,
            LOAD_TRANSFORMER: self.load_value,
            SAVE_TRANSFORMER: self.save_value,
        }

    def load_value(
        self,
        value: Any,
        is_new: bool = False,
        name: str | None = None,
        context: dict | None = None,
        is_post: bool = False,
    ) -> list[Any]:
        if isinstance(value, (list, tuple)):
            return list(value)

        value = "" if value is None else str(value)
        if self.value_pad:
            value = value.strip(self.separator_char)
        if not value:
            return []
        return value.split(self.separator_char)

    def save_value(
        self,
        value: Any,
        is_new: bool = False,
        name: str | None = None,
        context: dict | None = None,
    ) -> Any:
        if isinstance(value, (list, tuple)):
            value = self.separator_char.join(str(val) for val in value)
            if self.value_pad:
                value = f"{self.separator_char}{value}{self.separator_char}"
        return value
