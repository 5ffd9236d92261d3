"""
Date, datetime and time type handlers.

Values are datetime objects after load and strings in the storage format
before save. Formats use the letter notation ('d-m-Y H:i') converted by
DateFormatConverter; the meta model settings 'dateFormat' and
'storageFormat' override the type defaults per field.
"""

from __future__ import annotations

import html
from datetime import date, datetime, time
from typing import TYPE_CHECKING, Any

from openmodel.core.constants import TYPE_DATE, TYPE_DATETIME, TYPE_TIME
from openmodel.core.converters import DateFormatConverter

from .base import AbstractModelType

if TYPE_CHECKING:
    from openmodel.model.meta_model import MetaModel


class AbstractDateType(AbstractModelType):
    """
    Shared date handling.

    Args:
        date_format: Display and input format
        storage_format: Format used in storage
        description: Input hint shown with the field
        size: Input size
    """

    when_date_empty_key = "whenDateEmpty"
    when_date_empty_class_key = "whenDateEmptyClass"
    database_constants = ("CURRENT_TIMESTAMP", "CURRENT_TIME", "CURRENT_DATE", "NOW")

    date_format = "d-m-Y"
    description = "dd-mm-yyyy"
    size = 10
    storage_format = "Y-m-d"

    def __init__(
        self,
        date_format: str | None = None,
        storage_format: str | None = None,
        description: str | None = None,
        size: int | None = None,
    ) -> None:
        if date_format is not None:
            self.date_format = date_format
        if storage_format is not None:
            self.storage_format = storage_format
        if description is not None:
            self.description = description
        if size is not None:
            self.size = size

    def apply(self, meta_model: MetaModel, name: str) -> None:
        self.set_settings(meta_model, name, self.get_settings())
        if meta_model.has(name, "label"):
            meta_model.set(name, elementClass="Date")

        def format_function(value: Any) -> Any:
            return self.format(value, name, meta_model)

        def on_load(value: Any, is_new: bool = False, field_name: str | None = None,
                    context: dict | None = None, is_post: bool = False) -> Any:
            return self.get_date_time_value(value, is_new, name, context or {}, is_post, meta_model)

        def on_save(value: Any, is_new: bool = False, field_name: str | None = None,
                    context: dict | None = None) -> Any:
            return self.get_string_value(value, is_new, name, context or {}, meta_model)

        meta_model.set(name, formatFunction=format_function)
        meta_model.set_on_load(name, on_load)
        meta_model.set_on_save(name, on_save)

    def _formats(self, name: str, meta_model: MetaModel) -> tuple[str, str]:
        return (
            meta_model.get_with_default(name, "storageFormat", self.storage_format),
            meta_model.get_with_default(name, "dateFormat", self.date_format),
        )

    def format(self, value: Any, name: str, meta_model: MetaModel) -> Any:
        storage_format, date_format = self._formats(name, meta_model)
        if not isinstance(value, (date, time)):
            value = self.to_date(value, storage_format, date_format, False)

        if isinstance(value, (date, time)):
            return DateFormatConverter.format(value, date_format)
        if not value:
            return self.get_null_display_value(name, meta_model)
        return value

    def get_extra_settings(self) -> dict[str, Any]:
        return {}

    def get_null_display_value(self, name: str, meta_model: MetaModel) -> Any:
        if meta_model.has(name, self.when_date_empty_key):
            empty = meta_model.get(name, self.when_date_empty_key)
            css_class = meta_model.get(name, self.when_date_empty_class_key)
            if css_class:
                return f'<span class="{html.escape(str(css_class))}">{html.escape(str(empty))}</span>'
            return empty
        return None

    def get_settings(self) -> dict[str, Any]:
        output = self.get_extra_settings()
        for key, value in {
            "dateFormat": self.date_format,
            "description": self.description,
            "size": self.size,
            "storageFormat": self.storage_format,
        }.items():
            output.setdefault(key, value)
        return output

    def get_date_time_value(
        self,
        value: Any,
        is_new: bool,
        name: str | None,
        context: dict[str, Any],
        is_post: bool,
        meta_model: MetaModel,
    ) -> Any:
        if name:
            storage_format, date_format = self._formats(name, meta_model)
            return self.to_date(value, storage_format, date_format, is_post)
        return self.to_date(value, self.storage_format, self.date_format, is_post)

    def get_string_value(
        self,
        value: Any,
        is_new: bool,
        name: str | None,
        context: dict[str, Any],
        meta_model: MetaModel,
    ) -> str | None:
        if name:
            storage_format, date_format = self._formats(name, meta_model)
            return self.to_string(value, storage_format, date_format, True)
        return self.to_string(value, self.storage_format, self.date_format)

    @classmethod
    def is_database_constant(cls, value: Any) -> bool:
        return isinstance(value, str) and value.rstrip("()").upper() in cls.database_constants

    @classmethod
    def to_date(cls, value: Any, storage_format: str, date_format: str, is_post: bool = True) -> Any:
        """
        Convert a value to a datetime.

        Posted values are tried with the display format first, then all
        values with the storage format and finally with the common formats.
        Values that cannot be parsed are returned unchanged.
        """
        if value is None or isinstance(value, datetime):
            return value
        if isinstance(value, date):
            return datetime.combine(value, datetime.min.time())
        if isinstance(value, time):
            return datetime.combine(date.today(), value)
        if value == "":
            return None
        if cls.is_database_constant(value):
            return datetime.now()
        if not isinstance(value, str):
            return value

        if is_post:
            parsed = DateFormatConverter.parse(value, date_format)
            if parsed is not None:
                return parsed

        parsed = DateFormatConverter.parse(value, storage_format)
        if parsed is not None:
            return parsed

        parsed = DateFormatConverter.parse_any(value)
        return value if parsed is None else parsed

    @classmethod
    def to_string(cls, value: Any, storage_format: str, date_format: str, is_post: bool = True) -> str | None:
        """Convert a value to the storage format."""
        if value is None or value == "":
            return None
        if cls.is_database_constant(value):
            return DateFormatConverter.format(datetime.now(), storage_format)

        if not isinstance(value, (date, time)):
            value = cls.to_date(value, storage_format, date_format, is_post)

        if isinstance(value, (date, time)):
            return DateFormatConverter.format(value, storage_format)
        return str(value)


class DateType(AbstractDateType):
    date_format = "d-m-Y"
    description = "dd-mm-yyyy"
    size = 10
    storage_format = "Y-m-d"

    def get_base_type(self) -> int:
        return TYPE_DATE


class DateTimeType(AbstractDateType):
    date_format = "d-m-Y H:i"
    description = "dd-mm-yyyy hh:mm"
    size = 16
    storage_format = "Y-m-d H:i:s"

    def get_base_type(self) -> int:
        return TYPE_DATETIME


class TimeType(AbstractDateType):
    date_format = "H:i"
    description = "hh:mm"
    size = 6
    storage_format = "H:i:s"

    def get_base_type(self) -> int:
        return TYPE_TIME


class MaybeTimeType(DateTimeType):
    """Datetime displayed as a date when the time part is midnight."""

    maybe_date_format = "d-m-Y"
    maybe_time_format = "H:i:s"
    maybe_time_value = "00:00:00"

    def get_settings(self) -> dict[str, Any]:
        output = super().get_settings()
        output["maybeDateFormat"] = self.maybe_date_format
        output["maybeTimeFormat"] = self.maybe_time_format
        output["maybeTimeValue"] = self.maybe_time_value
        return output

    def format(self, value: Any, name: str, meta_model: MetaModel) -> Any:
        storage_format, date_format = self._formats(name, meta_model)
        if not isinstance(value, (date, time)):
            value = self.to_date(value, storage_format, date_format, False)

        if isinstance(value, (date, time)):
            if DateFormatConverter.format(value, self.maybe_time_format) == self.maybe_time_value:
                return DateFormatConverter.format(value, self.maybe_date_format)
            return DateFormatConverter.format(value, date_format)
        if not value:
            return self.get_null_display_value(name, meta_model)
        return value
