"""Bridge producing display values."""

from __future__ import annotations

from datetime import date, datetime, time
from typing import Any, Callable

from openmodel.core.converters import DateFormatConverter, ValueConverter

from .base import BridgeAbstract


def _options_lookup(options: dict[Any, Any]) -> Callable[[Any], Any]:
    def lookup(value: Any) -> Any:
        if value is None:
            return options.get("")
        if isinstance(value, (str, int, float, bool)) and value in options:
            return options[value]
        return value

    return lookup


def _date_formatter(display_format: str, storage_format: str | None) -> Callable[[Any], Any]:
    def format_date(value: Any) -> Any:
        if value is None:
            return None
        if isinstance(value, (date, datetime, time)):
            parsed = value
        elif storage_format and isinstance(value, str):
            parsed = DateFormatConverter.parse(value, storage_format)
        else:
            parsed = DateFormatConverter.parse_any(value)
        if parsed is None:
            return None
        return DateFormatConverter.format(parsed, display_format)

    return format_date


def _number_format(value: Any) -> Any:
    if value is None or not ValueConverter.is_numeric(value):
        return value
    return f"{float(value):,.2f}"


class DisplayBridge(BridgeAbstract):
    """
    Formats values for display.

    Applied per item, in order: the multiOptions label, then one of
    formatFunction, dateFormat or numberFormat and finally markCallback.
    """

    def _compile(self, name: str) -> list[Callable[[Any], Any]]:
        meta = self._meta_model
        output: list[Callable[[Any], Any]] = []

        if meta.has(name, "multiOptions"):
            output.append(_options_lookup(meta.get(name, "multiOptions")))

        if meta.has(name, "formatFunction"):
            output.append(meta.get(name, "formatFunction"))
        elif meta.has(name, "dateFormat"):
            display_format = meta.get(name, "dateFormat")
            if callable(display_format):
                output.append(display_format)
            else:
                output.append(_date_formatter(display_format, meta.get(name, "storageFormat")))
        elif meta.has(name, "numberFormat"):
            number_format = meta.get(name, "numberFormat")
            output.append(number_format if callable(number_format) else _number_format)

        if meta.has(name, "markCallback"):
            output.append(meta.get(name, "markCallback"))

        return output
