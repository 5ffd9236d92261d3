"""
Value Converters Module.

Provides helpers shared by the meta model, the dependency engine and the
storage collaborators:
- Loose (form data style) truthiness and equality
- Argument normalisation for key/value setting calls
- Conversion of PHP style date format letters to strftime formats

Usage:
    from openmodel.core.converters import ValueConverter, DateFormatConverter

    ValueConverter.is_truthy("0")                 # False
    ValueConverter.loose_equals("20", 20)         # True
    DateFormatConverter.to_strftime("d-m-Y H:i")  # '%d-%m-%Y %H:%M'
"""

from __future__ import annotations

import re
from datetime import date, datetime, time
from typing import Any, Iterable


class ValueConverter:
    """
    Loose value semantics.

    Row data mostly arrives as strings from forms and files, so truthiness
    and equality follow the form data rules: "0" and "" are false and
    "20" equals 20.
    """

    NUMERIC_PATTERN = re.compile(r"^\s*[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?\s*$")

    @staticmethod
    def is_truthy(value: Any) -> bool:
        """False for None, False, 0, 0.0, "", "0" and empty containers."""
        if value is None or value is False:
            return False
        if isinstance(value, str):
            return value not in ("", "0")
        if isinstance(value, (int, float)):
            return value != 0
        if isinstance(value, (list, tuple, dict, set)):
            return len(value) > 0
        return True

    @classmethod
    def is_numeric(cls, value: Any) -> bool:
        if isinstance(value, bool):
            return False
        if isinstance(value, (int, float)):
            return True
        if isinstance(value, str):
            return bool(cls.NUMERIC_PATTERN.match(value))
        return False

    @classmethod
    def loose_equals(cls, left: Any, right: Any) -> bool:
        """Compare two values the way posted form data is compared."""
        if left is None or right is None:
            other = right if left is None else left
            if other is None or other == "":
                return True
            if isinstance(other, str):
                return False
            return not cls.is_truthy(other)

        if isinstance(left, bool) or isinstance(right, bool):
            return cls.is_truthy(left) == cls.is_truthy(right)

        if cls.is_numeric(left) and cls.is_numeric(right):
            return float(left) == float(right)

        if isinstance(left, str) and isinstance(right, (int, float)):
            return False
        if isinstance(right, str) and isinstance(left, (int, float)):
            return False

        return left == right

    @staticmethod
    def to_str(value: Any, default: str | None = None) -> str | None:
        if value is None:
            return default
        if isinstance(value, bool):
            return "1" if value else ""
        return str(value)


def flatten(values: Iterable[Any]) -> list[Any]:
    """Flatten nested lists and tuples, dict values included."""
    result: list[Any] = []
    for value in values:
        if isinstance(value, (list, tuple)):
            result.extend(flatten(value))
        elif isinstance(value, dict):
            result.extend(flatten(list(value.values())))
        elif value is not None:
            result.append(value)
    return result


def pairs(args: Iterable[Any]) -> dict[Any, Any]:
    """
    Normalise setting arguments to a dict.

    Accepts dicts (merged in order) and alternating key, value arguments,
    mixed in any order: pairs(["a", 1, {"b": 2}]) == {"a": 1, "b": 2}.
    """
    result: dict[Any, Any] = {}
    items = list(args)
    i = 0
    while i < len(items):
        item = items[i]
        if isinstance(item, dict):
            result.update(item)
            i += 1
        elif isinstance(item, (list, tuple)) and not isinstance(item, str):
            result.update(pairs(item))
            i += 1
        else:
            result[item] = items[i + 1] if i + 1 < len(items) else None
            i += 2
    return result


class DateFormatConverter:
    """
    Conversion of PHP style date format letters to strftime formats.

    Type settings use the compact letter formats ('d-m-Y', 'Y-m-d H:i:s')
    so they can be shared with other front ends.
    """

    LETTERS = {
        "d": "%d",
        "j": "%d",
        "D": "%a",
        "l": "%A",
        "N": "%u",
        "w": "%w",
        "z": "%j",
        "W": "%W",
        "F": "%B",
        "M": "%b",
        "m": "%m",
        "n": "%m",
        "Y": "%Y",
        "y": "%y",
        "a": "%p",
        "A": "%p",
        "g": "%I",
        "h": "%I",
        "G": "%H",
        "H": "%H",
        "i": "%M",
        "s": "%S",
        "u": "%f",
        "e": "%Z",
        "T": "%Z",
        "O": "%z",
        "P": "%z",
    }

    COMMON_FORMATS = [
        "%Y-%m-%d",
        "%Y/%m/%d",
        "%Y%m%d",
        "%Y-%m-%d %H:%M:%S",
        "%Y/%m/%d %H:%M:%S",
        "%Y-%m-%dT%H:%M:%S",
        "%Y-%m-%dT%H:%M:%SZ",
        "%Y-%m-%dT%H:%M:%S%z",
        "%H:%M:%S",
        "%H:%M",
    ]

    _cache: dict[str, str] = {}

    @classmethod
    def to_strftime(cls, php_format: str) -> str:
        if php_format in cls._cache:
            return cls._cache[php_format]

        output = []
        escaped = False
        for char in php_format:
            if escaped:
                output.append("%%" if char == "%" else char)
                escaped = False
            elif char == "\\":
                escaped = True
            elif char in cls.LETTERS:
                output.append(cls.LETTERS[char])
            elif char == "%":
                output.append("%%")
            else:
                output.append(char)

        result = "".join(output)
        cls._cache[php_format] = result
        return result

    @classmethod
    def parse(cls, value: str, php_format: str) -> datetime | None:
        """Parse a string with a letter format, None when it does not match."""
        try:
            return datetime.strptime(value.strip(), cls.to_strftime(php_format))
        except ValueError:
            return None

    @classmethod
    def parse_any(cls, value: Any) -> datetime | None:
        """
        Parse a value in one of the common formats.

        Args:
            value: A string, date or datetime

        Returns:
            The datetime, or None when the value cannot be parsed
        """
        if isinstance(value, datetime):
            return value
        if isinstance(value, date):
            return datetime.combine(value, datetime.min.time())
        if not isinstance(value, str):
            return None

        cleaned = value.strip()
        if not cleaned:
            return None

        for fmt in cls.COMMON_FORMATS:
            try:
                return datetime.strptime(cleaned, fmt)
            except ValueError:
                continue

        try:
            return datetime.fromisoformat(cleaned)
        except ValueError:
            return None

    UNPADDED = {
        "j": lambda value: str(value.day),
        "n": lambda value: str(value.month),
        "G": lambda value: str(value.hour),
        "g": lambda value: str(value.hour % 12 or 12),
    }

    @classmethod
    def format(cls, value: date | datetime | time, php_format: str) -> str:
        """Format a value, writing j, n, G and g without leading zeros."""
        if not any(letter in php_format for letter in cls.UNPADDED):
            return value.strftime(cls.to_strftime(php_format))

        output = []
        escaped = False
        for char in php_format:
            if escaped:
                output.append(char)
                escaped = False
            elif char == "\\":
                escaped = True
            elif char in cls.UNPADDED:
                output.append(cls.UNPADDED[char](value))
            elif char in cls.LETTERS:
                output.append(value.strftime(cls.LETTERS[char]))
            else:
                output.append(char)
        return "".join(output)


def safe_str(value: Any, default: str | None = None) -> str | None:
    """Safely convert value to string."""
    return ValueConverter.to_str(value, default)


def is_truthy(value: Any) -> bool:
    """Loose truthiness, see ValueConverter.is_truthy."""
    return ValueConverter.is_truthy(value)


def loose_equals(left: Any, right: Any) -> bool:
    """Loose equality, see ValueConverter.loose_equals."""
    return ValueConverter.loose_equals(left, right)
