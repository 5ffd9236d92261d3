"""
Core Module - shared constants, configuration, converters and exceptions.
"""

from .config import (
    LoggingSettings,
    ModelSettings,
    OpenModelConfig,
    StorageSettings,
    get_config,
    load_config,
    reset_config,
    set_config,
)
from .constants import (
    ALIAS_OF,
    AUTO_SAVE,
    FILTER_BETWEEN_MAX,
    FILTER_BETWEEN_MIN,
    FILTER_CONTAINS,
    FILTER_CONTAINS_NOT,
    FILTER_NOT,
    LOAD_TRANSFORMER,
    NO_SQL,
    REQUEST_ID,
    SAVE_TRANSFORMER,
    SAVE_WHEN_TEST,
    TYPE_CHILD_MODEL,
    TYPE_DATE,
    TYPE_DATETIME,
    TYPE_NOVALUE,
    TYPE_NUMERIC,
    TYPE_STRING,
    TYPE_TIME,
    SortOrder,
)
from .converters import (
    DateFormatConverter,
    ValueConverter,
    flatten,
    is_truthy,
    loose_equals,
    pairs,
    safe_str,
)
from .exceptions import (
    ConfigurationError,
    DependencyError,
    ErrorCategory,
    ErrorSeverity,
    MetaModelError,
    ModelError,
    OpenModelError,
    StorageError,
)

__all__ = [
    "ALIAS_OF",
    "AUTO_SAVE",
    "FILTER_BETWEEN_MAX",
    "FILTER_BETWEEN_MIN",
    "FILTER_CONTAINS",
    "FILTER_CONTAINS_NOT",
    "FILTER_NOT",
    "LOAD_TRANSFORMER",
    "NO_SQL",
    "REQUEST_ID",
    "SAVE_TRANSFORMER",
    "SAVE_WHEN_TEST",
    "TYPE_CHILD_MODEL",
    "TYPE_DATE",
    "TYPE_DATETIME",
    "TYPE_NOVALUE",
    "TYPE_NUMERIC",
    "TYPE_STRING",
    "TYPE_TIME",
    "SortOrder",
    "LoggingSettings",
    "ModelSettings",
    "OpenModelConfig",
    "StorageSettings",
    "get_config",
    "load_config",
    "reset_config",
    "set_config",
    "DateFormatConverter",
    "ValueConverter",
    "flatten",
    "is_truthy",
    "loose_equals",
    "pairs",
    "safe_str",
    "ConfigurationError",
    "DependencyError",
    "ErrorCategory",
    "ErrorSeverity",
    "MetaModelError",
    "ModelError",
    "OpenModelError",
    "StorageError",
]
