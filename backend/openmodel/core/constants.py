"""
Shared constants for meta models, filters and storage.
"""

from enum import Enum


TYPE_NOVALUE = 0
TYPE_STRING = 1
TYPE_NUMERIC = 2
TYPE_DATE = 3
TYPE_DATETIME = 4
TYPE_TIME = 5
TYPE_CHILD_MODEL = 6

BASE_TYPES = (
    TYPE_NOVALUE,
    TYPE_STRING,
    TYPE_NUMERIC,
    TYPE_DATE,
    TYPE_DATETIME,
    TYPE_TIME,
    TYPE_CHILD_MODEL,
)

# Filter markers
FILTER_CONTAINS = "like"
FILTER_CONTAINS_NOT = "notlike"
FILTER_BETWEEN_MIN = "min"
FILTER_BETWEEN_MAX = "max"
FILTER_NOT = "not"

# Item settings with a special meaning
ALIAS_OF = "alias_of"
AUTO_SAVE = "auto_save"
LOAD_TRANSFORMER = "load_transformer"
SAVE_TRANSFORMER = "save_transformer"
SAVE_WHEN_TEST = "save_when_test"
NO_SQL = "noSql"

REQUEST_ID = "id"


class SortOrder(str, Enum):
    """Sort direction."""
    ASC = "asc"
    DESC = "desc"
