"""
Type handlers.

Type handlers install settings, load / save conversions and display
formatting on a meta model field.
"""

from .base import AbstractModelType, AbstractUntypedType, ModelTypeInterface, OverwritingType
from .concatenated import ConcatenatedType
from .date import AbstractDateType, DateTimeType, DateType, MaybeTimeType, TimeType
from .json_type import JsonType
from .sub_model import SqlOptionsType, SubModelType
from .yes_no import ACTIVATING_VALUE, DEACTIVATING_VALUE, ActivatingMultiType, ActivatingYesNoType, YesNoType

__all__ = [
    "ModelTypeInterface",
    "AbstractModelType",
    "AbstractUntypedType",
    "OverwritingType",
    "AbstractDateType",
    "DateType",
    "DateTimeType",
    "TimeType",
    "MaybeTimeType",
    "ConcatenatedType",
    "JsonType",
    "YesNoType",
    "ActivatingYesNoType",
    "ActivatingMultiType",
    "ACTIVATING_VALUE",
    "DEACTIVATING_VALUE",
    "SubModelType",
    "SqlOptionsType",
]
