"""
Dependency engine.

Dependencies compute setting changes for fields from the values of other
fields in the current row.
"""

from .base import DependencyAbstract, DependencyInterface
from .readonly import CanEditDependency, ReadonlyDependency
from .sql_options import SqlOptionsDependency
from .value_switch import ValueSwitchDependency

__all__ = [
    "DependencyInterface",
    "DependencyAbstract",
    "ReadonlyDependency",
    "CanEditDependency",
    "ValueSwitchDependency",
    "SqlOptionsDependency",
]
