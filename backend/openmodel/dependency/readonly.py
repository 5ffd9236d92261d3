"""Dependencies toggling the readonly / disabled settings of fields."""

from __future__ import annotations

from typing import Any

from openmodel.core.converters import is_truthy

from .base import DependencyAbstract


class ReadonlyDependency(DependencyAbstract):
    """
    Sets the effected fields to readonly when a depends-on field has a true value.

    Otherwise the effected settings are removed again.

    Usage:
        dependency = ReadonlyDependency()
        dependency.add_depends_on("locked")
        dependency.add_effected("name", ["readonly", "disabled"])
    """

    default_effects = ["readonly", "disabled"]

    def _any_true(self, context: dict[str, Any]) -> bool:
        return any(is_truthy(context.get(name)) for name in self.get_depends_on())

    def _effected_values(self) -> dict[str, dict[str, Any]]:
        return {field: dict(settings) for field, settings in self.get_effecteds().items()}

    def _uneffected_values(self) -> dict[str, dict[str, Any]]:
        return {
            field: {setting: None for setting in settings}
            for field, settings in self.get_effecteds().items()
        }

    def get_changes(self, context: dict[str, Any], new: bool) -> dict[str, dict[str, Any]]:
        if self._any_true(context):
            return self._effected_values()
        return self._uneffected_values()


class CanEditDependency(ReadonlyDependency):
    """Sets the effected fields to readonly unless a depends-on field has a true value."""

    def get_changes(self, context: dict[str, Any], new: bool) -> dict[str, dict[str, Any]]:
        if self._any_true(context):
            return self._uneffected_values()
        return self._effected_values()
