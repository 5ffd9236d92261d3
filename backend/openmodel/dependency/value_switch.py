"""
Value switch dependency.

The switches are a nested lookup table with one level per depends-on
field, in depends-on order. The leaves are {field: {setting: value}}:

    dependency = ValueSwitchDependency({
        "NL": {"zip": {"label": "Postcode", "size": 7}},
        "US": {"zip": {"label": "ZIP code", "size": 10}},
    })
    dependency.add_depends_on("country")

A row with country 'NL' changes the label and size of zip, a row with an
unknown country changes nothing.
"""

from __future__ import annotations

from typing import Any

from openmodel.core.converters import is_truthy, loose_equals
from openmodel.core.exceptions import DependencyError

from .base import DependencyAbstract


def _is_zero(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    return value == 0 or value == "0"


class ValueSwitchDependency(DependencyAbstract):
    """Changes settings by looking up the depends-on values in the switches."""

    def __init__(self, switches: dict[Any, Any] | None = None) -> None:
        self._switches: dict[Any, Any] = {}
        self._checked_effected = False
        super().__init__()

        if switches:
            self.add_switches(switches)

    def _check_effect_for(
        self,
        switches: dict[Any, Any],
        depends_on: list[str],
        results: dict[str, dict[str, str]],
    ) -> None:
        if depends_on:
            rest = depends_on[1:]
            for switch in switches.values():
                if not isinstance(switch, dict):
                    raise DependencyError("Incorrect nesting of switches.")
                self._check_effect_for(switch, rest, results)
            return

        for name, values in switches.items():
            if not isinstance(values, dict):
                raise DependencyError("Incorrect nesting of switches.", field=str(name))
            effected = results.setdefault(name, {})
            for key in values:
                effected.setdefault(key, key)

    def _check_effected(self) -> None:
        if self._checked_effected:
            return

        results: dict[str, dict[str, str]] = {}
        self._check_effect_for(self._switches, list(self._dependent_on), results)
        self._effecteds = results
        self._checked_effected = True

    def _find_changes(
        self,
        switches: dict[Any, Any],
        depends_on: list[str],
        context: dict[str, Any],
    ) -> dict[str, dict[str, Any]]:
        if not depends_on:
            return switches

        name, rest = depends_on[0], depends_on[1:]
        if name not in context:
            return {}
        value = context[name]

        if is_truthy(value):
            for key, switch in switches.items():
                if loose_equals(value, key):
                    return self._find_changes(switch, rest, context)
        elif value is None:
            if None in switches:
                return self._find_changes(switches[None], rest, context)
        elif _is_zero(value):
            for key, switch in switches.items():
                if _is_zero(key):
                    return self._find_changes(switch, rest, context)
        elif value == "":
            if "" in switches:
                return self._find_changes(switches[""], rest, context)

        return {}

    def add_depends_on(self, *names: Any) -> ValueSwitchDependency:
        self._checked_effected = False
        super().add_depends_on(*names)
        return self

    def add_effected(self, field_name: Any, settings: Any) -> ValueSwitchDependency:
        """Add or replace one top level switch."""
        self._checked_effected = False
        self._switches[field_name] = settings
        return self

    def add_switches(self, switches: dict[Any, Any]) -> ValueSwitchDependency:
        self._checked_effected = False
        if self._switches:
            for value, switch in switches.items():
                self.add_effected(value, switch)
        else:
            self._switches = dict(switches)
        return self

    def set_switches(self, switches: dict[Any, Any]) -> ValueSwitchDependency:
        self._switches = {}
        return self.add_switches(switches)

    def get_switches(self) -> dict[Any, Any]:
        return self._switches

    def get_changes(self, context: dict[str, Any], new: bool) -> dict[str, dict[str, Any]]:
        self._check_effected()
        return self._find_changes(self._switches, list(self._dependent_on), context)

    def get_effecteds(self) -> dict[str, dict[str, str]]:
        self._check_effected()
        return self._effecteds
