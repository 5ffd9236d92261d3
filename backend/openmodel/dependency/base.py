"""
Base dependency module.

A dependency computes setting changes for some fields (the effecteds) from
the current values of other fields (the depends-on fields). The meta model
calls get_changes() for every processed row that contains all depends-on
fields and applies the returned {field: {setting: value}} changes.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from openmodel.core.converters import flatten

if TYPE_CHECKING:
    from openmodel.model.meta_model import MetaModel

logger = logging.getLogger(__name__)


class DependencyInterface(ABC):
    """Capabilities the meta model needs from a dependency."""

    @abstractmethod
    def add_depends_on(self, *names: Any) -> DependencyInterface:
        pass

    @abstractmethod
    def add_effecteds(self, effecteds: Any) -> DependencyInterface:
        pass

    @abstractmethod
    def apply_to_model(self, meta_model: MetaModel) -> None:
        pass

    @abstractmethod
    def get_changes(self, context: dict[str, Any], new: bool) -> dict[str, dict[str, Any]]:
        """
        Compute the setting changes for a row.

        Args:
            context: The depends-on values of the current row
            new: Whether the row is new

        Returns:
            {field: {setting: value}}, empty when nothing changes
        """

    @abstractmethod
    def get_depends_on(self) -> dict[str, str]:
        pass

    @abstractmethod
    def get_effected(self, name: str) -> dict[str, str]:
        pass

    @abstractmethod
    def get_effecteds(self) -> dict[str, dict[str, str]]:
        pass


class DependencyAbstract(DependencyInterface):
    """
    Shared bookkeeping for dependencies.

    Subclasses can declare their fields on the class:

        class VatDependency(DependencyAbstract):
            depends_on_fields = ["country"]
            effected_fields = {"vat": ["label", "multiOptions"]}
            default_effects = ["multiOptions"]

            def get_changes(self, context, new):
                ...

    Attributes:
        apply_on_change: Make the form submit when a depends-on field changes
        on_change_js: The script used for that
        default_effects: Settings changed for effecteds given without settings
    """

    apply_on_change = True
    on_change_js = "this.form.submit();"
    default_effects: list[str] = []
    depends_on_fields: list[str] = []
    effected_fields: dict[Any, Any] = {}

    def __init__(self) -> None:
        self._dependent_on: dict[str, str] = {}
        self._effecteds: dict[str, dict[str, str]] = {}
        self._default_effects = {setting: setting for setting in self.default_effects}

        if self.depends_on_fields:
            self.add_depends_on(self.depends_on_fields)
        if self.effected_fields:
            self.add_effecteds(self.effected_fields)

    # ------------------------------------------------------------------
    # Depends on
    # ------------------------------------------------------------------

    def add_depends_on(self, *names: Any) -> DependencyAbstract:
        for name in flatten(names):
            self._dependent_on[name] = name
        return self

    def set_depends_on(self, *names: Any) -> DependencyAbstract:
        self._dependent_on = {}
        return self.add_depends_on(*names)

    def depends_on(self, name: str) -> bool:
        return name in self._dependent_on

    def get_depends_on(self) -> dict[str, str]:
        return dict(self._dependent_on)

    # ------------------------------------------------------------------
    # Effecteds
    # ------------------------------------------------------------------

    def add_effected(self, field_name: str, settings: Any) -> DependencyAbstract:
        """Add a field changed by this dependency with the settings changed."""
        if isinstance(settings, dict):
            settings = list(settings.values())
        elif settings and not isinstance(settings, (list, tuple)):
            settings = [settings]

        effected = self._effecteds.setdefault(field_name, {})
        for setting in flatten(settings or []):
            effected[setting] = setting
        return self

    def add_effecteds(self, effecteds: Any) -> DependencyAbstract:
        """
        Add several effected fields.

        Accepts {field: settings}, or a list of field names, in which case
        each field gets the default effects.
        """
        items = effecteds.items() if isinstance(effecteds, dict) else enumerate(flatten([effecteds]))
        for key, value in items:
            if isinstance(key, int) and not isinstance(value, (list, tuple, dict)):
                self.add_effected(value, self._default_effects)
            else:
                self.add_effected(key, value)
        return self

    def set_effecteds(self, effecteds: Any) -> DependencyAbstract:
        self._effecteds = {}
        return self.add_effecteds(effecteds)

    def get_effected(self, name: str) -> dict[str, str]:
        return dict(self.get_effecteds().get(name, {}))

    def get_effecteds(self) -> dict[str, dict[str, str]]:
        return self._effecteds

    def is_effected(self, name: str) -> bool:
        return name in self.get_effecteds()

    # ------------------------------------------------------------------
    # Model
    # ------------------------------------------------------------------

    def apply_to_model(self, meta_model: MetaModel) -> None:
        """Make the depends-on fields trigger a form submit when they change."""
        if not self.apply_on_change:
            return

        for name in self._dependent_on:
            if meta_model.get(name, "elementClass") == "Checkbox":
                setting = "onclick"
            else:
                setting = "onchange"

            if not meta_model.has(name, setting):
                meta_model.set(name, setting, self.on_change_js)
