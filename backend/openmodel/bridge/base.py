"""
Bridge base class.

A bridge turns the settings of a meta model into output for one purpose,
for example display. Per field the settings are compiled once into a list
of functions that are applied to the value in order.

Modes:
    MODE_LAZY: values are LateBridgeFormat objects resolved against the repeater
    MODE_ROWS: same as lazy, for multi row output
    MODE_SINGLE_ROW: values are formatted directly from the row set with set_row()
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Callable, Iterable

from openmodel.core.exceptions import ConfigurationError, MetaModelError
from openmodel.model.meta_model import LateValue

from .late import LateBridgeFormat, RowCursor

if TYPE_CHECKING:
    from openmodel.storage.base import DataReader

logger = logging.getLogger(__name__)


class BridgeAbstract(ABC):
    """Base class for bridges."""

    MODE_LAZY = 0
    MODE_ROWS = 1
    MODE_SINGLE_ROW = 2

    MODES = (MODE_LAZY, MODE_ROWS, MODE_SINGLE_ROW)

    def __init__(self, data_model: DataReader):
        self._data_model = data_model
        self._meta_model = data_model.get_meta_model()
        self._chained_bridge: BridgeAbstract | None = None
        self._compilations: dict[str, list[Callable[[Any], Any]]] = {}
        self._formatted: dict[str, Any] = {}
        self._data: dict[str, Any] | None = None
        self._repeater: RowCursor | None = None
        self.mode = self.MODE_LAZY

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        return self.get_formatted(name)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._meta_model.get_name()!r}, mode={self.mode})"

    def check_name(self, name: str, throw_error: bool = True) -> str:
        """The item name for name or a key alias."""
        if self._meta_model.has(name):
            return name

        keys = self._meta_model.get_keys()
        if name in keys:
            return keys[name]

        if throw_error:
            raise MetaModelError(
                f"Request for unknown item {name} from model {self._meta_model.get_name()}.",
                field=name,
                model=self._meta_model.get_name(),
            )
        return name

    @abstractmethod
    def _compile(self, name: str) -> list[Callable[[Any], Any]]:
        """The functions formatting a value of the item, in order."""

    def format(self, name: str, value: Any) -> Any:
        if name not in self._compilations:
            compilation = []
            if self._chained_bridge is not None:
                compilation.extend(self._chained_bridge._compile(name))
            compilation.extend(self._compile(name))
            self._compilations[name] = compilation

        for function in self._compilations[name]:
            value = function(value)
        return value

    def get_formatted(self, name: str) -> Any:
        if name in self._formatted:
            return self._formatted[name]

        field_name = self.check_name(name)
        self._meta_model.get(field_name)

        if self.mode == self.MODE_SINGLE_ROW and self._data and self._data.get(field_name) is not None:
            value = self.format(field_name, self._data[field_name])
        else:
            value = LateBridgeFormat(self, field_name)

        self._formatted[name] = value
        if field_name != name:
            self._formatted[field_name] = value
        return value

    def get_late(self, name: str) -> LateValue:
        """The raw value of the item in the current repeater row, computed on resolve()."""
        name = self.check_name(name, False)
        self._meta_model.get(name)
        return LateValue(self.get_late_value, name)

    def get_late_value(self, name: str) -> Any:
        current = self.get_repeater().current()
        if current:
            return current.get(name)
        return None

    def get_mode(self) -> int:
        return self.mode

    def set_mode(self, mode: int) -> BridgeAbstract:
        if mode not in self.MODES:
            raise ConfigurationError(f"Illegal bridge mode {mode}.", config_key="mode")

        self.mode = mode
        if self._chained_bridge is not None:
            self._chained_bridge.mode = mode
        return self

    def get_model(self) -> DataReader:
        return self._data_model

    def get_meta_model(self):
        return self._meta_model

    def set_chained_bridge(self, bridge: BridgeAbstract) -> BridgeAbstract:
        """Run the compilation of another bridge before this one."""
        self._chained_bridge = bridge
        self._compilations = {}
        return self

    def get_repeater(self) -> RowCursor:
        if self._repeater is None:
            if self._chained_bridge is not None and self._chained_bridge.has_repeater():
                self.set_repeater(self._chained_bridge.get_repeater())
            else:
                self.set_repeater(self._data_model.load_repeatable() or [])
        return self._repeater

    def has_repeater(self) -> bool:
        return self._repeater is not None or (
            self._chained_bridge is not None and self._chained_bridge.has_repeater()
        )

    def set_repeater(self, repeater: RowCursor | Iterable[dict[str, Any]]) -> BridgeAbstract:
        if not isinstance(repeater, RowCursor):
            repeater = RowCursor(repeater)

        self._repeater = repeater
        if self._chained_bridge is not None:
            self._chained_bridge._repeater = repeater
        return self

    def get_row(self) -> dict[str, Any]:
        if self._data is None:
            self.set_row()
        return self._data

    def set_row(self, row: dict[str, Any] | None = None) -> BridgeAbstract:
        """Switch to single row mode, loading the first row when none is passed."""
        self.set_mode(self.MODE_SINGLE_ROW)

        if row is None:
            self._meta_model.track_usage(False)
            row = self._data_model.load_first() or {}

        self._data = row
        self._formatted = {}
        if self._chained_bridge is not None:
            self._chained_bridge._data = row

        return self.set_repeater([row])
