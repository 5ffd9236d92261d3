"""
Base type handler module.

A type handler installs settings and conversions for one field of a meta
model. Passing a handler as the 'type' setting applies it:

    meta.set("birthday", label="Birthday", type=DateType())

after which 'type' holds the handler's base type constant.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from openmodel.core.constants import TYPE_STRING

if TYPE_CHECKING:
    from openmodel.model.meta_model import MetaModel


class ModelTypeInterface(ABC):
    """What the meta model and the loader need from a type handler."""

    @abstractmethod
    def apply(self, meta_model: MetaModel, name: str) -> None:
        pass

    @abstractmethod
    def get_base_type(self) -> int:
        pass

    @abstractmethod
    def get_settings(self) -> dict[str, Any]:
        pass


class OverwritingType(ModelTypeInterface):
    """Marker for types whose settings overwrite the existing field settings."""


class AbstractModelType(ModelTypeInterface):
    """
    Type handler setting its settings on the field.

    Settings the field already has are kept, unless the handler is an
    OverwritingType.
    """

    def apply(self, meta_model: MetaModel, name: str) -> None:
        self.set_settings(meta_model, name, self.get_settings())

    def set_settings(self, meta_model: MetaModel, name: str, settings: dict[str, Any]) -> None:
        if not isinstance(self, OverwritingType):
            settings = {key: value for key, value in settings.items() if not meta_model.has(name, key)}
        meta_model.set(name, settings)

    def get_setting(self, name: str) -> Any:
        return self.get_settings().get(name, [])


class AbstractUntypedType(AbstractModelType):
    """Type handler keeping the base type the field already had."""

    def __init__(self) -> None:
        self.original_type = TYPE_STRING

    def apply(self, meta_model: MetaModel, name: str) -> None:
        self.original_type = meta_model.get_with_default(name, "type", self.original_type)
        super().apply(meta_model, name)

    def get_base_type(self) -> int:
        return self.original_type
