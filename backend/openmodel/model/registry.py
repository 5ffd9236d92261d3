"""
Class registries used by the model loader.

A registry maps short names to classes. Entries may also be dotted
import paths, resolved on first use, so configuration files can name
classes from any module.
"""

from __future__ import annotations

import importlib
import logging
from typing import Any, Generic, TypeVar

from openmodel.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def import_class(path: str) -> type:
    """Import 'package.module.ClassName'."""
    module_name, _, class_name = path.rpartition(".")
    if not module_name:
        raise ConfigurationError(f"Not a dotted class path: {path}", config_key=path)
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigurationError(f"Cannot import module {module_name}: {e}", config_key=path) from e
    try:
        return getattr(module, class_name)
    except AttributeError as e:
        raise ConfigurationError(f"Module {module_name} has no class {class_name}", config_key=path) from e


class ClassRegistry(Generic[T]):
    """Registry of named classes of one kind."""

    def __init__(self, kind: str, base_class: type | None = None, classes: dict[str, Any] | None = None):
        self.kind = kind
        self.base_class = base_class
        self._classes: dict[str, Any] = {}
        for name, cls in (classes or {}).items():
            self.register(name, cls)

    def __repr__(self) -> str:
        return f"ClassRegistry({self.kind!r}, names={self.get_names()})"

    def __contains__(self, name: str) -> bool:
        return self.exists(name)

    def register(self, name: str, cls: type[T] | str) -> None:
        self._classes[name] = cls
        logger.debug(f"Registered {self.kind} {name}")

    def exists(self, name: str) -> bool:
        return name in self._classes

    def get(self, name: str) -> type[T] | None:
        cls = self._classes.get(name)
        if isinstance(cls, str):
            cls = import_class(cls)
            self._classes[name] = cls
        return cls

    def get_or_raise(self, name: str) -> type[T]:
        cls = self.get(name)
        if cls is None:
            raise ConfigurationError(
                f"Unknown {self.kind}: {name}. Valid: {self.get_names()}",
                config_key=name,
            )
        return cls

    def resolve(self, spec: Any) -> type[T]:
        """The class for a class, a registered name or a dotted class path."""
        if isinstance(spec, type):
            cls = spec
        elif isinstance(spec, str):
            cls = self.get(spec) if self.exists(spec) else None
            if cls is None:
                if "." not in spec:
                    self.get_or_raise(spec)
                cls = import_class(spec)
        else:
            raise ConfigurationError(f"Cannot resolve {self.kind} from {spec!r}", config_key=str(spec))

        if self.base_class is not None and not issubclass(cls, self.base_class):
            raise ConfigurationError(
                f"{cls.__name__} is not a {self.base_class.__name__}",
                config_key=str(spec),
            )
        return cls

    def get_names(self) -> list[str]:
        return list(self._classes)

    def clear(self) -> None:
        self._classes.clear()
