"""
Model loader.

Creates meta models, data models, bridges, dependencies and type handlers,
resolving short names through its class registries and passing the shared
SQL runner to the classes that take one.

Usage:
    loader = ModelLoader(get_config().model, sql_runner=SqlRunner("sqlite:///app.db"))

    model = loader.create_model(SqlTableModel, "orders", "orders")
    model.meta_model.set("created", label="Created", type=loader.create_type("datetime"))
    bridge = model.get_bridge_for("display")
"""

from __future__ import annotations

import inspect
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml
from pydantic import ValidationError

from openmodel.core.config import ModelSettings, OpenModelConfig, get_config
from openmodel.core.constants import (
    TYPE_CHILD_MODEL,
    TYPE_DATE,
    TYPE_DATETIME,
    TYPE_NOVALUE,
    TYPE_NUMERIC,
    TYPE_STRING,
    TYPE_TIME,
)
from openmodel.core.exceptions import ConfigurationError, DependencyError
from openmodel.dependency import (
    CanEditDependency,
    DependencyInterface,
    ReadonlyDependency,
    SqlOptionsDependency,
    ValueSwitchDependency,
)
from openmodel.infrastructure.logging import log_context
from openmodel.types import (
    AbstractDateType,
    ActivatingMultiType,
    ActivatingYesNoType,
    ConcatenatedType,
    DateTimeType,
    DateType,
    JsonType,
    MaybeTimeType,
    ModelTypeInterface,
    SqlOptionsType,
    SubModelType,
    TimeType,
    YesNoType,
)

from .definitions import ModelDefinition
from .meta_model import MetaModel
from .registry import ClassRegistry

if TYPE_CHECKING:
    from openmodel.bridge.base import BridgeAbstract
    from openmodel.storage.base import DataReader
    from openmodel.storage.sql_runner import SqlRunner

logger = logging.getLogger(__name__)

DEFAULT_DEPENDENCIES = {
    "readonly": ReadonlyDependency,
    "can_edit": CanEditDependency,
    "value_switch": ValueSwitchDependency,
    "sql_options": SqlOptionsDependency,
}

DEFAULT_TYPES = {
    "date": DateType,
    "datetime": DateTimeType,
    "time": TimeType,
    "maybe_time": MaybeTimeType,
    "concatenated": ConcatenatedType,
    "json": JsonType,
    "yes_no": YesNoType,
    "activating_yes_no": ActivatingYesNoType,
    "activating_multi": ActivatingMultiType,
    "sub_model": SubModelType,
    "sql_options": SqlOptionsType,
}

DEFAULT_BRIDGES = {
    "display": "openmodel.bridge.display.DisplayBridge",
}

BASE_TYPE_NAMES = {
    "novalue": TYPE_NOVALUE,
    "string": TYPE_STRING,
    "numeric": TYPE_NUMERIC,
    "child_model": TYPE_CHILD_MODEL,
}

BASE_TYPE_HANDLERS = {
    TYPE_DATE: DateType,
    TYPE_DATETIME: DateTimeType,
    TYPE_TIME: TimeType,
    TYPE_CHILD_MODEL: SubModelType,
}


class ModelLoader:
    """Factory for meta models and everything attached to them."""

    def __init__(self, config: ModelSettings | None = None, sql_runner: SqlRunner | None = None):
        self.config = config or ModelSettings()
        self.sql_runner = sql_runner

        self.dependencies: ClassRegistry[DependencyInterface] = ClassRegistry(
            "dependency", DependencyInterface, DEFAULT_DEPENDENCIES
        )
        self.types: ClassRegistry[ModelTypeInterface] = ClassRegistry("type", ModelTypeInterface, DEFAULT_TYPES)
        self.bridges: ClassRegistry[BridgeAbstract] = ClassRegistry("bridge", None, DEFAULT_BRIDGES)

        self._definitions: dict[str, ModelDefinition] | None = None

    @classmethod
    def from_config(cls, config: OpenModelConfig | None = None) -> ModelLoader:
        """A loader for the model settings, with a SQL runner for the storage settings."""
        from openmodel.storage.sql_runner import SqlRunner

        config = config or get_config()
        return cls(config.model, sql_runner=SqlRunner.from_settings(config.storage))

    def __repr__(self) -> str:
        return f"ModelLoader(types={len(self.types.get_names())}, dependencies={len(self.dependencies.get_names())})"

    def _create(self, cls: type, *args: Any, **kwargs: Any) -> Any:
        """Instantiate cls, adding the SQL runner when cls takes one and it was not passed."""
        if self.sql_runner is not None:
            try:
                signature = inspect.signature(cls)
            except (TypeError, ValueError):
                signature = None
            if signature is not None and "sql_runner" in signature.parameters:
                try:
                    bound = signature.bind_partial(*args, **kwargs)
                except TypeError:
                    bound = None
                if bound is not None and bound.arguments.get("sql_runner") is None:
                    bound.arguments.pop("sql_runner", None)
                    args, kwargs = bound.args, {**bound.kwargs, "sql_runner": self.sql_runner}
        return cls(*args, **kwargs)

    # ------------------------------------------------------------------
    # Meta models and data models
    # ------------------------------------------------------------------

    def create_meta_model(self, name: str) -> MetaModel:
        """A new meta model, built from the definition with that name when there is one."""
        definition = self.get_definitions().get(name)
        if definition is not None:
            return self.create_meta_model_from_definition(definition)

        return MetaModel(name, self.config.linked_defaults, self, self.config.order_increment)

    def create_model(self, model_class: type, meta_model_name: Any = None, *params: Any) -> DataReader:
        """
        Create a data model.

        Args:
            model_class: The data model class
            meta_model_name: Name of the meta model to create. When this is
                not a string it is the first model parameter and the class
                name is used as meta model name.
            params: Other constructor parameters. A MetaModel among them is
                used instead of creating one.
        """
        if not isinstance(meta_model_name, str):
            if meta_model_name is not None:
                params = (meta_model_name, *params)
            meta_model_name = model_class.__name__

        args = list(params)
        if not any(isinstance(param, MetaModel) for param in args):
            meta_model = self.create_meta_model(meta_model_name)
            try:
                names = [
                    parameter.name
                    for parameter in inspect.signature(model_class).parameters.values()
                    if parameter.kind in (parameter.POSITIONAL_ONLY, parameter.POSITIONAL_OR_KEYWORD)
                ]
            except (TypeError, ValueError):
                names = []
            index = names.index("meta_model") if "meta_model" in names else 0
            args.insert(min(index, len(args)), meta_model)

        model = self._create(model_class, *args)
        logger.debug(f"Created {model_class.__name__} for meta model {meta_model_name}")
        return model

    # ------------------------------------------------------------------
    # Bridges, dependencies and types
    # ------------------------------------------------------------------

    def create_bridge(self, identifier: Any, data_model: DataReader, *params: Any) -> BridgeAbstract:
        if isinstance(identifier, str) and identifier in self.config.bridges:
            identifier = self.config.bridges[identifier]

        cls = self.bridges.resolve(identifier)
        bridge = cls(data_model, *params)
        logger.debug(f"Created {cls.__name__} for {data_model.get_name()}")
        return bridge

    def create_dependency(self, spec: Any, *args: Any, **kwargs: Any) -> DependencyInterface:
        """A dependency from a class, a registered name or a dotted class path."""
        try:
            cls = self.dependencies.resolve(spec)
        except ConfigurationError as e:
            raise DependencyError(f"Cannot create dependency from {spec!r}: {e.message}") from e

        return self._create(cls, *args, **kwargs)

    def create_type(self, spec: Any, *args: Any, **kwargs: Any) -> ModelTypeInterface:
        """A type handler from a class, a registered name or a dotted class path."""
        cls = self.types.resolve(spec)

        if isinstance(spec, str) and issubclass(cls, AbstractDateType):
            for key, value in self.config.date_formats.get(spec, {}).items():
                kwargs.setdefault(key, value)

        return self._create(cls, *args, **kwargs)

    def type_for_base_type(self, base_type: int) -> ModelTypeInterface | None:
        """The default type handler for a base type, None when it needs none."""
        cls = BASE_TYPE_HANDLERS.get(base_type)
        if cls is None:
            return None
        return cls()

    # ------------------------------------------------------------------
    # Definitions
    # ------------------------------------------------------------------

    def load_definitions(self, path: str | Path) -> dict[str, ModelDefinition]:
        """
        Read model definitions from a YAML file or a directory of them.

        A file holds one definition or a list of definitions. Missing
        paths are skipped with a warning.
        """
        path = Path(path)
        if not path.exists():
            logger.warning(f"Definitions file not found: {path}")
            return {}

        files = sorted([*path.glob("*.yaml"), *path.glob("*.yml")]) if path.is_dir() else [path]

        definitions: dict[str, ModelDefinition] = {}
        for file in files:
            with open(file, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or []

            for item in data if isinstance(data, list) else [data]:
                try:
                    definition = ModelDefinition.model_validate(item)
                except ValidationError as e:
                    raise ConfigurationError(f"Invalid model definition in {file}: {e}", config_key=str(file)) from e
                definitions[definition.name] = definition

            logger.debug(f"Loaded definitions from {file}")

        if self._definitions is None:
            self._definitions = {}
        self._definitions.update(definitions)
        return definitions

    def get_definitions(self) -> dict[str, ModelDefinition]:
        if self._definitions is None:
            self._definitions = {}
            if self.config.definitions_dir:
                self.load_definitions(self.config.definitions_dir)
        return self._definitions

    def create_meta_model_from_definition(self, definition: ModelDefinition) -> MetaModel:
        with log_context(model=definition.name):
            return self._build_meta_model(definition)

    def _build_meta_model(self, definition: ModelDefinition) -> MetaModel:
        meta_model = MetaModel(definition.name, self.config.linked_defaults, self, self.config.order_increment)

        for field_definition in definition.fields:
            meta_model.set(field_definition.name, field_definition.settings)

            field_type = field_definition.type
            if isinstance(field_type, str) and field_type in BASE_TYPE_NAMES:
                field_type = BASE_TYPE_NAMES[field_type]
            elif isinstance(field_type, str):
                field_type = self.create_type(field_type, *field_definition.type_args)
            if field_type is not None:
                meta_model.set(field_definition.name, type=field_type)

            if field_definition.alias_of:
                meta_model.set_alias(field_definition.name, field_definition.alias_of)

        if definition.keys:
            meta_model.set_keys(definition.keys)

        for key, value in definition.meta.items():
            meta_model.set_meta(key, value)

        for dependency_definition in definition.dependencies:
            dependency = self.create_dependency(
                dependency_definition.type,
                *dependency_definition.args,
                **dependency_definition.kwargs,
            )
            meta_model.add_dependency(
                dependency,
                dependency_definition.depends_on or None,
                dependency_definition.effects or None,
            )

        logger.debug(f"Created meta model {definition.name} with {len(definition.fields)} fields")
        return meta_model
