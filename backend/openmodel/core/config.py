"""
Unified Configuration System.

Provides configuration for model loading, storage and logging,
supporting environment variables, YAML files, and programmatic configuration.

Usage:
    from openmodel.core import get_config, load_config

    config = load_config("openmodel.yaml")

    loader = ModelLoader.from_config(config)
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass
class StorageSettings:
    """
    Storage settings.

    Attributes:
        database_url: SQLAlchemy database URL used by the SQL runner
        echo_sql: Whether to echo SQL statements
    """
    database_url: str = "sqlite:///:memory:"
    echo_sql: bool = False

    def resolve_database_url(self) -> str:
        """Resolve database URL from environment variable if needed."""
        if self.database_url.startswith("${") and self.database_url.endswith("}"):
            env_var = self.database_url[2:-1]
            return os.environ.get(env_var, self.database_url)
        return self.database_url


@dataclass
class LoggingSettings:
    """
    Logging settings.

    Attributes:
        level: Log level
        structured: Use JSON lines instead of the human formatter
        file: Optional log file path
    """
    level: str = "INFO"
    structured: bool = False
    file: str | None = None


@dataclass
class ModelSettings:
    """
    Settings used when creating meta models and bridges.

    Attributes:
        order_increment: Step between the order values of new items
        linked_defaults: {setting: {value: {setting: default}}} injected on set
        bridges: Bridge identifier to registered name or dotted class path
        definitions_dir: Directory with YAML model definitions
        date_formats: Per type name overrides of date_format / storage_format
    """
    order_increment: int = 10
    linked_defaults: dict[str, dict[Any, dict[str, Any]]] = field(default_factory=dict)
    bridges: dict[str, str] = field(default_factory=dict)
    definitions_dir: str | None = None
    date_formats: dict[str, dict[str, str]] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "order_increment": self.order_increment,
            "linked_defaults": self.linked_defaults,
            "bridges": self.bridges,
            "definitions_dir": self.definitions_dir,
            "date_formats": self.date_formats,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ModelSettings:
        try:
            order_increment = int(data.get("order_increment", 10))
        except (TypeError, ValueError) as e:
            raise ConfigurationError(
                f"Invalid order increment: {data.get('order_increment')}",
                config_key="model.order_increment",
            ) from e
        if order_increment <= 0:
            raise ConfigurationError(
                "Order increment must be positive",
                config_key="model.order_increment",
            )

        return cls(
            order_increment=order_increment,
            linked_defaults=data.get("linked_defaults", {}) or {},
            bridges=data.get("bridges", {}) or {},
            definitions_dir=data.get("definitions_dir"),
            date_formats=data.get("date_formats", {}) or {},
        )


@dataclass
class OpenModelConfig:
    """
    Complete configuration.

    Attributes:
        version: Configuration version
        model: Meta model settings
        storage: Storage settings
        logging: Logging settings
    """
    version: str = "1.0"
    model: ModelSettings = field(default_factory=ModelSettings)
    storage: StorageSettings = field(default_factory=StorageSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "version": self.version,
            "model": self.model.to_dict(),
            "storage": {
                "database_url": self.storage.database_url,
                "echo_sql": self.storage.echo_sql,
            },
            "logging": {
                "level": self.logging.level,
                "structured": self.logging.structured,
                "file": self.logging.file,
            },
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> OpenModelConfig:
        """Create from dictionary."""
        model_data = data.get("model", {})
        model = ModelSettings.from_dict(model_data) if model_data else ModelSettings()

        storage_data = data.get("storage", {})
        storage = StorageSettings(**storage_data) if storage_data else StorageSettings()

        logging_data = data.get("logging", {})
        log_settings = LoggingSettings(**logging_data) if logging_data else LoggingSettings()

        return cls(
            version=str(data.get("version", "1.0")),
            model=model,
            storage=storage,
            logging=log_settings,
        )


def load_config(
    config_path: str | Path | None = None,
    env_prefix: str = "OPENMODEL_",
) -> OpenModelConfig:
    """
    Load configuration from file and environment.

    Args:
        config_path: Path to config file (YAML or JSON)
        env_prefix: Environment variable prefix

    Returns:
        Loaded configuration
    """
    config_data: dict[str, Any] = {}

    if config_path:
        path = Path(config_path)
        if path.exists():
            with open(path, "r", encoding="utf-8") as f:
                if path.suffix in (".yaml", ".yml"):
                    config_data = yaml.safe_load(f) or {}
                elif path.suffix == ".json":
                    config_data = json.load(f)
                else:
                    logger.warning(f"Unknown config format: {path.suffix}")
        else:
            logger.debug(f"Config file not found, using defaults: {path}")

    _apply_env_overrides(config_data, env_prefix)

    return OpenModelConfig.from_dict(config_data)


def _apply_env_overrides(config: dict[str, Any], prefix: str) -> None:
    """Apply environment variable overrides to config."""
    env_mappings = {
        f"{prefix}DATABASE_URL": ("storage", "database_url"),
        f"{prefix}LOG_LEVEL": ("logging", "level"),
        f"{prefix}ORDER_INCREMENT": ("model", "order_increment"),
        f"{prefix}DEFINITIONS_DIR": ("model", "definitions_dir"),
    }

    for env_var, config_path in env_mappings.items():
        value = os.environ.get(env_var)
        if value:
            section, key = config_path
            if section not in config:
                config[section] = {}
            config[section][key] = value


_global_config: OpenModelConfig | None = None


def get_config() -> OpenModelConfig:
    """Get the global configuration."""
    global _global_config
    if _global_config is None:
        config_path = os.environ.get("OPENMODEL_CONFIG", "config/openmodel.yaml")
        _global_config = load_config(config_path)
    return _global_config


def set_config(config: OpenModelConfig) -> None:
    """Set the global configuration."""
    global _global_config
    _global_config = config


def reset_config() -> None:
    """Forget the global configuration so the next get_config() reloads it."""
    global _global_config
    _global_config = None
