"""
Exception hierarchy for openmodel.

All errors carry a category, a severity and a details dict so callers
(storage or presentation layers) can decide what to show:
- MetaModelError: lookup misses in strict contexts
- DependencyError: malformed dependency configuration
- ModelError / StorageError: model usage and storage failures
- ConfigurationError: invalid configuration or definitions
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any


class ErrorSeverity(str, Enum):
    """Error severity levels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """Error categories."""
    METADATA = "metadata"
    DEPENDENCY = "dependency"
    MODEL = "model"
    STORAGE = "storage"
    CONFIGURATION = "configuration"
    INTERNAL = "internal"


class OpenModelError(Exception):
    """Base exception for openmodel errors."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.INTERNAL,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        details: dict[str, Any] | None = None,
        recoverable: bool = True,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.category = category
        self.severity = severity
        self.details = details or {}
        self.recoverable = recoverable
        self.timestamp = datetime.now()

    def to_dict(self) -> dict[str, Any]:
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "severity": self.severity.value,
            "details": self.details,
            "recoverable": self.recoverable,
            "timestamp": self.timestamp.isoformat(),
        }


class MetaModelError(OpenModelError):
    """Request for an item or setting that must exist but does not."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        model: str | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {}) or {}
        if field:
            details["field"] = field
        if model:
            details["model"] = model
        kwargs.setdefault("category", ErrorCategory.METADATA)

        super().__init__(message=message, details=details, **kwargs)


class DependencyError(MetaModelError):
    """Dependency configuration errors."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("category", ErrorCategory.DEPENDENCY)
        kwargs.setdefault("severity", ErrorSeverity.HIGH)
        kwargs.setdefault("recoverable", False)
        super().__init__(message, **kwargs)


class ModelError(OpenModelError):
    """Model usage errors."""

    def __init__(
        self,
        message: str,
        model: str | None = None,
        operation: str | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {}) or {}
        if model:
            details["model"] = model
        if operation:
            details["operation"] = operation
        kwargs.setdefault("category", ErrorCategory.MODEL)

        super().__init__(message=message, details=details, **kwargs)


class StorageError(ModelError):
    """Storage-related errors."""

    def __init__(
        self,
        message: str,
        table: str | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {}) or {}
        if table:
            details["table"] = table
        kwargs.setdefault("category", ErrorCategory.STORAGE)
        kwargs.setdefault("severity", ErrorSeverity.HIGH)

        super().__init__(message, details=details, **kwargs)


class ConfigurationError(OpenModelError):
    """Configuration errors."""

    def __init__(
        self,
        message: str,
        config_key: str | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {}) or {}
        if config_key:
            details["config_key"] = config_key

        super().__init__(
            message=message,
            category=ErrorCategory.CONFIGURATION,
            severity=ErrorSeverity.HIGH,
            recoverable=False,
            details=details,
            **kwargs,
        )
