"""
filefield Error Hierarchy — Structured exceptions for upload handling.

Configuration errors are fatal and raised while a model schema is being
declared. Validation failures are soft: they are recorded on the
Validation object and only turned into an exception when the caller asks
for it (Validation.raise_for_errors(), Model.save()).

Hierarchy:
    FileFieldError
    ├── FileFieldConfigError      — Bad or unwritable upload directory / option
    ├── FileFieldValidationError  — Upload rejected during validation
    └── FileFieldStorageError     — Upload could not be persisted to disk
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


class FileFieldError(Exception):
    """
    Base error for all filefield failures.
    All context is serializable to JSON for logging.
    """

    def __init__(self, message: str, **context: Any):
        self.message = message
        self.field: Optional[str] = context.get("field")
        self.model: Optional[str] = context.get("model")
        self.path: Optional[str] = context.get("path")
        self.error_type: str = self.__class__.__name__
        self.context: Dict[str, Any] = context
        self.timestamp: str = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize error to a JSON-compatible dict."""
        return {
            "error_type": self.error_type,
            "message": self.message,
            "field": self.field,
            "model": self.model,
            "path": self.path,
            "timestamp": self.timestamp,
            "context": {
                k: str(v) for k, v in self.context.items()
                if k not in ("field", "model", "path")
            },
        }

    def to_json(self) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), default=str)

    def __repr__(self) -> str:
        parts = [f"{self.error_type}: {self.message}"]
        if self.model:
            parts.append(f"model={self.model}")
        if self.field:
            parts.append(f"field={self.field}")
        return " | ".join(parts)


class FileFieldConfigError(FileFieldError):
    """Field declared with a missing, non-directory or unwritable path."""
    pass


class FileFieldValidationError(FileFieldError):
    """
    One or more fields failed validation.
    Includes field-level error details: [{"field": ..., "error": ...}].
    """

    def __init__(self, message: str, **context: Any):
        self.validation_errors: List[Dict[str, str]] = context.get("validation_errors") or []
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["validation_errors"] = self.validation_errors
        return d


class FileFieldStorageError(FileFieldError):
    """Moving a staged upload into its directory failed."""

    def __init__(self, message: str, **context: Any):
        self.destination: Optional[str] = context.get("destination")
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["destination"] = self.destination
        return d
