"""
filefield Configuration — Load and validate filefield.yaml.

Field-level options (path, types, ...) are declared on each FileField and
validated by FileFieldOptions. Process-wide defaults (file permissions,
global size limit, logging) come from filefield.yaml.

Usage:
    from filefield.engine.config import load_settings, get_settings
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional, Set

import yaml
from pydantic import BaseModel, Field, field_validator

CONFIG_FILENAME = "filefield.yaml"


# ---------------------------------------------------------------------------
# Pydantic models for filefield.yaml
# ---------------------------------------------------------------------------

class UploadsConfig(BaseModel):
    max_upload_size_mb: Optional[int] = None


class StorageConfig(BaseModel):
    chmod: int = 0o644

    @field_validator("chmod", mode="before")
    @classmethod
    def parse_octal(cls, v: Any) -> Any:
        # "0644" / "0o644" arrive from YAML as strings
        if isinstance(v, str):
            return int(v, 8)
        return v


class LoggingConfig(BaseModel):
    level: str = "INFO"
    directory: Optional[str] = None

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        v = v.upper()
        if v not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"logging level must be a standard level name, got '{v}'")
        return v


class Settings(BaseModel):
    """Root model for filefield.yaml."""
    environment: str = "dev"
    uploads: UploadsConfig = UploadsConfig()
    storage: StorageConfig = StorageConfig()
    logging: LoggingConfig = LoggingConfig()

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        if v not in ("dev", "staging", "prod"):
            raise ValueError(f"environment must be dev/staging/prod, got '{v}'")
        return v

    @property
    def max_upload_bytes(self) -> Optional[int]:
        mb = self.uploads.max_upload_size_mb
        return mb * 1024 * 1024 if mb is not None else None


# ---------------------------------------------------------------------------
# Field options
# ---------------------------------------------------------------------------

class FileFieldOptions(BaseModel):
    """Options accepted by FileField. The path itself is checked by FileField.check_path()."""
    path: Optional[str] = None
    delete_old_file: bool = True
    types: Set[str] = Field(default_factory=set)
    default: Optional[str] = None
    max_size: Optional[int] = Field(default=None, ge=0)
    chmod: Optional[int] = None

    @field_validator("types", mode="before")
    @classmethod
    def normalize_types(cls, v: Any) -> Any:
        if v is None:
            return set()
        if isinstance(v, str):
            v = [v]
        return {str(t).strip().lower() for t in v if str(t).strip()}


# ---------------------------------------------------------------------------
# Settings loading
# ---------------------------------------------------------------------------

_settings: Optional[Settings] = None


def _find_project_root() -> Path:
    """Find the project root by looking for filefield.yaml."""
    current = Path.cwd()
    for parent in [current, *current.parents]:
        if (parent / CONFIG_FILENAME).exists():
            return parent
    return current


def load_settings(config_path: Optional[str] = None) -> Settings:
    """
    Load and validate filefield.yaml.

    Args:
        config_path: Explicit path to filefield.yaml. If None, auto-discovers.

    Returns:
        Validated Settings instance (defaults when no file exists).
    """
    global _settings

    if config_path is None:
        config_path = str(_find_project_root() / CONFIG_FILENAME)

    path = Path(config_path)
    if not path.exists():
        _settings = Settings()
        return _settings

    with open(path, "r", encoding="utf-8") as f:
        raw: Dict[str, Any] = yaml.safe_load(f) or {}

    _settings = Settings(
        environment=raw.get("environment", "dev"),
        uploads=raw.get("uploads") or {},
        storage=raw.get("storage") or {},
        logging=raw.get("logging") or {},
    )
    return _settings


def get_settings() -> Settings:
    """Get the currently loaded settings, loading if necessary."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings
