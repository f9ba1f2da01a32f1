"""Centralized application configuration with schema validation.

This module is intentionally compatibility-first:
- Supports flat environment names (for example ``SHOVELS_DATA_DIR``).
- Supports nested names (for example ``DATASET__DATA_DIR``) for consistency.
- Optionally reads a local ``.env`` file before process env values.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from threading import Lock

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
_PARQUET_COMPRESSIONS = {"zstd", "snappy", "gzip", "brotli", "lz4", "none"}


class LoggingSettings(BaseModel):
    """Repository-wide logging settings."""

    model_config = ConfigDict(frozen=True)

    level: str = Field(default="INFO")
    json_logs: bool = Field(default=False)
    override_root_handlers: bool = Field(default=False)

    @field_validator("level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        text = str(value or "").strip().upper()
        if text in _LOG_LEVELS:
            return text
        return "INFO"


class DatasetConfig(BaseModel):
    """Where the table is read from and where its re-exports are written."""

    model_config = ConfigDict(frozen=True)

    data_dir: str = Field(default="data")
    export_dir: str = Field(default="exports")
    table_path: str | None = Field(default=None, description="Alternate table JSON (defaults to bundled)")
    parquet_compression: str = Field(default="zstd")
    max_rows_per_file: int = Field(default=100_000, ge=1)
    partition_by_shovel: bool = Field(default=False)
    allow_integrity_issues: bool = Field(default=False)

    @field_validator("data_dir", "export_dir", mode="before")
    @classmethod
    def _normalize_required_text(cls, value: object) -> str:
        return str(value or "").strip()

    @field_validator("table_path", mode="before")
    @classmethod
    def _normalize_optional_text(cls, value: object) -> str | None:
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    @field_validator("parquet_compression")
    @classmethod
    def _normalize_compression(cls, value: str) -> str:
        text = str(value or "").strip().lower()
        if text not in _PARQUET_COMPRESSIONS:
            raise ValueError(
                f"dataset.parquet_compression must be one of {sorted(_PARQUET_COMPRESSIONS)}"
            )
        return text


class Settings(BaseModel):
    """Top-level settings model."""

    model_config = ConfigDict(frozen=True)

    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    dataset: DatasetConfig = Field(default_factory=DatasetConfig)

    @classmethod
    def from_env(
        cls,
        *,
        env: Mapping[str, str] | None = None,
        env_file: str = ".env",
    ) -> Settings:
        """Build settings from `.env` then environment variables."""
        runtime_env = os.environ if env is None else env
        merged_env = _merge_env(_load_dotenv(Path(env_file)), runtime_env)
        payload = _build_payload(merged_env)
        return cls.model_validate(payload)


def _load_dotenv(path: Path) -> dict[str, str]:
    """Parse a minimal `.env` file format."""
    if not path.exists() or not path.is_file():
        return {}

    values: dict[str, str] = {}
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, raw_value = line.split("=", 1)
        key_clean = key.strip()
        value = raw_value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
            value = value[1:-1]
        if key_clean:
            values[key_clean] = value
    return values


def _merge_env(dotenv_values: Mapping[str, str], runtime_env: Mapping[str, str]) -> dict[str, str]:
    """Return env map where process env overrides `.env` values."""
    merged = {str(k): str(v) for k, v in dotenv_values.items()}
    for key, value in runtime_env.items():
        merged[str(key)] = str(value)
    return merged


def _first_non_empty(env: Mapping[str, str], *keys: str) -> str | None:
    """Return the first non-empty value for the provided keys."""
    for key in keys:
        value = str(env.get(key, "")).strip()
        if value:
            return value
    return None


def _build_payload(env: Mapping[str, str]) -> dict[str, object]:
    """Build nested settings payload from env values."""
    logging_settings = {
        "level": _first_non_empty(env, "LOGGING__LEVEL", "SHOVELS_LOG_LEVEL"),
        "json_logs": _first_non_empty(env, "LOGGING__JSON_LOGS", "SHOVELS_LOG_JSON"),
        "override_root_handlers": _first_non_empty(
            env, "LOGGING__OVERRIDE_ROOT_HANDLERS", "SHOVELS_LOG_OVERRIDE"
        ),
    }
    dataset = {
        "data_dir": _first_non_empty(env, "DATASET__DATA_DIR", "SHOVELS_DATA_DIR"),
        "export_dir": _first_non_empty(env, "DATASET__EXPORT_DIR", "SHOVELS_EXPORT_DIR"),
        "table_path": _first_non_empty(env, "DATASET__TABLE_PATH", "SHOVELS_TABLE_PATH"),
        "parquet_compression": _first_non_empty(
            env, "DATASET__PARQUET_COMPRESSION", "SHOVELS_PARQUET_COMPRESSION"
        ),
        "max_rows_per_file": _first_non_empty(
            env, "DATASET__MAX_ROWS_PER_FILE", "SHOVELS_MAX_ROWS_PER_FILE"
        ),
        "partition_by_shovel": _first_non_empty(
            env, "DATASET__PARTITION_BY_SHOVEL", "SHOVELS_PARTITION_BY_SHOVEL"
        ),
        "allow_integrity_issues": _first_non_empty(
            env, "DATASET__ALLOW_INTEGRITY_ISSUES", "SHOVELS_ALLOW_INTEGRITY_ISSUES"
        ),
    }
    return {
        "logging": {k: v for k, v in logging_settings.items() if v is not None},
        "dataset": {k: v for k, v in dataset.items() if v is not None},
    }


_SETTINGS_LOCK = Lock()
_SETTINGS_CACHE: Settings | None = None


def get_settings(*, reload: bool = False) -> Settings:
    """Return cached settings, optionally forcing reload from env."""
    global _SETTINGS_CACHE
    with _SETTINGS_LOCK:
        if reload or _SETTINGS_CACHE is None:
            _SETTINGS_CACHE = Settings.from_env()
        return _SETTINGS_CACHE


def clear_settings_cache() -> None:
    """Clear in-process settings cache."""
    global _SETTINGS_CACHE
    with _SETTINGS_LOCK:
        _SETTINGS_CACHE = None


__all__ = [
    "DatasetConfig",
    "LoggingSettings",
    "Settings",
    "get_settings",
    "clear_settings_cache",
    "ValidationError",
]
