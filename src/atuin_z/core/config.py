"""Application configuration management.

Handles loading and validating configuration from multiple sources:
    - TOML/JSON config files
    - Environment variables (ATUIN_Z_* prefix)
    - Default values

Key components:
    - AppConfig: Main configuration model
    - load_config(): Safe config loading with fallback
    - ConfigLoadResult: Metadata about config source
"""

from __future__ import annotations

import json
import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

CONFIG_ENV_VAR = "ATUIN_Z_CONFIG"


class ConfigError(RuntimeError):
    """Raised when the config file cannot be parsed."""


class AppConfig(BaseSettings):
    """Settings for a single atuin-z invocation."""

    model_config = SettingsConfigDict(
        env_prefix="ATUIN_Z_",
        extra="ignore",
        frozen=True,
    )

    log_level: str = Field(default="WARNING", description="Log level for stderr output.")
    include_failed: bool = Field(
        default=False, description="Count commands that exited non-zero as visits."
    )
    busy_timeout: float = Field(
        default=2.0, description="Seconds to wait on a database locked by a writer."
    )
    stat_workers: int = Field(
        default=8, description="Maximum threads used for directory existence checks."
    )
    parallel_stat_threshold: int = Field(
        default=64, description="Candidate count above which existence checks run in parallel."
    )

    @field_validator("busy_timeout")
    @classmethod
    def non_negative_timeout(cls, v: float) -> float:
        if v < 0:
            raise ValueError("busy_timeout must be >= 0")
        return v

    @field_validator("stat_workers", "parallel_stat_threshold")
    @classmethod
    def positive_count(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be >= 1")
        return v

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[
        PydanticBaseSettingsSource,
        PydanticBaseSettingsSource,
        PydanticBaseSettingsSource,
        PydanticBaseSettingsSource,
    ]:
        # Ensure environment variables override config file entries.
        return (env_settings, init_settings, dotenv_settings, file_secret_settings)


@dataclass
class ConfigLoadResult:
    path: Path
    file_loaded: bool
    env_overrides: set[str]
    error: str | None = None


def default_config_path(env_vars: Mapping[str, str]) -> Path:
    xdg = env_vars.get("XDG_CONFIG_HOME")
    base = Path(xdg) if xdg else Path.home() / ".config"
    return base / "atuin-z" / "config.toml"


def _resolve_config_path(config_path: Path | None, env_vars: Mapping[str, str]) -> Path:
    candidate = config_path or env_vars.get(CONFIG_ENV_VAR) or default_config_path(env_vars)
    return Path(candidate).expanduser()


def _read_config_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read {path}: {exc}") from exc

    parser = json.loads if path.suffix.lower() == ".json" else tomllib.loads

    try:
        data = parser(raw)
    except (json.JSONDecodeError, tomllib.TOMLDecodeError) as exc:
        raise ConfigError(f"Syntax error in {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"Config root in {path} must be a mapping.")

    return data


def _detect_env_overrides(env_vars: Mapping[str, str]) -> set[str]:
    prefix = AppConfig.model_config.get("env_prefix", "")
    return {
        field for field in AppConfig.model_fields if f"{prefix}{field}".upper() in env_vars
    }


def _settings_from_env(env_vars: Mapping[str, str]) -> dict[str, str]:
    prefix = AppConfig.model_config.get("env_prefix", "")
    values: dict[str, str] = {}
    for field in AppConfig.model_fields:
        key = f"{prefix}{field}".upper()
        if key in env_vars:
            values[field] = env_vars[key]
    return values


def load_config(
    config_path: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> tuple[AppConfig, ConfigLoadResult]:
    """
    Load configuration with Safe Mode fallback.
    If the file is invalid, returns default config + error message.
    """
    env_vars: Mapping[str, str] = os.environ if env is None else env
    resolved_path = _resolve_config_path(config_path, env_vars)
    env_overrides = _detect_env_overrides(env_vars)

    error: str | None = None
    file_loaded = False
    file_data: dict[str, Any] = {}

    try:
        file_data = _read_config_file(resolved_path)
        file_loaded = resolved_path.exists()
    except ConfigError as exc:
        error = str(exc)

    # Explicit env mappings are applied as init values so the process
    # environment is never consulted for them.
    merged = {**file_data, **_settings_from_env(env_vars)} if env is not None else file_data

    try:
        config = AppConfig(**merged)
    except ValidationError as exc:
        error = f"{error}; {exc}" if error else str(exc)
        config = AppConfig.model_construct()

    load_result = ConfigLoadResult(
        path=resolved_path,
        file_loaded=file_loaded,
        env_overrides=env_overrides,
        error=error,
    )

    return config, load_result
