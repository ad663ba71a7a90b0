"""Configuration loader for the scanner.

Settings come from an optional JSON file, then environment overrides. The file
is optional: with no explicit path and no ``NPM_LOCATOR_CONFIG`` variable the
defaults apply. Recognised keys are ``githubToken``, ``cacheMaxSize``,
``cacheMaxAgeSeconds``, ``requestTimeout``, ``logLevel`` and ``logFormat``.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

CONFIG_PATH_ENV_VAR = "NPM_LOCATOR_CONFIG"
TOKEN_ENV_VAR = "GITHUB_TOKEN"
LOG_LEVEL_ENV_VAR = "NPM_LOCATOR_LOG_LEVEL"
LOG_FORMAT_ENV_VAR = "NPM_LOCATOR_LOG_FORMAT"

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
_LOG_FORMATS = {"console", "json"}


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be loaded or is invalid."""


@dataclass(slots=True, frozen=True)
class Settings:
    """Top-level settings container."""

    github_token: str | None = None
    cache_max_size: int = 1000
    cache_max_age_seconds: float = 3600.0
    request_timeout: float = 10.0
    log_level: str = "INFO"
    log_format: str = "console"

    def __post_init__(self) -> None:
        if isinstance(self.cache_max_size, bool) or not isinstance(self.cache_max_size, int):
            raise ConfigError("'cacheMaxSize' must be an integer")
        if self.cache_max_size < 1:
            raise ConfigError("'cacheMaxSize' must be at least 1")
        if not _is_positive_number(self.cache_max_age_seconds):
            raise ConfigError("'cacheMaxAgeSeconds' must be a positive number")
        if not _is_positive_number(self.request_timeout):
            raise ConfigError("'requestTimeout' must be a positive number")
        if self.log_level not in _LOG_LEVELS:
            known = ", ".join(sorted(_LOG_LEVELS))
            raise ConfigError(f"Invalid 'logLevel' {self.log_level!r}. Expected one of: {known}")
        if self.log_format not in _LOG_FORMATS:
            known = ", ".join(sorted(_LOG_FORMATS))
            raise ConfigError(f"Invalid 'logFormat' {self.log_format!r}. Expected one of: {known}")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Settings:
        """Create Settings from the JSON file's object, validating each field."""
        token = data.get("githubToken")
        if token is not None and not isinstance(token, str):
            raise ConfigError("'githubToken' must be a string")

        log_level = data.get("logLevel", "INFO")
        if not isinstance(log_level, str):
            raise ConfigError("'logLevel' must be a string")

        log_format = data.get("logFormat", "console")
        if not isinstance(log_format, str):
            raise ConfigError("'logFormat' must be a string")

        return cls(
            github_token=token or None,
            cache_max_size=data.get("cacheMaxSize", 1000),
            cache_max_age_seconds=data.get("cacheMaxAgeSeconds", 3600.0),
            request_timeout=data.get("requestTimeout", 10.0),
            log_level=log_level.upper(),
            log_format=log_format.lower(),
        )


def _is_positive_number(value: Any) -> bool:
    return not isinstance(value, bool) and isinstance(value, (int, float)) and value > 0


def _resolve_config_path(path: Path | str | None = None) -> Path | None:
    """Resolve the configuration file path.

    Priority:
    1. Explicit path argument
    2. NPM_LOCATOR_CONFIG environment variable
    3. None (built-in defaults)
    """
    if path is not None:
        return Path(path)

    env_path = os.environ.get(CONFIG_PATH_ENV_VAR)
    if env_path:
        return Path(env_path)

    return None


def _read_config_file(config_path: Path) -> dict[str, Any]:
    if not config_path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")

    try:
        content = config_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read configuration file: {exc}") from exc

    try:
        data = json.loads(content)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid JSON in configuration file: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a JSON object")

    return data


def _apply_env_overrides(settings: Settings) -> Settings:
    overrides: dict[str, Any] = {}

    token = os.environ.get(TOKEN_ENV_VAR, "").strip()
    if token:
        overrides["github_token"] = token

    log_level = os.environ.get(LOG_LEVEL_ENV_VAR, "").strip()
    if log_level:
        overrides["log_level"] = log_level.upper()

    log_format = os.environ.get(LOG_FORMAT_ENV_VAR, "").strip()
    if log_format:
        overrides["log_format"] = log_format.lower()

    return replace(settings, **overrides) if overrides else settings


def load_settings(path: Path | str | None = None) -> Settings:
    """Load and validate settings.

    Args:
        path: Optional path to a JSON config file. If not provided, uses the
            NPM_LOCATOR_CONFIG env var, or the built-in defaults when unset.

    Returns:
        A Settings object with environment overrides applied.

    Raises:
        ConfigError: If the file cannot be read or contains invalid data.
    """
    config_path = _resolve_config_path(path)
    data = _read_config_file(config_path) if config_path is not None else {}
    return _apply_env_overrides(Settings.from_dict(data))
