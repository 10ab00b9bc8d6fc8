"""Configuration loader for npm-mirror.

Settings are resolved from, highest priority first: explicit overrides passed
by the caller, ``NPM_MIRROR_*`` environment variables, an optional JSON config
file, and built-in defaults. The config file is located through the
``NPM_MIRROR_CONFIG`` environment variable or an explicit path and may contain
any of the keys ``registry``, ``concurrency``, ``timeout``, ``userAgent`` and
``logLevel``.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from .errors import ConfigError
from .registry.client import ADMISSION_QUOTA, DEFAULT_TIMEOUT, USER_AGENT

DEFAULT_REGISTRY = "https://registry.npmjs.org"
CONFIG_PATH_ENV_VAR = "NPM_MIRROR_CONFIG"

_ENV_VARS = {
    "registry": "NPM_MIRROR_REGISTRY",
    "concurrency": "NPM_MIRROR_CONCURRENCY",
    "timeout": "NPM_MIRROR_TIMEOUT",
    "user_agent": "NPM_MIRROR_USER_AGENT",
    "log_level": "NPM_MIRROR_LOG_LEVEL",
}

_FILE_KEYS = {
    "registry": "registry",
    "concurrency": "concurrency",
    "timeout": "timeout",
    "userAgent": "user_agent",
    "logLevel": "log_level",
}


@dataclass(slots=True, frozen=True)
class Settings:
    """Validated runtime configuration."""

    registry: str = DEFAULT_REGISTRY
    concurrency: int = ADMISSION_QUOTA
    timeout: float = DEFAULT_TIMEOUT
    user_agent: str = USER_AGENT
    log_level: str = "WARNING"

    def __post_init__(self) -> None:
        if not self.registry.startswith(("http://", "https://")):
            raise ConfigError(f"Registry must be an http(s) URL: '{self.registry}'")
        if self.concurrency < 1:
            raise ConfigError("Concurrency must be at least 1")
        if self.timeout <= 0:
            raise ConfigError("Timeout must be positive")
        if not self.user_agent:
            raise ConfigError("User agent must be non-empty")
        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ConfigError(f"Unknown log level: '{self.log_level}'")

    @property
    def log_level_number(self) -> int:
        return logging.getLevelName(self.log_level.upper())


def _coerce(key: str, value: Any, source: str) -> Any:
    try:
        if key == "concurrency":
            if isinstance(value, bool):
                raise ValueError(value)
            return int(value)
        if key == "timeout":
            if isinstance(value, bool):
                raise ValueError(value)
            return float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid '{key}' in {source}: {value!r}") from exc
    if not isinstance(value, str):
        raise ConfigError(f"Invalid '{key}' in {source} (must be string)")
    return value


def _resolve_config_path(path: Path | str | None = None) -> Path | None:
    """Resolve the configuration file path.

    Priority:
    1. Explicit path argument
    2. NPM_MIRROR_CONFIG environment variable
    3. No file
    """
    if path is not None:
        return Path(path)

    env_path = os.environ.get(CONFIG_PATH_ENV_VAR)
    if env_path:
        return Path(env_path)

    return None


def _load_file(config_path: Path) -> dict[str, Any]:
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

    unknown = sorted(set(data) - set(_FILE_KEYS))
    if unknown:
        raise ConfigError(f"Unknown configuration key(s): {', '.join(unknown)}")

    return {
        _FILE_KEYS[key]: _coerce(_FILE_KEYS[key], value, str(config_path))
        for key, value in data.items()
    }


def load_settings(path: Path | str | None = None, **overrides: Any) -> Settings:
    """Load and validate settings.

    Args:
        path: Optional path to a JSON config file. If not provided, uses the
            NPM_MIRROR_CONFIG env var when set.
        **overrides: Field values that win over every other source; ``None``
            values are ignored so argparse defaults can be passed straight in.

    Raises:
        ConfigError: If the file cannot be read or any value is invalid.
    """
    values: dict[str, Any] = {}

    config_path = _resolve_config_path(path)
    if config_path is not None:
        values.update(_load_file(config_path))

    for key, env_var in _ENV_VARS.items():
        raw = os.environ.get(env_var, "").strip()
        if raw:
            values[key] = _coerce(key, raw, env_var)

    for key, value in overrides.items():
        if key not in _ENV_VARS:
            raise ConfigError(f"Unknown setting: '{key}'")
        if value is not None:
            values[key] = _coerce(key, value, "arguments")

    return replace(Settings(), **values) if values else Settings()
