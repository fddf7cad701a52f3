"""Configuration management for clawcron.

Engine defaults (timezone, run count, iteration ceiling, strictness) and
logging settings are merged from, lowest priority first:

    EngineConfig defaults
         |
         +---> FileConfigSource (YAML, JSON, TOML)
         +---> EnvConfigSource  (CLAWCRON_* variables)
         |
         v
    EngineConfig (validated, frozen)

Usage:
    >>> from clawcron.infrastructure.config import load_config, set_config
    >>>
    >>> config = load_config("clawcron.yaml")
    >>> config.default_timezone
    'Europe/Madrid'
    >>> set_config(config)  # make it the process-wide default
"""

from __future__ import annotations

import json
import logging
import os
import threading
import tomllib
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any

import yaml

from clawcron.exceptions import ConfigError, ConfigSourceError, InvalidTimezoneError
from clawcron.timezones import resolve_timezone

logger = logging.getLogger(__name__)

ENV_PREFIX = "CLAWCRON"
LOG_FORMATS = ("console", "json")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


# =============================================================================
# Engine Configuration
# =============================================================================


@dataclass(frozen=True)
class EngineConfig:
    """Engine and logging settings.

    Attributes:
        default_timezone: Timezone used when a query does not name one.
        default_count: Number of next runs returned by default.
        max_iterations: Candidate-minute ceiling for next-run searches.
        strict_validation: Reject invalid expressions before rendering or
            projecting them.
        log_level: Level for the ``clawcron`` logger.
        log_format: ``console`` or ``json``.
    """

    default_timezone: str = "UTC"
    default_count: int = 3
    max_iterations: int = 525_600
    strict_validation: bool = False
    log_level: str = "WARNING"
    log_format: str = "console"

    def validate(self) -> list[str]:
        """Return a list of problems (empty if the config is usable)."""
        errors = []
        try:
            resolve_timezone(self.default_timezone)
        except InvalidTimezoneError as e:
            errors.append(str(e))
        if self.default_count <= 0:
            errors.append(f"default_count must be positive, got {self.default_count}")
        if self.max_iterations <= 0:
            errors.append(f"max_iterations must be positive, got {self.max_iterations}")
        if self.log_level.upper() not in LOG_LEVELS:
            errors.append(f"Unknown log level: {self.log_level!r}")
        if self.log_format not in LOG_FORMATS:
            errors.append(f"Unknown log format: {self.log_format!r}")
        return errors

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# =============================================================================
# Configuration Sources
# =============================================================================


class ConfigSource(ABC):
    """A provider of raw configuration values."""

    @abstractmethod
    def load(self) -> dict[str, Any]:
        """Load configuration from source.

        Returns:
            Dictionary of configuration values.
        """
        pass


class EnvConfigSource(ConfigSource):
    """Environment variable configuration source.

    Example:
        CLAWCRON_DEFAULT_TIMEZONE=Europe/Madrid
        CLAWCRON_STRICT_VALIDATION=true

        Will produce:
        {"default_timezone": "Europe/Madrid", "strict_validation": True}
    """

    def __init__(self, prefix: str = ENV_PREFIX, environ: dict[str, str] | None = None) -> None:
        self._prefix = f"{prefix}_"
        self._environ = environ

    def load(self) -> dict[str, Any]:
        environ = os.environ if self._environ is None else self._environ
        result: dict[str, Any] = {}
        for key, value in environ.items():
            if key.startswith(self._prefix):
                result[key[len(self._prefix):].lower()] = self._parse_value(value)
        return result

    def _parse_value(self, value: str) -> Any:
        """Parse string value to appropriate type."""
        if value.lower() in ("true", "yes", "on"):
            return True
        if value.lower() in ("false", "no", "off"):
            return False
        try:
            return int(value)
        except ValueError:
            return value


class FileConfigSource(ConfigSource):
    """File-based configuration source.

    Supports YAML, JSON and TOML, detected from the file extension. Settings
    may sit at the top level or under a ``clawcron`` table.
    """

    def __init__(self, path: str | Path, *, required: bool = True) -> None:
        self._path = Path(path)
        self._required = required

    def load(self) -> dict[str, Any]:
        if not self._path.exists():
            if self._required:
                raise ConfigSourceError(f"Configuration file not found: {self._path}")
            return {}

        content = self._path.read_text(encoding="utf-8")
        suffix = self._path.suffix.lower()

        try:
            if suffix in (".yaml", ".yml"):
                data = yaml.safe_load(content) or {}
            elif suffix == ".json":
                data = json.loads(content)
            elif suffix == ".toml":
                data = tomllib.loads(content)
            else:
                raise ConfigSourceError(f"Unsupported file format: {suffix}")
        except (yaml.YAMLError, json.JSONDecodeError, tomllib.TOMLDecodeError) as e:
            raise ConfigSourceError(f"Failed to load config {self._path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigSourceError(f"Configuration root must be a mapping: {self._path}")
        section = data.get("clawcron", data)
        if not isinstance(section, dict):
            raise ConfigSourceError(f"'clawcron' section must be a mapping: {self._path}")
        return section


# =============================================================================
# Loading
# =============================================================================


def _coerce(values: dict[str, Any]) -> dict[str, Any]:
    known = {f.name: f for f in fields(EngineConfig)}
    result: dict[str, Any] = {}
    for key, value in values.items():
        if key not in known:
            logger.debug("Ignoring unknown config key %r", key)
            continue
        default = known[key].default
        try:
            if isinstance(default, bool):
                if isinstance(value, str):
                    value = value.lower() in ("true", "yes", "1", "on")
                result[key] = bool(value)
            elif isinstance(default, int):
                result[key] = int(value)
            else:
                result[key] = str(value)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid value for {key}: {value!r}") from e
    return result


def load_config(
    path: str | Path | None = None,
    *,
    use_env: bool = True,
    environ: dict[str, str] | None = None,
    **overrides: Any,
) -> EngineConfig:
    """Load and validate an EngineConfig.

    Args:
        path: Optional configuration file.
        use_env: Read ``CLAWCRON_*`` environment variables.
        environ: Environment mapping to read instead of ``os.environ``.
        **overrides: Values applied last.

    Returns:
        Validated EngineConfig.

    Raises:
        ConfigError: If a source fails or the merged config is invalid.
    """
    sources: list[ConfigSource] = []
    if path is not None:
        sources.append(FileConfigSource(path))
    if use_env:
        sources.append(EnvConfigSource(environ=environ))

    merged: dict[str, Any] = {}
    for source in sources:
        merged.update(source.load())
    merged.update({k: v for k, v in overrides.items() if v is not None})

    config = replace(EngineConfig(), **_coerce(merged))
    errors = config.validate()
    if errors:
        raise ConfigError(f"Configuration validation failed: {', '.join(errors)}")
    return config


# =============================================================================
# Global Configuration
# =============================================================================

_config: EngineConfig | None = None
_lock = threading.Lock()


def get_config() -> EngineConfig:
    """Get the process-wide config, loading it from the environment once.

    A broken ``CLAWCRON_*`` environment is logged and replaced by the
    defaults, so engine calls that read the config never raise because of it.
    Use ``load_config`` directly to surface the error.
    """
    global _config

    with _lock:
        if _config is None:
            try:
                _config = load_config()
            except ConfigError as e:
                logger.warning("Ignoring environment configuration: %s", e)
                _config = EngineConfig()
        return _config


def set_config(config: EngineConfig) -> None:
    global _config

    with _lock:
        _config = config


def reset_config() -> None:
    """Forget the process-wide config; the next access reloads it."""
    global _config

    with _lock:
        _config = None
