"""Configuration and logging for clawcron.

Usage:
    >>> from clawcron.infrastructure import configure_logging, load_config
    >>>
    >>> config = load_config("clawcron.toml")
    >>> configure_logging(config.log_level, config.log_format)
"""

from clawcron.infrastructure.config import (
    ConfigSource,
    EngineConfig,
    EnvConfigSource,
    FileConfigSource,
    get_config,
    load_config,
    reset_config,
    set_config,
)
from clawcron.infrastructure.logging import (
    ConsoleFormatter,
    JSONFormatter,
    configure_logging,
    get_logger,
)

__all__ = [
    # Config
    "ConfigSource",
    "EngineConfig",
    "EnvConfigSource",
    "FileConfigSource",
    "get_config",
    "load_config",
    "reset_config",
    "set_config",
    # Logging
    "ConsoleFormatter",
    "JSONFormatter",
    "configure_logging",
    "get_logger",
]
