"""clawcron - Cron expression engine for the OpenClaw mission-control dashboard."""

from clawcron.exceptions import (
    ClawcronError,
    ConfigError,
    CronParseError,
    InvalidTimezoneError,
    JobFileError,
)
from clawcron.scheduling import (
    CRON_PRESETS,
    CronExpression,
    get_next_runs,
    to_human_text,
    validate,
    validate_expression,
)

__version__ = "0.3.0"

__all__ = [
    "__version__",
    # Engine
    "CronExpression",
    "get_next_runs",
    "to_human_text",
    "validate",
    "validate_expression",
    "CRON_PRESETS",
    # Errors
    "ClawcronError",
    "ConfigError",
    "CronParseError",
    "InvalidTimezoneError",
    "JobFileError",
]
