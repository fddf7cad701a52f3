"""Exception hierarchy for clawcron.

Malformed cron expressions are not errors in the functional API: ``validate``
returns False, ``to_human_text`` returns a fixed string and
``get_next_runs`` returns an empty list. Exceptions are reserved for the
object API (``CronExpression.parse``) and for caller mistakes such as an
unknown timezone or a broken configuration file.
"""

from __future__ import annotations


class ClawcronError(Exception):
    """Base class for all clawcron errors."""

    pass


class CronParseError(ClawcronError, ValueError):
    """Raised when cron expression parsing fails."""

    def __init__(self, message: str, expression: str = "", position: int = -1) -> None:
        self.expression = expression
        self.position = position
        super().__init__(message)


class InvalidTimezoneError(ClawcronError, ValueError):
    """Raised when a timezone name cannot be resolved."""

    def __init__(self, timezone: str) -> None:
        self.timezone = timezone
        super().__init__(f"Unknown timezone: {timezone!r}")


class ConfigError(ClawcronError):
    """Base configuration error."""

    pass


class ConfigSourceError(ConfigError):
    """Configuration source error."""

    pass


class JobFileError(ClawcronError):
    """Raised when a cron job dump cannot be read or decoded."""

    pass
