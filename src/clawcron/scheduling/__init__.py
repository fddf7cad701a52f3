"""Cron scheduling for the mission-control dashboard.

Features:
    - Standard 5-field cron (minute, hour, day, month, weekday)
    - Validation with per-field error reasons
    - Plain-English descriptions
    - Bounded next-run projection in any IANA timezone
    - Dashboard presets
    - Display data and weekly calendar buckets for stored job records

Syntax Reference:
    Field         Values    Special Characters
    ──────────────────────────────────────────
    Minute        0-59      * / , -
    Hour          0-23      * / , -
    Day of Month  1-31      * / , -
    Month         1-12      * / , -
    Day of Week   0-6       * / , -   (0 = Sunday)

Usage:
    >>> from clawcron.scheduling import get_next_runs, to_human_text, validate
    >>>
    >>> validate("0 9 * * 1-5")
    True
    >>> to_human_text("0 9 * * 1")
    'Every Monday at 9:00 AM'
    >>> get_next_runs("0 8 * * *", 3, timezone="Europe/Madrid")
"""

from clawcron.scheduling.cron import (
    # Core
    CronExpression,
    CronField,
    CronFieldType,
    FieldKind,
    # Parser
    CronParser,
    CronParseError,
    # Iterator
    CronIterator,
    # Functional API
    get_field_values,
    get_next_runs,
    validate,
    validate_expression,
    MAX_ITERATIONS,
)
from clawcron.scheduling.humanize import to_human_text
from clawcron.scheduling.presets import (
    CRON_PRESETS,
    CronPreset,
    get_preset,
    list_presets,
)
from clawcron.scheduling.jobs import (
    JobSchedule,
    describe_job,
    describe_jobs,
    load_jobs,
    week_grid,
)

__all__ = [
    # Core
    "CronExpression",
    "CronField",
    "CronFieldType",
    "FieldKind",
    # Parser
    "CronParser",
    "CronParseError",
    # Iterator
    "CronIterator",
    # Functional API
    "get_field_values",
    "get_next_runs",
    "to_human_text",
    "validate",
    "validate_expression",
    "MAX_ITERATIONS",
    # Presets
    "CRON_PRESETS",
    "CronPreset",
    "get_preset",
    "list_presets",
    # Jobs
    "JobSchedule",
    "describe_job",
    "describe_jobs",
    "load_jobs",
    "week_grid",
]
