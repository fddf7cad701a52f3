"""Human-readable rendering of cron expressions.

Rules are tried in order and the first match wins:

    "* * * * *"      -> "Every minute"
    "0 * * * *"      -> "Every hour on the hour"
    "0 8 * * *"      -> "Every day at 8:00 AM"
    "0 9 * * 1"      -> "Every Monday at 9:00 AM"
    "30 14 1 * *"    -> "On the 1st of every month at 2:30 PM"
    "0 0 25 12 *"    -> "On December 25th at 12:00 AM"
    "*/5 * * * *"    -> "Every 5 minutes"
    "0 */2 * * *"    -> "Every 2 hours"

Anything else renders as ``"Cron: <expr>"``.
"""

from __future__ import annotations

import logging
from enum import Enum

from clawcron.scheduling.cron import split_expression, validate

logger = logging.getLogger(__name__)

INVALID_TEXT = "Invalid cron expression"

DAYS_OF_WEEK = (
    "Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday",
)
MONTHS = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)


class FieldClass(Enum):
    """How a field reads for rendering purposes."""

    WILDCARD = "wildcard"
    INTERVAL = "interval"
    SPECIFIED = "specified"


def classify(field: str) -> FieldClass:
    if field == "*":
        return FieldClass.WILDCARD
    if field.startswith("*/"):
        return FieldClass.INTERVAL
    return FieldClass.SPECIFIED


def _single(field: str) -> int | None:
    if field.isdigit() and field.isascii():
        return int(field)
    return None


def day_suffix(day: int) -> str:
    """Ordinal suffix for a day of month (1st, 2nd, 11th, 21st...)."""
    if 11 <= day <= 13:
        return "th"
    return {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")


def format_time(hour: int, minute: int) -> str:
    """Format a 24h time as ``h:mm AM/PM``."""
    period = "PM" if hour >= 12 else "AM"
    if hour == 0:
        hour12 = 12
    elif hour > 12:
        hour12 = hour - 12
    else:
        hour12 = hour
    return f"{hour12}:{minute:02d} {period}"


def _weekday_name(item: str) -> str:
    value = _single(item)
    if value is not None and value < len(DAYS_OF_WEEK):
        return DAYS_OF_WEEK[value]

    start, sep, end = item.partition("-")
    if sep:
        first, last = _single(start), _single(end)
        if (
            first is not None
            and last is not None
            and first < len(DAYS_OF_WEEK)
            and last < len(DAYS_OF_WEEK)
        ):
            return f"{DAYS_OF_WEEK[first]} through {DAYS_OF_WEEK[last]}"
    return item


def _interval_text(step: str, unit: str) -> str:
    if step == "1":
        return f"Every {unit}"
    return f"Every {step} {unit}s"


def to_human_text(expression: str, *, strict: bool | None = None) -> str:
    """Describe a cron expression in plain English.

    Never raises. Expressions without exactly 5 fields render as
    ``"Invalid cron expression"``; so do expressions failing validation when
    ``strict`` is on (configured default: off).

    Args:
        expression: 5-field cron expression.
        strict: Validate the field values before rendering.

    Returns:
        Description string.
    """
    parts = split_expression(expression)
    if parts is None:
        return INVALID_TEXT

    if strict is None:
        from clawcron.infrastructure.config import get_config

        strict = get_config().strict_validation
    if strict and not validate(expression):
        return INVALID_TEXT

    minute, hour, day_of_month, month, day_of_week = parts
    m, h, dom, mon, dow = (classify(p) for p in parts)
    wild = FieldClass.WILDCARD
    fixed = FieldClass.SPECIFIED

    if all(c is wild for c in (m, h, dom, mon, dow)):
        return "Every minute"

    if m is fixed and h is wild and dom is wild and mon is wild and dow is wild:
        if _single(minute) == 0:
            return "Every hour on the hour"
        return f"Every hour at minute {minute}"

    hour_value, minute_value = _single(hour), _single(minute)
    if m is fixed and h is fixed and hour_value is not None and minute_value is not None:
        time = format_time(hour_value, minute_value)
        day_value = _single(day_of_month)
        month_value = _single(month)

        if dom is wild and mon is wild and dow is wild:
            return f"Every day at {time}"

        if dom is wild and mon is wild and dow is fixed:
            days = ", ".join(_weekday_name(item) for item in day_of_week.split(","))
            return f"Every {days} at {time}"

        if dom is fixed and day_value is not None and dow is wild:
            ordinal = f"{day_value}{day_suffix(day_value)}"
            if mon is wild:
                return f"On the {ordinal} of every month at {time}"
            if mon is fixed and month_value is not None and 1 <= month_value <= 12:
                return f"On {MONTHS[month_value - 1]} {ordinal} at {time}"

    if m is FieldClass.INTERVAL:
        return _interval_text(minute[2:], "minute")
    if h is FieldClass.INTERVAL:
        return _interval_text(hour[2:], "hour")

    logger.debug("No description rule for %r", expression)
    return f"Cron: {expression}"
