"""Cron expression parser and next-run projection.

This module implements the 5-field cron evaluator used by the mission-control
dashboard to validate job schedules and show when they run next.

Field syntax:
    Field         Values    Forms
    ──────────────────────────────────────────
    Minute        0-59      *  */n  a/n  a-b  a,b,c  a
    Hour          0-23      *  */n  a/n  a-b  a,b,c  a
    Day of Month  1-31      *  */n  a/n  a-b  a,b,c  a
    Month         1-12      *  */n  a/n  a-b  a,b,c  a
    Day of Week   0-6       *  */n  a/n  a-b  a,b,c  a   (0 = Sunday)

Two evaluation modes share one field classifier:
    - Validation is strict: every value must be a plain integer inside the
      field's domain and steps must be positive.
    - Resolution is permissive: parts that do not parse resolve to nothing
      and out-of-domain values are kept, so such expressions never match.

Next runs are found by stepping one minute at a time from the minute after
the start instant, up to MAX_ITERATIONS candidates (one year of minutes).
Unsatisfiable expressions such as ``0 0 30 2 *`` terminate by exhausting the
ceiling rather than by analysis.

Example:
    >>> validate("*/15 9-17 * * 1-5")
    True
    >>> get_next_runs("0 8 * * *", 3, datetime(2024, 1, 1, tzinfo=timezone.utc))
    [datetime(2024, 1, 1, 8, 0, tzinfo=...), ...]
"""

from __future__ import annotations

import itertools
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone, tzinfo
from enum import Enum, auto
from typing import FrozenSet, Iterator

from clawcron.exceptions import CronParseError
from clawcron.timezones import ensure_aware, resolve_timezone, utc_now

logger = logging.getLogger(__name__)

# One year of minutes
MAX_ITERATIONS = 525_600
DEFAULT_COUNT = 3
DEFAULT_TIMEZONE = "UTC"

_INT_RE = re.compile(r"[0-9]+")
_ONE_MINUTE = timedelta(minutes=1)


# =============================================================================
# Field Types
# =============================================================================


class CronFieldType(Enum):
    """Types of cron fields, in expression order."""

    MINUTE = auto()
    HOUR = auto()
    DAY_OF_MONTH = auto()
    MONTH = auto()
    DAY_OF_WEEK = auto()


class FieldKind(Enum):
    """Syntactic form of a single field."""

    WILDCARD = "wildcard"
    STEP = "step"
    RANGE = "range"
    LIST = "list"
    VALUE = "value"


@dataclass(frozen=True)
class FieldConstraints:
    """Domain of a cron field."""

    min_value: int
    max_value: int

    def contains(self, value: int) -> bool:
        return self.min_value <= value <= self.max_value


FIELD_CONSTRAINTS: dict[CronFieldType, FieldConstraints] = {
    CronFieldType.MINUTE: FieldConstraints(0, 59),
    CronFieldType.HOUR: FieldConstraints(0, 23),
    CronFieldType.DAY_OF_MONTH: FieldConstraints(1, 31),
    CronFieldType.MONTH: FieldConstraints(1, 12),
    CronFieldType.DAY_OF_WEEK: FieldConstraints(0, 6),
}

FIELD_ORDER: tuple[CronFieldType, ...] = (
    CronFieldType.MINUTE,
    CronFieldType.HOUR,
    CronFieldType.DAY_OF_MONTH,
    CronFieldType.MONTH,
    CronFieldType.DAY_OF_WEEK,
)

FIELD_LABELS: dict[CronFieldType, str] = {
    CronFieldType.MINUTE: "minute",
    CronFieldType.HOUR: "hour",
    CronFieldType.DAY_OF_MONTH: "day of month",
    CronFieldType.MONTH: "month",
    CronFieldType.DAY_OF_WEEK: "day of week",
}


# =============================================================================
# Field helpers
# =============================================================================


def split_expression(expression: str) -> list[str] | None:
    """Split an expression into its 5 fields, or None if the count is wrong."""
    parts = expression.split()
    if len(parts) != 5:
        return None
    return parts


def classify_field(text: str) -> FieldKind:
    """Classify a raw field.

    ``/`` wins over ``-``, which wins over ``,``; a mixed list such as
    ``1-5,10`` is therefore a range with an unparseable end.
    """
    if text == "*":
        return FieldKind.WILDCARD
    if "/" in text:
        return FieldKind.STEP
    if "-" in text:
        return FieldKind.RANGE
    if "," in text:
        return FieldKind.LIST
    return FieldKind.VALUE


def _parse_int(text: str) -> int | None:
    if _INT_RE.fullmatch(text):
        return int(text)
    return None


def get_field_values(field: str, min_value: int, max_value: int) -> FrozenSet[int]:
    """Resolve a raw field to the set of values it matches.

    Resolution is permissive: unparseable parts contribute nothing and
    out-of-domain values are kept as they are.

    Args:
        field: Raw field text, e.g. ``"*/15"``.
        min_value: Domain minimum.
        max_value: Domain maximum.

    Returns:
        Frozen set of matching integers.
    """
    kind = classify_field(field)

    if kind is FieldKind.WILDCARD:
        return frozenset(range(min_value, max_value + 1))

    if kind is FieldKind.STEP:
        base, _, step_text = field.partition("/")
        step = _parse_int(step_text)
        if step is None or step <= 0:
            return frozenset()
        if base == "*":
            start, end = min_value, max_value
        elif "-" in base:
            low, _, high = base.partition("-")
            start_value, end_value = _parse_int(low), _parse_int(high)
            if start_value is None or end_value is None:
                return frozenset()
            start, end = start_value, end_value
        else:
            start_value = _parse_int(base)
            if start_value is None:
                return frozenset()
            start, end = start_value, max_value
        return frozenset(range(start, end + 1, step))

    if kind is FieldKind.RANGE:
        parts = field.split("-")
        if len(parts) != 2:
            return frozenset()
        start_value, end_value = _parse_int(parts[0]), _parse_int(parts[1])
        if start_value is None or end_value is None:
            return frozenset()
        return frozenset(range(start_value, end_value + 1))

    if kind is FieldKind.LIST:
        values = (_parse_int(item) for item in field.split(","))
        return frozenset(v for v in values if v is not None)

    value = _parse_int(field)
    return frozenset() if value is None else frozenset([value])


def field_error(field: str, constraints: FieldConstraints) -> str | None:
    """Check a raw field against its domain.

    Returns:
        A description of the problem, or None if the field is valid.
    """
    lo, hi = constraints.min_value, constraints.max_value
    kind = classify_field(field)

    if kind is FieldKind.WILDCARD:
        return None

    if kind is FieldKind.STEP:
        parts = field.split("/")
        if len(parts) != 2:
            return f"invalid step syntax {field!r}"
        base, step_text = parts
        # The base of a step is *, a single value or a range, never a list
        if "," in base:
            return f"invalid step base {base!r}"
        if base != "*":
            base_error = field_error(base, constraints)
            if base_error:
                return base_error
        step = _parse_int(step_text)
        if step is None or step <= 0:
            return f"step must be a positive integer, got {step_text!r}"
        return None

    if kind is FieldKind.RANGE:
        parts = field.split("-")
        if len(parts) != 2:
            return f"invalid range {field!r}"
        start, end = _parse_int(parts[0]), _parse_int(parts[1])
        if start is None or end is None:
            return f"invalid range {field!r}"
        if start < lo or end > hi:
            return f"range {field!r} outside [{lo}-{hi}]"
        if start > end:
            return f"range start greater than end in {field!r}"
        return None

    if kind is FieldKind.LIST:
        for item in field.split(","):
            value = _parse_int(item)
            if value is None:
                return f"invalid list value {item!r}"
            if not constraints.contains(value):
                return f"value {value} out of range [{lo}-{hi}]"
        return None

    value = _parse_int(field)
    if value is None:
        return f"invalid value {field!r}"
    if not constraints.contains(value):
        return f"value {value} out of range [{lo}-{hi}]"
    return None


# =============================================================================
# Cron Field
# =============================================================================


class CronField:
    """A parsed cron field.

    Attributes:
        field_type: Which of the five fields this is.
        kind: Syntactic form (wildcard, step, range, list, value).
        values: Frozen set of matching integers.
        original: The raw field text.
    """

    __slots__ = ("_field_type", "_kind", "_values", "_original")

    def __init__(self, field_type: CronFieldType, original: str) -> None:
        constraints = FIELD_CONSTRAINTS[field_type]
        self._field_type = field_type
        self._kind = classify_field(original)
        self._values = get_field_values(
            original, constraints.min_value, constraints.max_value
        )
        self._original = original

    @property
    def field_type(self) -> CronFieldType:
        return self._field_type

    @property
    def kind(self) -> FieldKind:
        return self._kind

    @property
    def values(self) -> FrozenSet[int]:
        return self._values

    @property
    def original(self) -> str:
        return self._original

    @property
    def is_any(self) -> bool:
        """True for a bare ``*``."""
        return self._kind is FieldKind.WILDCARD

    @property
    def is_valid(self) -> bool:
        return field_error(self._original, FIELD_CONSTRAINTS[self._field_type]) is None

    def matches(self, value: int) -> bool:
        return value in self._values

    def __repr__(self) -> str:
        return f"CronField({self._field_type.name}, {self._original!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, CronField):
            return (
                self._field_type == other._field_type
                and self._original == other._original
            )
        return NotImplemented

    def __hash__(self) -> int:
        return hash((self._field_type, self._original))


# =============================================================================
# Cron Parser
# =============================================================================


class CronParser:
    """Parser for 5-field cron expressions.

    In strict mode every field must validate; otherwise only the field count
    is enforced and field values are resolved permissively.
    """

    def __init__(self, expression: str, *, strict: bool = True) -> None:
        self._original = expression.strip()
        self._strict = strict
        self._fields: list[CronField] = []

    def parse(self) -> list[CronField]:
        """Parse the cron expression.

        Returns:
            List of the five CronField objects.

        Raises:
            CronParseError: On a wrong field count, or an invalid field in
                strict mode.
        """
        parts = self._original.split()
        if len(parts) != 5:
            raise CronParseError(
                f"Invalid number of fields: {len(parts)}. Expected 5 fields.",
                self._original,
            )

        if self._strict:
            for position, (part, field_type) in enumerate(zip(parts, FIELD_ORDER)):
                error = field_error(part, FIELD_CONSTRAINTS[field_type])
                if error:
                    raise CronParseError(
                        f"Invalid {FIELD_LABELS[field_type]} field: {error}",
                        self._original,
                        position,
                    )

        self._fields = [
            CronField(field_type, part) for part, field_type in zip(parts, FIELD_ORDER)
        ]
        return self._fields


# =============================================================================
# Cron Expression
# =============================================================================


class CronExpression:
    """Parsed cron expression with bounded next-run calculation.

    CronExpression is immutable; every query works on call-local state.

    Example:
        >>> expr = CronExpression.parse("0 9 * * 1-5")
        >>> expr.matches(datetime(2024, 1, 15, 9, 0))  # Monday
        True
        >>> expr.next_n(3, after=datetime(2024, 1, 15), timezone="Europe/Madrid")
    """

    __slots__ = ("_expression", "_fields", "_field_map")

    def __init__(self, expression: str, fields: list[CronField]) -> None:
        self._expression = expression
        self._fields = tuple(fields)
        self._field_map: dict[CronFieldType, CronField] = {
            f.field_type: f for f in fields
        }

    @classmethod
    def parse(cls, expression: str, *, strict: bool = True) -> "CronExpression":
        """Parse a cron expression.

        Args:
            expression: Cron expression string.
            strict: Reject fields that do not validate.

        Returns:
            Parsed CronExpression.

        Raises:
            CronParseError: If expression is invalid.
        """
        fields = CronParser(expression, strict=strict).parse()
        return cls(expression.strip(), fields)

    @property
    def expression(self) -> str:
        return self._expression

    @property
    def fields(self) -> tuple[CronField, ...]:
        return self._fields

    @property
    def minute(self) -> CronField:
        return self._field_map[CronFieldType.MINUTE]

    @property
    def hour(self) -> CronField:
        return self._field_map[CronFieldType.HOUR]

    @property
    def day_of_month(self) -> CronField:
        return self._field_map[CronFieldType.DAY_OF_MONTH]

    @property
    def month(self) -> CronField:
        return self._field_map[CronFieldType.MONTH]

    @property
    def day_of_week(self) -> CronField:
        return self._field_map[CronFieldType.DAY_OF_WEEK]

    @property
    def is_valid(self) -> bool:
        return all(f.is_valid for f in self._fields)

    def get_field(self, field_type: CronFieldType) -> CronField | None:
        return self._field_map.get(field_type)

    def matches(self, dt: datetime) -> bool:
        """Check whether the calendar fields of ``dt`` match.

        The datetime is read as given; convert it to the wanted timezone
        first. When both day of month and day of week are restricted, a day
        matches if either does (POSIX cron); otherwise both must.
        """
        if not self.minute.matches(dt.minute):
            return False
        if not self.hour.matches(dt.hour):
            return False
        if not self.month.matches(dt.month):
            return False

        # Python weekday: Monday=0, Sunday=6
        # Cron weekday: Sunday=0, Saturday=6
        cron_weekday = (dt.weekday() + 1) % 7
        dom_match = self.day_of_month.matches(dt.day)
        dow_match = self.day_of_week.matches(cron_weekday)

        if not self.day_of_month.is_any and not self.day_of_week.is_any:
            return dom_match or dow_match
        return dom_match and dow_match

    def _scan(
        self,
        after: datetime | None,
        tz: tzinfo,
        max_iterations: int,
    ) -> Iterator[datetime]:
        """Yield matching instants as UTC datetimes, one candidate minute at a time.

        Matching reads the wall clock in ``tz``. The yielded values stay in
        UTC: two runs inside a repeated fall-back hour share a wall clock and
        would compare equal as zone-local datetimes.
        """
        start = ensure_aware(after if after is not None else utc_now())
        current = start.astimezone(timezone.utc).replace(second=0, microsecond=0)
        current += _ONE_MINUTE

        for _ in range(max_iterations):
            if self.matches(current.astimezone(tz)):
                yield current
            current += _ONE_MINUTE

        logger.debug(
            "Iteration ceiling of %d minutes reached for %r", max_iterations, self._expression
        )

    def next(
        self,
        after: datetime | None = None,
        timezone: str | tzinfo | None = DEFAULT_TIMEZONE,
        *,
        max_iterations: int = MAX_ITERATIONS,
    ) -> datetime | None:
        """Get the next matching instant.

        Args:
            after: Search strictly after this instant (default: now). Naive
                datetimes are read as UTC.
            timezone: Timezone whose calendar the fields are matched in.
            max_iterations: Candidate-minute ceiling.

        Returns:
            Aware UTC datetime, or None if the ceiling was hit.
        """
        runs = self.next_n(1, after, timezone, max_iterations=max_iterations)
        return runs[0] if runs else None

    def next_n(
        self,
        n: int,
        after: datetime | None = None,
        timezone: str | tzinfo | None = DEFAULT_TIMEZONE,
        *,
        max_iterations: int = MAX_ITERATIONS,
    ) -> list[datetime]:
        """Get up to n matching instants in ascending order.

        The ceiling bounds the whole search, not each match.
        """
        if n <= 0:
            return []
        tz = resolve_timezone(timezone)
        return list(itertools.islice(self._scan(after, tz, max_iterations), n))

    def iter(
        self,
        after: datetime | None = None,
        limit: int | None = None,
        timezone: str | tzinfo | None = DEFAULT_TIMEZONE,
        *,
        max_iterations: int = MAX_ITERATIONS,
    ) -> "CronIterator":
        """Create an iterator over matching instants."""
        return CronIterator(
            self, after, limit, timezone=timezone, max_iterations=max_iterations
        )

    def to_human_text(self) -> str:
        from clawcron.scheduling.humanize import to_human_text

        return to_human_text(self._expression)

    def __repr__(self) -> str:
        return f"CronExpression({self._expression!r})"

    def __str__(self) -> str:
        return self._expression

    def __eq__(self, other: object) -> bool:
        if isinstance(other, CronExpression):
            return self._expression == other._expression
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._expression)


# =============================================================================
# Cron Iterator
# =============================================================================


class CronIterator(Iterator[datetime]):
    """Lazy iterator over matching instants.

    All matches share one iteration ceiling, counted from ``after``.
    """

    def __init__(
        self,
        expression: CronExpression,
        after: datetime | None = None,
        limit: int | None = None,
        *,
        timezone: str | tzinfo | None = DEFAULT_TIMEZONE,
        max_iterations: int = MAX_ITERATIONS,
    ) -> None:
        self._expression = expression
        self._limit = limit
        self._count = 0
        self._scan = expression._scan(after, resolve_timezone(timezone), max_iterations)

    def __iter__(self) -> "CronIterator":
        return self

    def __next__(self) -> datetime:
        if self._limit is not None and self._count >= self._limit:
            raise StopIteration

        next_dt = next(self._scan)
        self._count += 1
        return next_dt


# =============================================================================
# Functional API
# =============================================================================


def validate_expression(expression: str) -> list[str]:
    """Validate a cron expression.

    Args:
        expression: Cron expression to validate.

    Returns:
        List of validation errors (empty if valid).
    """
    parts = split_expression(expression)
    if parts is None:
        count = len(expression.split())
        return [f"Invalid number of fields: {count}. Expected 5 fields."]

    errors = []
    for part, field_type in zip(parts, FIELD_ORDER):
        error = field_error(part, FIELD_CONSTRAINTS[field_type])
        if error:
            errors.append(f"{FIELD_LABELS[field_type]}: {error}")
    return errors


def validate(expression: str) -> bool:
    """Check if a cron expression is valid."""
    return not validate_expression(expression)


def get_next_runs(
    expression: str,
    count: int | None = None,
    from_: datetime | None = None,
    timezone: str | tzinfo | None = None,
    *,
    strict: bool | None = None,
    max_iterations: int | None = None,
) -> list[datetime]:
    """Calculate the next ``count`` run times of a cron expression.

    Args:
        expression: 5-field cron expression.
        count: Number of runs to return (configured default: 3).
        from_: Start instant (default: now); results are strictly after the
            minute containing it. Naive datetimes are read as UTC.
        timezone: Timezone for calendar matching (configured default: UTC).
        strict: Return nothing for expressions that fail validation instead
            of evaluating them permissively (configured default: False).
        max_iterations: Candidate-minute ceiling (configured default:
            525600).

    Returns:
        Strictly ascending list of aware UTC datetimes; convert with
        ``run.astimezone(tz)`` for display. Empty when the expression does
        not have exactly 5 fields or nothing matches within the ceiling.

    Raises:
        InvalidTimezoneError: If ``timezone`` is not a known zone.
    """
    from clawcron.infrastructure.config import get_config

    config = get_config()
    if count is None:
        count = config.default_count
    if timezone is None:
        timezone = config.default_timezone
    if strict is None:
        strict = config.strict_validation
    if max_iterations is None:
        max_iterations = config.max_iterations

    if split_expression(expression) is None:
        return []

    tz = resolve_timezone(timezone)

    if not validate(expression):
        if strict:
            logger.debug("Rejecting invalid expression %r in strict mode", expression)
            return []
        logger.debug("Evaluating invalid expression %r permissively", expression)

    expr = CronExpression.parse(expression, strict=False)
    return expr.next_n(count, from_, tz, max_iterations=max_iterations)
