"""Schedule display data for stored cron job records.

Job records come from the agent runtime (``openclaw cron list --json``) and
carry at least an ``id`` and a ``schedule``. The schedule is either a plain
cron string or an object such as ``{"kind": "cron", "expr": "0 8 * * *",
"tz": "Europe/Madrid"}``. Bad records never raise; they come back with
``valid=False`` and no runs.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Any, Iterable, Mapping

from clawcron.exceptions import InvalidTimezoneError, JobFileError
from clawcron.infrastructure.config import get_config
from clawcron.scheduling.cron import get_next_runs, validate
from clawcron.scheduling.humanize import to_human_text
from clawcron.timezones import resolve_timezone

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class JobSchedule:
    """Derived schedule information for one job record."""

    id: str
    name: str
    schedule: str
    timezone: str
    valid: bool
    description: str
    next_runs: tuple[datetime, ...] = field(default_factory=tuple)

    @property
    def next_run(self) -> datetime | None:
        return self.next_runs[0] if self.next_runs else None

    @property
    def local_runs(self) -> tuple[datetime, ...]:
        """Next runs on the job's own wall clock."""
        if not self.next_runs:
            return ()
        tz = resolve_timezone(self.timezone)
        return tuple(run.astimezone(tz) for run in self.next_runs)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the calendar task shape."""
        local_runs = self.local_runs
        return {
            "id": self.id,
            "name": self.name,
            "schedule": self.schedule,
            "timezone": self.timezone,
            "valid": self.valid,
            "description": self.description,
            "nextRun": local_runs[0].isoformat() if local_runs else None,
            "nextRuns": [run.isoformat() for run in local_runs],
        }


def extract_schedule(job: Mapping[str, Any]) -> tuple[str, str | None]:
    """Pull the cron expression and optional timezone out of a job record."""
    schedule = job.get("schedule")
    if isinstance(schedule, str):
        return schedule.strip(), job.get("tz") or job.get("timezone")
    if isinstance(schedule, Mapping):
        kind = str(schedule.get("kind", "cron")).lower()
        if kind != "cron":
            return "", None
        expr = schedule.get("expr") or schedule.get("cron") or ""
        return str(expr).strip(), schedule.get("tz") or job.get("tz")
    return str(job.get("cron") or "").strip(), job.get("tz")


def describe_job(
    job: Mapping[str, Any],
    *,
    now: datetime | None = None,
    count: int | None = None,
    timezone: str | None = None,
) -> JobSchedule:
    """Describe one job record.

    Args:
        job: Job record with ``id``, optional ``name`` and ``schedule``.
        now: Reference instant for next runs (default: now).
        count: Number of next runs (configured default: 3).
        timezone: Fallback timezone when the record does not carry one.

    Returns:
        JobSchedule for the record.
    """
    job_id = str(job.get("id") or "")
    name = str(job.get("name") or job_id)
    expr, job_tz = extract_schedule(job)
    tz_name = str(job_tz or timezone or get_config().default_timezone)

    if not validate(expr):
        logger.debug("Job %s has an invalid schedule %r", job_id, expr)
        return JobSchedule(
            id=job_id,
            name=name,
            schedule=expr,
            timezone=tz_name,
            valid=False,
            description=to_human_text(expr, strict=True),
        )

    try:
        runs = get_next_runs(expr, count, now, tz_name)
    except InvalidTimezoneError:
        logger.warning("Job %s uses unknown timezone %r", job_id, tz_name)
        return JobSchedule(
            id=job_id,
            name=name,
            schedule=expr,
            timezone=tz_name,
            valid=False,
            description=to_human_text(expr),
        )

    return JobSchedule(
        id=job_id,
        name=name,
        schedule=expr,
        timezone=tz_name,
        valid=True,
        description=to_human_text(expr),
        next_runs=tuple(runs),
    )


def describe_jobs(
    jobs: Iterable[Mapping[str, Any]],
    *,
    now: datetime | None = None,
    count: int | None = None,
    timezone: str | None = None,
) -> list[JobSchedule]:
    """Describe job records, soonest next run first.

    Records without a next run are kept, after the others, in input order.
    """
    schedules = [
        describe_job(job, now=now, count=count, timezone=timezone) for job in jobs
    ]
    return sorted(
        schedules,
        key=lambda s: (s.next_run is None, s.next_run.timestamp() if s.next_run else 0.0),
    )


def _decode_loose(raw: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        # CLI output may carry a banner before the JSON body
        starts = [i for i in (raw.find("{"), raw.find("[")) if i >= 0]
        if not starts:
            raise
        return json.loads(raw[min(starts):])


def load_jobs(path: str | Path) -> list[dict[str, Any]]:
    """Read job records from a ``cron list --json`` dump.

    Accepts ``{"jobs": [...]}`` or a bare list.

    Raises:
        JobFileError: If the file is missing or not decodable.
    """
    path = Path(path)
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise JobFileError(f"Cannot read job file {path}: {e}") from e

    try:
        data = _decode_loose(raw)
    except json.JSONDecodeError as e:
        raise JobFileError(f"Invalid JSON in job file {path}: {e}") from e

    if isinstance(data, Mapping):
        data = data.get("jobs", [])
    if not isinstance(data, list):
        raise JobFileError(f"Expected a list of jobs in {path}")
    return [job for job in data if isinstance(job, Mapping)]


def week_grid(
    schedules: Iterable[JobSchedule],
    week_start: date | datetime,
) -> dict[tuple[int, int], list[tuple[datetime, JobSchedule]]]:
    """Bucket next runs into a Monday-first week.

    Args:
        schedules: Described jobs.
        week_start: Any day in the wanted week.

    Returns:
        Mapping of ``(day_index, hour)`` to ``(run, schedule)`` pairs, where
        day 0 is Monday. Runs are compared on their own wall clock.
    """
    day = week_start.date() if isinstance(week_start, datetime) else week_start
    monday = day - timedelta(days=day.weekday())
    sunday = monday + timedelta(days=6)

    grid: dict[tuple[int, int], list[tuple[datetime, JobSchedule]]] = {}
    for schedule in schedules:
        for run in schedule.local_runs:
            run_day = run.date()
            if not monday <= run_day <= sunday:
                continue
            slot = ((run_day - monday).days, run.hour)
            grid.setdefault(slot, []).append((run, schedule))

    for entries in grid.values():
        entries.sort(key=lambda entry: entry[0].timestamp())
    return grid
