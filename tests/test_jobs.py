"""Tests for job schedule descriptions and the weekly calendar grid."""

import json
import logging
from datetime import date, datetime, timezone

import pytest

from clawcron.exceptions import JobFileError
from clawcron.scheduling.jobs import (
    JobSchedule,
    describe_job,
    describe_jobs,
    extract_schedule,
    load_jobs,
    week_grid,
)

NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


# =============================================================================
# Schedule Extraction
# =============================================================================


class TestExtractSchedule:
    """Tests for reading schedules out of job records."""

    def test_string_schedule(self):
        assert extract_schedule({"schedule": " 0 8 * * * "}) == ("0 8 * * *", None)

    def test_object_schedule(self):
        job = {"schedule": {"kind": "cron", "expr": "0 8 * * *", "tz": "Europe/Madrid"}}
        assert extract_schedule(job) == ("0 8 * * *", "Europe/Madrid")

    def test_non_cron_kind(self):
        job = {"schedule": {"kind": "every", "everyMs": 60000}}
        assert extract_schedule(job) == ("", None)

    def test_missing(self):
        assert extract_schedule({"id": "x"}) == ("", None)


# =============================================================================
# describe_job
# =============================================================================


class TestDescribeJob:
    """Tests for describing single job records."""

    def test_valid_job(self):
        schedule = describe_job(
            {"id": "daily-brief", "name": "Daily brief", "schedule": "0 8 * * *"}, now=NOW
        )
        assert schedule.valid
        assert schedule.name == "Daily brief"
        assert schedule.description == "Every day at 8:00 AM"
        assert schedule.next_runs == (utc(2024, 1, 1, 8), utc(2024, 1, 2, 8), utc(2024, 1, 3, 8))
        assert schedule.next_run == utc(2024, 1, 1, 8)

    def test_name_defaults_to_id(self):
        schedule = describe_job({"id": "backup", "schedule": "0 3 * * *"}, now=NOW, count=1)
        assert schedule.name == "backup"

    def test_job_timezone_wins(self):
        job = {"id": "a", "schedule": {"kind": "cron", "expr": "0 8 * * *", "tz": "Europe/Madrid"}}
        schedule = describe_job(job, now=NOW, count=1, timezone="Asia/Tokyo")
        assert schedule.timezone == "Europe/Madrid"
        assert schedule.next_runs == (utc(2024, 1, 1, 7),)

    def test_fallback_timezone(self):
        schedule = describe_job(
            {"id": "a", "schedule": "0 9 * * *"}, now=NOW, count=1, timezone="Asia/Tokyo"
        )
        assert schedule.timezone == "Asia/Tokyo"
        assert schedule.next_runs == (utc(2024, 1, 2, 0),)

    def test_invalid_schedule(self):
        schedule = describe_job({"id": "bad", "schedule": "61 * * * *"}, now=NOW)
        assert not schedule.valid
        assert schedule.description == "Invalid cron expression"
        assert schedule.next_runs == ()
        assert schedule.next_run is None

    def test_non_cron_schedule(self):
        schedule = describe_job({"id": "poll", "schedule": {"kind": "every"}}, now=NOW)
        assert not schedule.valid
        assert schedule.schedule == ""

    def test_unknown_timezone(self, caplog):
        job = {"id": "tz", "schedule": {"kind": "cron", "expr": "0 8 * * *", "tz": "Nowhere/City"}}
        with caplog.at_level(logging.WARNING, logger="clawcron"):
            schedule = describe_job(job, now=NOW)
        assert not schedule.valid
        assert schedule.description == "Every day at 8:00 AM"
        assert schedule.next_runs == ()
        assert "unknown timezone" in caplog.text

    def test_to_dict(self):
        data = describe_job({"id": "a", "schedule": "0 8 * * *"}, now=NOW, count=2).to_dict()
        assert data == {
            "id": "a",
            "name": "a",
            "schedule": "0 8 * * *",
            "timezone": "UTC",
            "valid": True,
            "description": "Every day at 8:00 AM",
            "nextRun": "2024-01-01T08:00:00+00:00",
            "nextRuns": ["2024-01-01T08:00:00+00:00", "2024-01-02T08:00:00+00:00"],
        }


    def test_to_dict_uses_job_timezone(self):
        job = {"id": "a", "schedule": {"kind": "cron", "expr": "0 8 * * *", "tz": "Europe/Madrid"}}
        data = describe_job(job, now=NOW, count=1).to_dict()
        assert data["nextRun"] == "2024-01-01T08:00:00+01:00"

    def test_fall_back_runs_stay_distinct(self):
        """Both 01:30 runs of a fall-back night are kept and ordered."""
        job = {"id": "a", "schedule": {"kind": "cron", "expr": "30 1 * * *", "tz": "America/New_York"}}
        schedule = describe_job(job, now=utc(2024, 11, 3), count=2)
        assert schedule.next_runs[0] < schedule.next_runs[1]
        assert schedule.to_dict()["nextRuns"] == [
            "2024-11-03T01:30:00-04:00",
            "2024-11-03T01:30:00-05:00",
        ]


class TestDescribeJobs:
    """Tests for describing many records."""

    def test_sorted_by_next_run(self):
        jobs = [
            {"id": "late", "schedule": "0 20 * * *"},
            {"id": "broken", "schedule": "nope"},
            {"id": "early", "schedule": "0 6 * * *"},
        ]
        schedules = describe_jobs(jobs, now=NOW, count=1)
        assert [s.id for s in schedules] == ["early", "late", "broken"]


# =============================================================================
# load_jobs
# =============================================================================


class TestLoadJobs:
    """Tests for reading `cron list --json` dumps."""

    def test_jobs_object(self, tmp_path):
        path = tmp_path / "jobs.json"
        path.write_text(json.dumps({"jobs": [{"id": "a", "schedule": "0 8 * * *"}]}))
        assert load_jobs(path) == [{"id": "a", "schedule": "0 8 * * *"}]

    def test_bare_list(self, tmp_path):
        path = tmp_path / "jobs.json"
        path.write_text(json.dumps([{"id": "a"}, "junk", {"id": "b"}]))
        assert [job["id"] for job in load_jobs(path)] == ["a", "b"]

    def test_banner_before_json(self, tmp_path):
        path = tmp_path / "jobs.txt"
        path.write_text('Gateway ready\n{"jobs": [{"id": "a"}]}')
        assert load_jobs(path) == [{"id": "a"}]

    def test_missing_file(self, tmp_path):
        with pytest.raises(JobFileError):
            load_jobs(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "jobs.json"
        path.write_text("not json at all")
        with pytest.raises(JobFileError):
            load_jobs(path)

    def test_wrong_shape(self, tmp_path):
        path = tmp_path / "jobs.json"
        path.write_text('{"jobs": {"id": "a"}}')
        with pytest.raises(JobFileError):
            load_jobs(path)


# =============================================================================
# week_grid
# =============================================================================


class TestWeekGrid:
    """Tests for Monday-first weekly bucketing."""

    def test_buckets(self):
        daily = describe_job({"id": "daily", "schedule": "0 9 * * *"}, now=NOW, count=7)
        monday = describe_job({"id": "monday", "schedule": "30 9 * * 1"}, now=NOW, count=2)

        grid = week_grid([monday, daily], date(2024, 1, 3))

        assert sorted(grid) == [(day, 9) for day in range(7)]
        first_slot = grid[(0, 9)]
        assert [s.id for _, s in first_slot] == ["daily", "monday"]
        assert [run for run, _ in first_slot] == [utc(2024, 1, 1, 9), utc(2024, 1, 1, 9, 30)]
        # The second Monday run falls in the following week
        assert all(len(entries) == 1 for slot, entries in grid.items() if slot != (0, 9))

    def test_accepts_datetime(self):
        daily = describe_job({"id": "daily", "schedule": "0 9 * * *"}, now=NOW, count=7)
        grid = week_grid([daily], datetime(2024, 1, 7, 23, 0))
        assert len(grid) == 7

    def test_buckets_on_local_wall_clock(self):
        job = {"id": "tokyo", "schedule": {"kind": "cron", "expr": "0 9 * * *", "tz": "Asia/Tokyo"}}
        schedule = describe_job(job, now=NOW, count=1)
        grid = week_grid([schedule], date(2024, 1, 1))
        # 09:00 in Tokyo on Tuesday 2 January is midnight UTC
        assert list(grid) == [(1, 9)]

    def test_empty(self):
        schedule = JobSchedule("x", "x", "", "UTC", False, "Invalid cron expression")
        assert week_grid([schedule], date(2024, 1, 1)) == {}
