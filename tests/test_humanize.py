"""Tests for plain-English rendering of cron expressions."""

import pytest

from clawcron.scheduling.humanize import (
    INVALID_TEXT,
    FieldClass,
    classify,
    day_suffix,
    format_time,
    to_human_text,
)
from clawcron.scheduling.presets import CRON_PRESETS


# =============================================================================
# Helper Tests
# =============================================================================


class TestDaySuffix:
    """Ordinal suffixes."""

    @pytest.mark.parametrize(
        "day, suffix",
        [
            (1, "st"), (2, "nd"), (3, "rd"), (4, "th"),
            (11, "th"), (12, "th"), (13, "th"),
            (21, "st"), (22, "nd"), (23, "rd"), (30, "th"), (31, "st"),
        ],
    )
    def test_suffix(self, day, suffix):
        assert day_suffix(day) == suffix


class TestFormatTime:
    """12-hour clock formatting."""

    @pytest.mark.parametrize(
        "hour, minute, text",
        [
            (0, 0, "12:00 AM"),
            (8, 5, "8:05 AM"),
            (12, 0, "12:00 PM"),
            (13, 30, "1:30 PM"),
            (23, 59, "11:59 PM"),
        ],
    )
    def test_format(self, hour, minute, text):
        assert format_time(hour, minute) == text


class TestClassify:
    def test_classes(self):
        assert classify("*") is FieldClass.WILDCARD
        assert classify("*/5") is FieldClass.INTERVAL
        assert classify("5") is FieldClass.SPECIFIED
        assert classify("1-5") is FieldClass.SPECIFIED


# =============================================================================
# Rule Tests
# =============================================================================


class TestToHumanText:
    """Tests for the ordered rendering rules."""

    def test_every_minute(self):
        assert to_human_text("* * * * *") == "Every minute"

    def test_on_the_hour(self):
        assert to_human_text("0 * * * *") == "Every hour on the hour"

    def test_hour_at_minute(self):
        assert to_human_text("15 * * * *") == "Every hour at minute 15"

    def test_daily(self):
        assert to_human_text("0 8 * * *") == "Every day at 8:00 AM"
        assert to_human_text("30 14 * * *") == "Every day at 2:30 PM"
        assert to_human_text("0 0 * * *") == "Every day at 12:00 AM"

    def test_single_weekday(self):
        assert to_human_text("0 9 * * 1") == "Every Monday at 9:00 AM"
        assert to_human_text("0 0 * * 0") == "Every Sunday at 12:00 AM"

    def test_weekday_list(self):
        assert to_human_text("0 9 * * 1,3,5") == "Every Monday, Wednesday, Friday at 9:00 AM"

    def test_weekday_range(self):
        assert to_human_text("0 9 * * 1-5") == "Every Monday through Friday at 9:00 AM"

    def test_unknown_weekday_kept_verbatim(self):
        assert to_human_text("0 9 * * 9") == "Every 9 at 9:00 AM"

    def test_day_of_month(self):
        assert to_human_text("30 14 1 * *") == "On the 1st of every month at 2:30 PM"

    @pytest.mark.parametrize("day", [11, 12, 13])
    def test_teens_use_th(self, day):
        assert to_human_text(f"0 6 {day} * *") == f"On the {day}th of every month at 6:00 AM"

    def test_twenty_first(self):
        assert to_human_text("0 6 21 * *") == "On the 21st of every month at 6:00 AM"

    def test_month_and_day(self):
        assert to_human_text("0 0 25 12 *") == "On December 25th at 12:00 AM"
        assert to_human_text("15 7 2 3 *") == "On March 2nd at 7:15 AM"

    def test_minute_interval(self):
        assert to_human_text("*/5 * * * *") == "Every 5 minutes"

    def test_minute_interval_with_hour(self):
        """A */n minute never reads as a plain time."""
        assert to_human_text("*/15 9 * * *") == "Every 15 minutes"

    def test_hour_interval(self):
        assert to_human_text("0 */2 * * *") == "Every 2 hours"

    def test_interval_of_one(self):
        assert to_human_text("*/1 * * * *") == "Every minute"
        assert to_human_text("0 */1 * * *") == "Every hour"

    def test_fallback(self):
        assert to_human_text("0 9-17 * * *") == "Cron: 0 9-17 * * *"
        assert to_human_text("0 9 1 * 1") == "Cron: 0 9 1 * 1"

    def test_wrong_field_count(self):
        assert to_human_text("* * * *") == INVALID_TEXT
        assert to_human_text("* * * * * *") == "Invalid cron expression"

    def test_permissive_by_default(self):
        assert to_human_text("99 * * * *") == "Every hour at minute 99"

    def test_strict(self):
        assert to_human_text("99 * * * *", strict=True) == INVALID_TEXT
        assert to_human_text("0 8 * * *", strict=True) == "Every day at 8:00 AM"

    def test_strict_from_config(self, default_config):
        from dataclasses import replace
        from clawcron.infrastructure.config import set_config

        set_config(replace(default_config, strict_validation=True))
        assert to_human_text("99 * * * *") == INVALID_TEXT

    def test_presets_match_labels(self):
        """Presets with a plain time render to a sensible sentence."""
        rendered = {p.value: to_human_text(p.value) for p in CRON_PRESETS}
        assert rendered["*/30 * * * *"] == "Every 30 minutes"
        assert rendered["0 * * * *"] == "Every hour on the hour"
        assert rendered["0 17 * * 5"] == "Every Friday at 5:00 PM"
        assert rendered["0 0 1 * *"] == "On the 1st of every month at 12:00 AM"
        assert not any(text.startswith("Cron:") for text in rendered.values())
