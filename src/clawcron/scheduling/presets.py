"""Predefined cron expression presets.

These are the schedules offered by the dashboard's "new cron job" form.

Usage:
    >>> from clawcron.scheduling.presets import get_preset
    >>>
    >>> preset = get_preset("weekdays_at_9_am")
    >>> preset.value
    '0 9 * * 1-5'
    >>> preset.expression.next_n(3)
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from clawcron.scheduling.cron import CronExpression


@dataclass(frozen=True)
class CronPreset:
    """A labelled cron expression."""

    label: str
    value: str

    @property
    def slug(self) -> str:
        """Lookup key derived from the label, e.g. ``every_day_at_8_am``."""
        return re.sub(r"[^a-z0-9]+", "_", self.label.lower()).strip("_")

    @property
    def expression(self) -> CronExpression:
        return CronExpression.parse(self.value)


CRON_PRESETS: tuple[CronPreset, ...] = (
    CronPreset("Every minute", "* * * * *"),
    CronPreset("Every 5 minutes", "*/5 * * * *"),
    CronPreset("Every 15 minutes", "*/15 * * * *"),
    CronPreset("Every 30 minutes", "*/30 * * * *"),
    CronPreset("Every hour", "0 * * * *"),
    CronPreset("Every day at midnight", "0 0 * * *"),
    CronPreset("Every day at 8 AM", "0 8 * * *"),
    CronPreset("Every day at 9 AM", "0 9 * * *"),
    CronPreset("Every day at noon", "0 12 * * *"),
    CronPreset("Every day at 6 PM", "0 18 * * *"),
    CronPreset("Every Monday at 9 AM", "0 9 * * 1"),
    CronPreset("Every Friday at 5 PM", "0 17 * * 5"),
    CronPreset("Weekdays at 9 AM", "0 9 * * 1-5"),
    CronPreset("First day of month at midnight", "0 0 1 * *"),
    CronPreset("Every Sunday at midnight", "0 0 * * 0"),
)

PRESETS: dict[str, CronPreset] = {preset.slug: preset for preset in CRON_PRESETS}


def get_preset(name: str) -> CronPreset | None:
    """Get a preset by slug or label (case-insensitive).

    Args:
        name: Preset slug (``every_5_minutes``) or label (``Every 5 minutes``).

    Returns:
        CronPreset or None if not found.
    """
    key = re.sub(r"[^a-z0-9]+", "_", name.lower()).strip("_")
    return PRESETS.get(key)


def list_presets() -> list[str]:
    """List all available preset slugs."""
    return list(PRESETS.keys())
