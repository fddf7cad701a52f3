"""Timezone helpers shared by the engine and the configuration layer."""

from __future__ import annotations

from datetime import datetime, timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from clawcron.exceptions import InvalidTimezoneError

UTC_NAMES = frozenset({"UTC", "Z", "Etc/UTC", "GMT"})


def resolve_timezone(tz: str | tzinfo | None) -> tzinfo:
    """Resolve an IANA timezone name (or tzinfo) to a tzinfo.

    Args:
        tz: Timezone name such as ``"Europe/Madrid"``, a tzinfo instance,
            or None for UTC.

    Returns:
        A tzinfo usable with ``datetime.astimezone``.

    Raises:
        InvalidTimezoneError: If the name is not a known zone.
    """
    if tz is None:
        return timezone.utc
    if isinstance(tz, tzinfo):
        return tz

    name = tz.strip()
    if name.upper() in UTC_NAMES or name in UTC_NAMES:
        return timezone.utc
    if not name:
        raise InvalidTimezoneError(tz)

    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise InvalidTimezoneError(tz) from e


def ensure_aware(dt: datetime) -> datetime:
    """Interpret naive datetimes as UTC."""
    if dt.tzinfo is None or dt.tzinfo.utcoffset(dt) is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
