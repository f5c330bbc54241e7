from __future__ import annotations

import re
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
TIME_RE = re.compile(r"^\d{2}:\d{2}$")


def is_valid_date(value: str | None) -> bool:
    """True for a YYYY-MM-DD string naming a real calendar day."""
    if not value or not DATE_RE.match(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def is_valid_time(value: str | None) -> bool:
    if not value or not TIME_RE.match(value):
        return False
    hours, minutes = (int(part) for part in value.split(":"))
    return hours < 24 and minutes < 60


def to_minutes(value: str) -> int:
    """Minutes since midnight for an HH:MM (or H:MM) string."""
    hours, _, minutes = value.strip().partition(":")
    return int(hours or 0) * 60 + int(minutes or 0)


def format_minutes(total: int) -> str:
    return f"{total // 60:02d}:{total % 60:02d}"


def normalize_time(value: str) -> str:
    """Normalize '9:5' or '09:05:00' to '09:05'."""
    parts = value.strip().split(":")
    return format_minutes(int(parts[0]) * 60 + int(parts[1] if len(parts) > 1 else 0))


def local_date_time(instant: datetime, tz: ZoneInfo) -> tuple[str, str]:
    """Render an instant as (YYYY-MM-DD, HH:MM) in the given timezone.

    Naive instants are treated as UTC, which is how the primary store returns them.
    """
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    local = instant.astimezone(tz)
    return local.strftime("%Y-%m-%d"), local.strftime("%H:%M")


def to_utc_instant(day: str, time_str: str, tz: ZoneInfo) -> datetime:
    local = datetime.combine(date.fromisoformat(day), datetime.min.time(), tzinfo=tz)
    local = local.replace(hour=to_minutes(time_str) // 60, minute=to_minutes(time_str) % 60)
    return local.astimezone(timezone.utc)


def parse_instant(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def intervals_overlap(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    """Half-open overlap: [a_start, a_end) and [b_start, b_end) share at least one minute."""
    return a_start < b_end and b_start < a_end
