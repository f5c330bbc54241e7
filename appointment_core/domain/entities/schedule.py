from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

# Sunday-first, the numbering used by the dashboard's stored schedule JSON.
WEEKDAY_KEYS = ("sun", "mon", "tue", "wed", "thu", "fri", "sat")


def iso_weekday_from_sunday_based(native_day: int) -> int:
    """Map 0=Sunday..6=Saturday to ISO 1=Monday..7=Sunday."""
    return ((native_day + 6) % 7) + 1


@dataclass(frozen=True)
class DaySchedule:
    enabled: bool = False
    start_time: str = "09:00"
    end_time: str = "18:00"


@dataclass(frozen=True)
class WeeklySchedule:
    days: dict[int, DaySchedule] = field(default_factory=dict)  # ISO weekday -> hours

    def for_weekday(self, iso_weekday: int) -> DaySchedule | None:
        return self.days.get(iso_weekday)

    @classmethod
    def from_payload(cls, payload: dict[str, Any] | None) -> "WeeklySchedule":
        """Build from {"mon": {"enabled": true, "startTime": "09:00", "endTime": "18:00"}, ...}."""
        days: dict[int, DaySchedule] = {}
        for native_day, key in enumerate(WEEKDAY_KEYS):
            entry = (payload or {}).get(key)
            if not isinstance(entry, dict):
                continue
            days[iso_weekday_from_sunday_based(native_day)] = DaySchedule(
                enabled=bool(entry.get("enabled", False)),
                start_time=str(entry.get("startTime") or entry.get("start_time") or "09:00"),
                end_time=str(entry.get("endTime") or entry.get("end_time") or "18:00"),
            )
        return cls(days=days)

    def to_payload(self) -> dict[str, dict[str, Any]]:
        """Inverse of from_payload, in the stored camelCase shape."""
        payload: dict[str, dict[str, Any]] = {}
        for native_day, key in enumerate(WEEKDAY_KEYS):
            day = self.days.get(iso_weekday_from_sunday_based(native_day))
            if day is not None:
                payload[key] = {"enabled": day.enabled, "startTime": day.start_time, "endTime": day.end_time}
        return payload
