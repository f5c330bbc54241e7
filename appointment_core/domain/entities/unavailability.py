from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class TimeBlock:
    date: str  # YYYY-MM-DD
    start_time: str
    end_time: str
    title: str = ""
    id: str | None = None


@dataclass(frozen=True)
class RecurringBreak:
    days_of_week: frozenset[int]  # ISO weekdays, 1=Monday..7=Sunday
    start_time: str
    end_time: str
    id: str | None = None
