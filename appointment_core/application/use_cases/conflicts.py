from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Iterable
from zoneinfo import ZoneInfo

from appointment_core.application.utils.time_utils import local_date_time, to_minutes
from appointment_core.domain.entities.appointment import Appointment, AppointmentStatus
from appointment_core.domain.entities.unavailability import RecurringBreak, TimeBlock

Interval = tuple[int, int]


@dataclass(frozen=True)
class DayConflicts:
    """Minute intervals (since local midnight) that block slots on one day."""

    appointments: list[Interval] = field(default_factory=list)
    time_blocks: list[Interval] = field(default_factory=list)
    breaks: list[Interval] = field(default_factory=list)

    def all(self) -> list[Interval]:
        return [*self.appointments, *self.time_blocks, *self.breaks]


def collect_conflicts(
    day: date,
    appointments: Iterable[Appointment],
    time_blocks: Iterable[TimeBlock],
    recurring_breaks: Iterable[RecurringBreak],
    timezone: ZoneInfo,
) -> DayConflicts:
    """Restrict the three conflict sources to `day` and express them as minute intervals.

    Appointments that carry a stored instant are rendered in `timezone` before the
    date comparison, so a booking stored as 21:30Z can land on the next local day.
    """
    day_key = day.isoformat()
    iso_weekday = day.isoweekday()

    appointment_intervals: list[Interval] = []
    for appointment in appointments:
        if appointment.status == AppointmentStatus.CANCELLED:
            continue
        local_day, local_time = _local_day_and_time(appointment, timezone)
        if local_day != day_key:
            continue
        start = to_minutes(local_time)
        appointment_intervals.append((start, start + appointment.duration_minutes))

    block_intervals = [
        (to_minutes(block.start_time), to_minutes(block.end_time))
        for block in time_blocks
        if block.date == day_key
    ]

    break_intervals = [
        (to_minutes(item.start_time), to_minutes(item.end_time))
        for item in recurring_breaks
        if iso_weekday in item.days_of_week
    ]

    return DayConflicts(
        appointments=appointment_intervals,
        time_blocks=block_intervals,
        breaks=break_intervals,
    )


def _local_day_and_time(appointment: Appointment, timezone: ZoneInfo) -> tuple[str, str]:
    if appointment.starts_at is not None:
        return local_date_time(appointment.starts_at, timezone)
    return appointment.date, appointment.time
