from __future__ import annotations

import logging
from datetime import date
from typing import Iterable
from zoneinfo import ZoneInfo

from appointment_core.application.exceptions import NotFoundError
from appointment_core.application.ports.appointment_store import AppointmentStorePort
from appointment_core.application.ports.availability_sources import (
    RecurringBreakSourcePort,
    ScheduleSourcePort,
    TimeBlockSourcePort,
)
from appointment_core.application.ports.provider_directory import ProviderDirectoryPort
from appointment_core.application.ports.service_catalog import ServiceCatalogPort
from appointment_core.application.use_cases.conflicts import Interval, collect_conflicts
from appointment_core.application.utils.time_utils import (
    format_minutes,
    intervals_overlap,
    is_valid_date,
    to_minutes,
)
from appointment_core.domain.entities.appointment import Appointment
from appointment_core.domain.entities.schedule import WeeklySchedule
from appointment_core.domain.entities.service import Service
from appointment_core.domain.entities.slot import Slot
from appointment_core.domain.entities.unavailability import RecurringBreak, TimeBlock

DEFAULT_GRANULARITY_MINUTES = 15


def find_start_minutes(
    window_start: int,
    window_end: int,
    duration_minutes: int,
    intervals: Iterable[Interval],
    granularity_minutes: int = DEFAULT_GRANULARITY_MINUTES,
) -> list[int]:
    """Start minutes of every `duration_minutes` slot inside the window that hits no interval."""
    _check_positive("duration_minutes", duration_minutes)
    _check_positive("granularity_minutes", granularity_minutes)

    blocked = list(intervals)
    starts: list[int] = []
    candidate = window_start
    while candidate + duration_minutes <= window_end:
        candidate_end = candidate + duration_minutes
        if not any(intervals_overlap(candidate, candidate_end, b_start, b_end) for b_start, b_end in blocked):
            starts.append(candidate)
        candidate += granularity_minutes
    return starts


def compute_availability(
    day: date,
    duration_minutes: int,
    schedule: WeeklySchedule | None,
    appointments: Iterable[Appointment],
    time_blocks: Iterable[TimeBlock],
    recurring_breaks: Iterable[RecurringBreak],
    timezone: ZoneInfo,
    granularity_minutes: int = DEFAULT_GRANULARITY_MINUTES,
) -> list[Slot]:
    """Bookable slots for one calendar day, ascending.

    A disabled or missing schedule entry yields no slots whatever the conflicts are.
    """
    _check_positive("duration_minutes", duration_minutes)

    day_schedule = schedule.for_weekday(day.isoweekday()) if schedule else None
    if day_schedule is None or not day_schedule.enabled:
        return []

    conflicts = collect_conflicts(day, appointments, time_blocks, recurring_breaks, timezone)
    starts = find_start_minutes(
        to_minutes(day_schedule.start_time),
        to_minutes(day_schedule.end_time),
        duration_minutes,
        conflicts.all(),
        granularity_minutes,
    )
    day_key = day.isoformat()
    return [Slot(date=day_key, start_time=format_minutes(start)) for start in starts]


def _check_positive(name: str, value: object) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValueError(f"{name} must be a positive integer, got {value!r}")


class AvailabilityUseCase:
    def __init__(
        self,
        directory: ProviderDirectoryPort,
        catalog: ServiceCatalogPort,
        schedules: ScheduleSourcePort,
        appointments: AppointmentStorePort,
        time_blocks: TimeBlockSourcePort,
        recurring_breaks: RecurringBreakSourcePort,
        timezone: ZoneInfo,
        granularity_minutes: int = DEFAULT_GRANULARITY_MINUTES,
    ) -> None:
        self._directory = directory
        self._catalog = catalog
        self._schedules = schedules
        self._appointments = appointments
        self._time_blocks = time_blocks
        self._recurring_breaks = recurring_breaks
        self._timezone = timezone
        self._granularity_minutes = granularity_minutes
        self._logger = logging.getLogger(__name__)

    def execute(self, provider_ref: str, day: str, service_ref: str) -> tuple[Service, list[Slot]]:
        """Resolve the provider and service, then compute slots for `day` (YYYY-MM-DD)."""
        if not is_valid_date(day):
            raise ValueError(f"Invalid date {day!r}, expected YYYY-MM-DD")

        provider_id = self._directory.resolve(provider_ref)
        if not provider_id:
            raise NotFoundError(f"Provider {provider_ref!r} not found")

        service = self._catalog.resolve(provider_id, service_ref)
        if not service:
            raise NotFoundError(f"Service {service_ref!r} not found")
        if not isinstance(service.duration_minutes, int) or service.duration_minutes <= 0:
            raise ValueError(f"Service {service.id!r} has no valid duration")

        slots = compute_availability(
            date.fromisoformat(day),
            service.duration_minutes,
            self._schedules.get_schedule(provider_id),
            self._appointments.list_for_provider(provider_id),
            self._time_blocks.list_time_blocks(provider_id),
            self._recurring_breaks.list_recurring_breaks(provider_id),
            self._timezone,
            self._granularity_minutes,
        )
        self._logger.info(
            "Availability computed",
            extra={"provider_id": provider_id, "date": day, "service": service.id, "slot_count": len(slots)},
        )
        return service, slots
