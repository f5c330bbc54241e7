from __future__ import annotations

import logging
from dataclasses import replace

from appointment_core.application.exceptions import NotFoundError
from appointment_core.application.ports.availability_sources import (
    RecurringBreakSourcePort,
    ScheduleSourcePort,
    TimeBlockSourcePort,
)
from appointment_core.application.ports.provider_directory import ProviderDirectoryPort
from appointment_core.application.utils.time_utils import is_valid_date, is_valid_time, to_minutes
from appointment_core.domain.entities.schedule import WeeklySchedule
from appointment_core.domain.entities.unavailability import RecurringBreak, TimeBlock


class WorkingHoursUseCase:
    """Provider-side edits to the inputs of availability: weekly hours, time blocks and breaks.

    These are the only writers of schedule data; the calculator reads it back on the
    next availability request.
    """

    def __init__(
        self,
        directory: ProviderDirectoryPort,
        schedules: ScheduleSourcePort,
        time_blocks: TimeBlockSourcePort,
        recurring_breaks: RecurringBreakSourcePort,
    ) -> None:
        self._directory = directory
        self._schedules = schedules
        self._time_blocks = time_blocks
        self._recurring_breaks = recurring_breaks
        self._logger = logging.getLogger(__name__)

    def get_schedule(self, provider_ref: str) -> WeeklySchedule:
        provider_id = self._resolve_provider(provider_ref)
        return self._schedules.get_schedule(provider_id) or WeeklySchedule()

    def update_schedule(self, provider_ref: str, schedule: WeeklySchedule) -> WeeklySchedule:
        for iso_weekday, day in schedule.days.items():
            if not 1 <= iso_weekday <= 7:
                raise ValueError(f"Unknown weekday {iso_weekday}")
            if day.enabled:
                _check_range(day.start_time, day.end_time)
        provider_id = self._resolve_provider(provider_ref)
        self._schedules.save_schedule(provider_id, schedule)
        self._logger.info("Schedule updated", extra={"provider_id": provider_id})
        return schedule

    def list_time_blocks(self, provider_ref: str, day: str | None = None) -> list[TimeBlock]:
        provider_id = self._resolve_provider(provider_ref)
        blocks = self._time_blocks.list_time_blocks(provider_id)
        if day is not None:
            blocks = [b for b in blocks if b.date == day]
        return sorted(blocks, key=lambda b: (b.date, b.start_time))

    def add_time_block(self, provider_ref: str, block: TimeBlock) -> TimeBlock:
        if not is_valid_date(block.date):
            raise ValueError(f"Invalid date {block.date!r}, expected YYYY-MM-DD")
        _check_range(block.start_time, block.end_time)
        provider_id = self._resolve_provider(provider_ref)
        block_id = self._time_blocks.add_time_block(provider_id, block)
        self._logger.info("Time blocked", extra={"provider_id": provider_id, "date": block.date})
        return replace(block, id=block_id)

    def remove_time_block(self, provider_ref: str, block_id: str) -> None:
        provider_id = self._resolve_provider(provider_ref)
        self._time_blocks.remove_time_block(provider_id, block_id)
        self._logger.info("Time unblocked", extra={"provider_id": provider_id})

    def list_recurring_breaks(self, provider_ref: str) -> list[RecurringBreak]:
        provider_id = self._resolve_provider(provider_ref)
        return sorted(self._recurring_breaks.list_recurring_breaks(provider_id), key=lambda b: b.start_time)

    def add_recurring_break(self, provider_ref: str, item: RecurringBreak) -> RecurringBreak:
        if not item.days_of_week or not all(1 <= d <= 7 for d in item.days_of_week):
            raise ValueError("Break days must be ISO weekdays 1..7")
        _check_range(item.start_time, item.end_time)
        provider_id = self._resolve_provider(provider_ref)
        break_id = self._recurring_breaks.add_recurring_break(provider_id, item)
        self._logger.info("Recurring break added", extra={"provider_id": provider_id})
        return replace(item, id=break_id)

    def remove_recurring_break(self, provider_ref: str, break_id: str) -> None:
        provider_id = self._resolve_provider(provider_ref)
        self._recurring_breaks.remove_recurring_break(provider_id, break_id)
        self._logger.info("Recurring break removed", extra={"provider_id": provider_id})

    def _resolve_provider(self, provider_ref: str) -> str:
        provider_id = self._directory.resolve(provider_ref)
        if not provider_id:
            raise NotFoundError(f"Provider {provider_ref!r} not found")
        return provider_id


def _check_range(start_time: str, end_time: str) -> None:
    if not is_valid_time(start_time) or not is_valid_time(end_time):
        raise ValueError(f"Invalid time range {start_time!r}-{end_time!r}, expected HH:MM")
    if to_minutes(start_time) >= to_minutes(end_time):
        raise ValueError(f"Time range {start_time}-{end_time} must end after it starts")
