from __future__ import annotations

from abc import ABC, abstractmethod

from appointment_core.domain.entities.schedule import WeeklySchedule
from appointment_core.domain.entities.unavailability import RecurringBreak, TimeBlock


class ScheduleSourcePort(ABC):
    @abstractmethod
    def get_schedule(self, provider_id: str) -> WeeklySchedule | None:
        raise NotImplementedError

    @abstractmethod
    def save_schedule(self, provider_id: str, schedule: WeeklySchedule) -> None:
        """Replace the provider's weekly schedule, creating it on first save."""
        raise NotImplementedError


class TimeBlockSourcePort(ABC):
    @abstractmethod
    def list_time_blocks(self, provider_id: str) -> list[TimeBlock]:
        raise NotImplementedError

    @abstractmethod
    def add_time_block(self, provider_id: str, block: TimeBlock) -> str:
        """Persist a block. Returns the new id."""
        raise NotImplementedError

    @abstractmethod
    def remove_time_block(self, provider_id: str, block_id: str) -> None:
        """Raises NotFoundError when the provider has no such block."""
        raise NotImplementedError


class RecurringBreakSourcePort(ABC):
    @abstractmethod
    def list_recurring_breaks(self, provider_id: str) -> list[RecurringBreak]:
        raise NotImplementedError

    @abstractmethod
    def add_recurring_break(self, provider_id: str, item: RecurringBreak) -> str:
        raise NotImplementedError

    @abstractmethod
    def remove_recurring_break(self, provider_id: str, break_id: str) -> None:
        raise NotImplementedError
