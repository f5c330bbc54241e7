from __future__ import annotations

import itertools
import threading
from dataclasses import replace

from appointment_core.application.exceptions import AppointmentNotFoundError, NotFoundError, SlotTakenError
from appointment_core.application.ports.appointment_store import AppointmentStorePort
from appointment_core.application.ports.availability_sources import (
    RecurringBreakSourcePort,
    ScheduleSourcePort,
    TimeBlockSourcePort,
)
from appointment_core.application.ports.provider_directory import ProviderDirectoryPort
from appointment_core.application.ports.service_catalog import ServiceCatalogPort
from appointment_core.domain.entities.appointment import Appointment, AppointmentStatus
from appointment_core.domain.entities.schedule import WeeklySchedule
from appointment_core.domain.entities.service import Service
from appointment_core.domain.entities.unavailability import RecurringBreak, TimeBlock


class MemoryProviderDirectory(ProviderDirectoryPort):
    def __init__(self, providers: dict[str, str] | None = None) -> None:
        self._providers = dict(providers or {})  # external ref -> provider id

    def resolve(self, external_ref: str) -> str | None:
        return self._providers.get(str(external_ref).strip())


class MemoryServiceCatalog(ServiceCatalogPort):
    def __init__(self, services: dict[str, list[Service]] | None = None) -> None:
        self._services = {key: list(value) for key, value in (services or {}).items()}

    def resolve(self, provider_id: str, ref: str) -> Service | None:
        wanted = str(ref).strip()
        services = self._services.get(provider_id, [])
        by_id = next((s for s in services if s.id == wanted), None)
        return by_id or next((s for s in services if s.name == wanted), None)


class MemoryAppointmentStore(AppointmentStorePort):
    def __init__(self, enforce_unique_slots: bool = True) -> None:
        self._items: dict[str, Appointment] = {}
        self._ids = itertools.count(1)
        self._enforce_unique_slots = enforce_unique_slots
        self._lock = threading.Lock()

    def create(self, record: Appointment) -> str:
        with self._lock:
            if self._enforce_unique_slots and self._slot_taken(record):
                raise SlotTakenError(
                    f"Slot {record.date} {record.time} already booked for provider {record.provider_id}"
                )
            appointment_id = str(next(self._ids))
            self._items[appointment_id] = replace(record, id=appointment_id)
            return appointment_id

    def delete(self, appointment_id: str) -> None:
        with self._lock:
            if appointment_id not in self._items:
                raise AppointmentNotFoundError(f"Appointment {appointment_id!r} not found")
            del self._items[appointment_id]

    def get(self, appointment_id: str) -> Appointment | None:
        return self._items.get(appointment_id)

    def list_for_provider(self, provider_id: str) -> list[Appointment]:
        with self._lock:
            return [
                a
                for a in self._items.values()
                if a.provider_id == provider_id and a.status == AppointmentStatus.CONFIRMED
            ]

    def mark_reminder_sent(self, appointment_id: str) -> None:
        with self._lock:
            current = self._items.get(appointment_id)
            if current is None:
                raise AppointmentNotFoundError(f"Appointment {appointment_id!r} not found")
            self._items[appointment_id] = replace(current, reminder_sent=True)

    def _slot_taken(self, record: Appointment) -> bool:
        return any(
            a.provider_id == record.provider_id
            and a.date == record.date
            and a.time == record.time
            and a.status == AppointmentStatus.CONFIRMED
            for a in self._items.values()
        )


class MemoryAvailabilitySources(ScheduleSourcePort, TimeBlockSourcePort, RecurringBreakSourcePort):
    def __init__(
        self,
        schedules: dict[str, WeeklySchedule] | None = None,
        time_blocks: dict[str, list[TimeBlock]] | None = None,
        recurring_breaks: dict[str, list[RecurringBreak]] | None = None,
    ) -> None:
        self._schedules = dict(schedules or {})
        self._time_blocks = {key: list(value) for key, value in (time_blocks or {}).items()}
        self._recurring_breaks = {key: list(value) for key, value in (recurring_breaks or {}).items()}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def get_schedule(self, provider_id: str) -> WeeklySchedule | None:
        return self._schedules.get(provider_id)

    def list_time_blocks(self, provider_id: str) -> list[TimeBlock]:
        return list(self._time_blocks.get(provider_id, []))

    def save_schedule(self, provider_id: str, schedule: WeeklySchedule) -> None:
        with self._lock:
            self._schedules[provider_id] = schedule

    def add_time_block(self, provider_id: str, block: TimeBlock) -> str:
        with self._lock:
            block_id = f"tb{next(self._ids)}"
            self._time_blocks.setdefault(provider_id, []).append(replace(block, id=block_id))
            return block_id

    def remove_time_block(self, provider_id: str, block_id: str) -> None:
        with self._lock:
            _remove_by_id(self._time_blocks.get(provider_id, []), block_id, "Time block")

    def list_recurring_breaks(self, provider_id: str) -> list[RecurringBreak]:
        return list(self._recurring_breaks.get(provider_id, []))

    def add_recurring_break(self, provider_id: str, item: RecurringBreak) -> str:
        with self._lock:
            break_id = f"rb{next(self._ids)}"
            self._recurring_breaks.setdefault(provider_id, []).append(replace(item, id=break_id))
            return break_id

    def remove_recurring_break(self, provider_id: str, break_id: str) -> None:
        with self._lock:
            _remove_by_id(self._recurring_breaks.get(provider_id, []), break_id, "Recurring break")


def _remove_by_id(items: list, item_id: str, label: str) -> None:
    for index, item in enumerate(items):
        if item.id == item_id:
            del items[index]
            return
    raise NotFoundError(f"{label} {item_id!r} not found")
