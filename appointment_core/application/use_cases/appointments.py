from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from zoneinfo import ZoneInfo

from appointment_core.application.exceptions import AppointmentNotFoundError, NotFoundError
from appointment_core.application.ports.appointment_store import AppointmentStorePort
from appointment_core.application.ports.notification import NotificationPort, ReminderPayload
from appointment_core.application.ports.provider_directory import ProviderDirectoryPort
from appointment_core.application.ports.service_catalog import ServiceCatalogPort
from appointment_core.application.utils.time_utils import local_date_time
from appointment_core.domain.entities.appointment import Appointment, AppointmentStatus


class AppointmentsUseCase:
    """Provider-side operations on existing appointments."""

    def __init__(
        self,
        directory: ProviderDirectoryPort,
        catalog: ServiceCatalogPort,
        store: AppointmentStorePort,
        notifier: NotificationPort,
        timezone: ZoneInfo,
    ) -> None:
        self._directory = directory
        self._catalog = catalog
        self._store = store
        self._notifier = notifier
        self._timezone = timezone
        self._logger = logging.getLogger(__name__)

    def list_for_day(self, provider_ref: str, day: date) -> list[Appointment]:
        provider_id = self._resolve_provider(provider_ref)
        day_key = day.isoformat()
        found: list[Appointment] = []
        for appointment in self._store.list_for_provider(provider_id):
            if appointment.status != AppointmentStatus.CONFIRMED:
                continue
            local = self._localize(appointment)
            if local.date == day_key:
                found.append(local)
        return sorted(found, key=lambda a: a.time)

    def cancel(self, appointment_id: str) -> None:
        if self._store.get(appointment_id) is None:
            raise AppointmentNotFoundError(f"Appointment {appointment_id!r} not found")
        self._store.delete(appointment_id)
        self._logger.info("Appointment cancelled", extra={"appointment_id": appointment_id})

    def send_reminder(self, appointment_id: str) -> Appointment:
        """Send a reminder to the client and flag the appointment.

        NotificationError propagates with its structured code; the flag is only set
        after the notification service accepted the reminder.
        """
        appointment = self._store.get(appointment_id)
        if appointment is None:
            raise AppointmentNotFoundError(f"Appointment {appointment_id!r} not found")
        appointment = self._localize(appointment)

        service = self._catalog.resolve(appointment.provider_id, appointment.service_id)
        self._notifier.send_reminder(
            ReminderPayload(
                provider_id=appointment.provider_id,
                client_ref=appointment.client_ref,
                client_name=appointment.client_name,
                service_name=service.name if service else "",
                date=appointment.date,
                time=appointment.time,
            )
        )
        self._store.mark_reminder_sent(appointment_id)
        self._logger.info("Reminder sent", extra={"appointment_id": appointment_id})
        return replace(appointment, reminder_sent=True)

    def _resolve_provider(self, provider_ref: str) -> str:
        provider_id = self._directory.resolve(provider_ref)
        if not provider_id:
            raise NotFoundError(f"Provider {provider_ref!r} not found")
        return provider_id

    def _localize(self, appointment: Appointment) -> Appointment:
        if appointment.starts_at is None:
            return appointment
        local_day, local_time = local_date_time(appointment.starts_at, self._timezone)
        return replace(appointment, date=local_day, time=local_time)
