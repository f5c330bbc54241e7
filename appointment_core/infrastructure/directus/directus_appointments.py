from __future__ import annotations

from datetime import timezone as dt_timezone
from typing import Any
from zoneinfo import ZoneInfo

from appointment_core.application.ports.appointment_store import AppointmentStorePort
from appointment_core.application.utils.time_utils import local_date_time, parse_instant, to_utc_instant
from appointment_core.domain.entities.appointment import Appointment, AppointmentStatus
from appointment_core.infrastructure.directus.directus_client import DirectusClient

# Rows written before durations were stored on the appointment itself.
LEGACY_DURATION_MINUTES = 60


class DirectusAppointmentStore(AppointmentStorePort):
    def __init__(self, client: DirectusClient, timezone: ZoneInfo) -> None:
        self._client = client
        self._timezone = timezone

    def create(self, record: Appointment) -> str:
        starts_at = record.starts_at or to_utc_instant(record.date, record.time, self._timezone)
        payload: dict[str, Any] = {
            "master": record.provider_id,
            "service": record.service_id,
            "clientName": record.client_name,
            "clientTelegramId": record.client_ref,
            "dateTime": starts_at.astimezone(dt_timezone.utc).isoformat().replace("+00:00", "Z"),
            "duration": record.duration_minutes,
            "reminderSent": False,
            "status": record.status.value,
        }
        if record.client_phone:
            payload["clientPhone"] = record.client_phone
        created = self._client.create_item("appointments", payload)
        if created.get("id") is None:
            raise ValueError("No appointment id returned from Directus")
        return str(created["id"])

    def delete(self, appointment_id: str) -> None:
        self._client.delete_item("appointments", appointment_id)

    def get(self, appointment_id: str) -> Appointment | None:
        item = self._client.get_item("appointments", appointment_id)
        return self._to_appointment(item) if item else None

    def list_for_provider(self, provider_id: str) -> list[Appointment]:
        items = self._client.list_items(
            "appointments", {"master": provider_id, "status": AppointmentStatus.CONFIRMED.value}
        )
        return [self._to_appointment(item) for item in items if item.get("dateTime")]

    def mark_reminder_sent(self, appointment_id: str) -> None:
        self._client.update_item("appointments", appointment_id, {"reminderSent": True})

    def _to_appointment(self, item: dict[str, Any]) -> Appointment:
        starts_at = parse_instant(str(item["dateTime"]))
        local_day, local_time = local_date_time(starts_at, self._timezone)
        try:
            status = AppointmentStatus(str(item.get("status") or "confirmed"))
        except ValueError:
            status = AppointmentStatus.CONFIRMED
        return Appointment(
            id=str(item.get("id")),
            provider_id=str(item.get("master")),
            service_id=str(item.get("service")),
            client_ref=str(item.get("clientTelegramId") or ""),
            date=local_day,
            time=local_time,
            duration_minutes=int(item.get("duration") or LEGACY_DURATION_MINUTES),
            status=status,
            client_name=str(item.get("clientName") or ""),
            client_phone=item.get("clientPhone"),
            starts_at=starts_at,
            reminder_sent=bool(item.get("reminderSent", False)),
        )
