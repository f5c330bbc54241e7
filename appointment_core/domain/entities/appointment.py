from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class AppointmentStatus(str, Enum):
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class Appointment:
    id: str | None
    provider_id: str
    service_id: str
    client_ref: str
    date: str  # YYYY-MM-DD, provider-local
    time: str  # HH:MM, provider-local
    duration_minutes: int
    status: AppointmentStatus = AppointmentStatus.CONFIRMED
    client_name: str = ""
    client_phone: str | None = None
    starts_at: datetime | None = None  # stored instant, UTC
    reminder_sent: bool = False
