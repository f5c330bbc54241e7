from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class ConfirmationPayload:
    appointment_id: str
    provider_id: str
    service_id: str
    client_ref: str
    client_name: str
    starts_at: datetime
    client_phone: str | None = None
    client_username: str | None = None


class BookingConfirmationPort(ABC):
    @abstractmethod
    def confirm(self, payload: ConfirmationPayload, idempotency_token: str) -> None:
        """Confirm a booking. Repeated calls with the same token are no-ops.

        Raises ConfirmationError with a structured code on failure.
        """
        raise NotImplementedError
