from __future__ import annotations

from abc import ABC, abstractmethod

from appointment_core.domain.entities.appointment import Appointment


class AppointmentStorePort(ABC):
    @abstractmethod
    def create(self, record: Appointment) -> str:
        """Persist an appointment. Returns the new id."""
        raise NotImplementedError

    @abstractmethod
    def delete(self, appointment_id: str) -> None:
        """Delete an appointment. Raises on failure."""
        raise NotImplementedError

    @abstractmethod
    def get(self, appointment_id: str) -> Appointment | None:
        raise NotImplementedError

    @abstractmethod
    def list_for_provider(self, provider_id: str) -> list[Appointment]:
        """Every confirmed appointment of the provider, unpaginated."""
        raise NotImplementedError

    @abstractmethod
    def mark_reminder_sent(self, appointment_id: str) -> None:
        raise NotImplementedError
