from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class ReminderPayload:
    provider_id: str
    client_ref: str
    client_name: str
    service_name: str
    date: str
    time: str


class NotificationPort(ABC):
    @abstractmethod
    def send_reminder(self, payload: ReminderPayload) -> None:
        raise NotImplementedError
