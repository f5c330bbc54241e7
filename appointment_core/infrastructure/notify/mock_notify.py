from __future__ import annotations

import logging

from appointment_core.application.exceptions import RemoteErrorCode, NotificationError
from appointment_core.application.ports.notification import NotificationPort, ReminderPayload


class MockNotificationService(NotificationPort):
    def __init__(self, fail_with: RemoteErrorCode | None = None) -> None:
        self.fail_with = fail_with
        self.sent: list[ReminderPayload] = []
        self._logger = logging.getLogger(__name__)

    def send_reminder(self, payload: ReminderPayload) -> None:
        if self.fail_with is not None:
            raise NotificationError(self.fail_with, f"Mock reminder failure: {self.fail_with.value}")
        self.sent.append(payload)
        self._logger.info(
            "Mock reminder sent",
            extra={"provider_id": payload.provider_id, "date": payload.date, "time": payload.time},
        )
