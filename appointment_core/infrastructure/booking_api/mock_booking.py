from __future__ import annotations

import logging
import threading
import time

from appointment_core.application.exceptions import ConfirmationError, RemoteErrorCode
from appointment_core.application.ports.booking_confirmation import (
    BookingConfirmationPort,
    ConfirmationPayload,
)


class MockBookingConfirmation(BookingConfirmationPort):
    """In-process confirmation service. A token already confirmed is a no-op."""

    def __init__(
        self,
        fail_with: RemoteErrorCode | None = None,
        delay_seconds: float = 0.0,
    ) -> None:
        self.fail_with = fail_with
        self.delay_seconds = delay_seconds
        self.confirmed: dict[str, ConfirmationPayload] = {}
        self.calls = 0
        self._lock = threading.Lock()
        self._logger = logging.getLogger(__name__)

    def confirm(self, payload: ConfirmationPayload, idempotency_token: str) -> None:
        with self._lock:
            self.calls += 1
        if self.delay_seconds:
            time.sleep(self.delay_seconds)
        if self.fail_with is not None:
            raise ConfirmationError(self.fail_with, f"Mock confirmation failure: {self.fail_with.value}")
        with self._lock:
            if idempotency_token in self.confirmed:
                return
            self.confirmed[idempotency_token] = payload
        self._logger.info(
            "Mock booking confirmed",
            extra={"appointment_id": payload.appointment_id, "attempt": idempotency_token},
        )
