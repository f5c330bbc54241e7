from __future__ import annotations

import logging

import httpx

from appointment_core.application.exceptions import (
    RemoteErrorCode,
    NotificationError,
    RemoteTimeoutError,
)
from appointment_core.application.ports.notification import NotificationPort, ReminderPayload
from appointment_core.core.config import settings


class NotifyClient(NotificationPort):
    def __init__(
        self,
        endpoint: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._endpoint = endpoint or settings.NOTIFY_API_URL
        self._client = httpx.Client(timeout=timeout or settings.REMOTE_CALL_TIMEOUT_SECONDS, transport=transport)
        self._logger = logging.getLogger(__name__)

    def send_reminder(self, payload: ReminderPayload) -> None:
        body = {
            "masterId": payload.provider_id,
            "telegramId": payload.client_ref,
            "clientName": payload.client_name,
            "service": payload.service_name,
            "date": payload.date,
            "time": payload.time,
            "notificationType": "reminder",
        }
        try:
            resp = self._client.post(self._endpoint, json=body)
        except httpx.TimeoutException as e:
            raise RemoteTimeoutError("Reminder request timed out") from e
        except httpx.HTTPError as e:
            raise NotificationError(RemoteErrorCode.UPSTREAM_ERROR, str(e)) from e

        try:
            data = resp.json() if resp.content else {}
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}
        if resp.status_code >= 400 or data.get("success") is False:
            code = (
                RemoteErrorCode.parse(data["code"])
                if data.get("code")
                else RemoteErrorCode.UPSTREAM_ERROR
            )
            self._logger.error(
                "Reminder rejected",
                extra={"status": resp.status_code, "code": code.value, "provider_id": payload.provider_id},
            )
            raise NotificationError(code, str(data.get("message") or ""), status_code=resp.status_code)
