from __future__ import annotations

import logging
from datetime import timezone
from typing import Any

import httpx

from appointment_core.application.exceptions import (
    ConfirmationError,
    RemoteErrorCode,
    RemoteTimeoutError,
)
from appointment_core.application.ports.booking_confirmation import (
    BookingConfirmationPort,
    ConfirmationPayload,
)
from appointment_core.core.config import settings


class BookingApiClient(BookingConfirmationPort):
    def __init__(
        self,
        endpoint: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._endpoint = endpoint or settings.BOOKING_API_URL
        self._client = httpx.Client(timeout=timeout or settings.REMOTE_CALL_TIMEOUT_SECONDS, transport=transport)
        self._logger = logging.getLogger(__name__)

    def confirm(self, payload: ConfirmationPayload, idempotency_token: str) -> None:
        body: dict[str, Any] = {
            "appointmentId": payload.appointment_id,
            "masterId": payload.provider_id,
            "service": payload.service_id,
            "clientName": payload.client_name,
            "clientTelegramId": payload.client_ref,
            "dateTime": payload.starts_at.astimezone(timezone.utc).isoformat().replace("+00:00", "Z"),
        }
        if payload.client_phone:
            body["clientPhone"] = payload.client_phone
        if payload.client_username:
            body["username"] = payload.client_username

        headers = {"Idempotency-Key": idempotency_token}
        try:
            resp = self._client.post(self._endpoint, json=body, headers=headers)
        except httpx.TimeoutException as e:
            raise RemoteTimeoutError("Booking confirmation timed out") from e
        except httpx.HTTPError as e:
            raise ConfirmationError(RemoteErrorCode.UPSTREAM_ERROR, str(e)) from e

        data = _json_or_empty(resp)
        if resp.status_code >= 400 or data.get("success") is False:
            code = _error_code(resp.status_code, data)
            self._logger.error(
                "Booking confirmation rejected",
                extra={
                    "status": resp.status_code,
                    "code": code.value,
                    "appointment_id": payload.appointment_id,
                },
            )
            raise ConfirmationError(code, str(data.get("message") or ""), status_code=resp.status_code)

        self._logger.info("Booking confirmed", extra={"appointment_id": payload.appointment_id})


def _json_or_empty(resp: httpx.Response) -> dict[str, Any]:
    if not resp.content:
        return {}
    try:
        data = resp.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def _error_code(status_code: int, data: dict[str, Any]) -> RemoteErrorCode:
    if data.get("code"):
        return RemoteErrorCode.parse(data["code"])
    if status_code == 409:
        return RemoteErrorCode.SLOT_TAKEN
    if 400 <= status_code < 500:
        return RemoteErrorCode.INVALID_PAYLOAD
    return RemoteErrorCode.UPSTREAM_ERROR
