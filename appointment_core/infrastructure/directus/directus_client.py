from __future__ import annotations

import logging
from typing import Any

import httpx

from appointment_core.application.exceptions import RemoteCallError, RemoteTimeoutError, SlotTakenError
from appointment_core.core.config import settings


class DirectusClient:
    """Thin REST client for the Directus `/items/<collection>` API."""

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._base_url = (base_url or settings.DIRECTUS_BASE_URL).rstrip("/")
        token = token or settings.DIRECTUS_TOKEN
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._client = httpx.Client(
            base_url=self._base_url,
            headers=headers,
            timeout=timeout or settings.REMOTE_CALL_TIMEOUT_SECONDS,
            transport=transport,
        )
        self._logger = logging.getLogger(__name__)

    def list_items(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
        fields: str = "*",
        limit: int = -1,
    ) -> list[dict[str, Any]]:
        # Directus pages at 100 rows unless told otherwise; -1 returns everything.
        params: dict[str, Any] = {"fields": fields, "limit": limit}
        for field, value in (filters or {}).items():
            params[f"filter[{field}][_eq]"] = value
        data = self._request("GET", f"/items/{collection}", params=params)
        return list(data.get("data") or [])

    def get_item(self, collection: str, item_id: str) -> dict[str, Any] | None:
        try:
            data = self._request("GET", f"/items/{collection}/{item_id}")
        except RemoteCallError as e:
            if e.status_code in (403, 404):
                return None
            raise
        return data.get("data") or None

    def create_item(self, collection: str, payload: dict[str, Any]) -> dict[str, Any]:
        data = self._request("POST", f"/items/{collection}", json=payload)
        return data.get("data") or {}

    def update_item(self, collection: str, item_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        data = self._request("PATCH", f"/items/{collection}/{item_id}", json=payload)
        return data.get("data") or {}

    def delete_item(self, collection: str, item_id: str) -> None:
        self._request("DELETE", f"/items/{collection}/{item_id}")

    def close(self) -> None:
        self._client.close()

    def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        try:
            resp = self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            self._logger.error("Directus request timed out", extra={"method": method, "path": path})
            raise RemoteTimeoutError(f"Directus {method} {path} timed out") from e
        except httpx.HTTPError as e:
            self._logger.error("Directus request failed", extra={"method": method, "path": path, "error": str(e)})
            raise RemoteCallError(f"Directus {method} {path} failed: {e}") from e

        if resp.status_code >= 400:
            error_code, error_message = _parse_error(resp)
            self._logger.error(
                "Directus returned an error",
                extra={
                    "method": method,
                    "path": path,
                    "status": resp.status_code,
                    "code": error_code,
                    "error": error_message,
                },
            )
            if error_code == "RECORD_NOT_UNIQUE":
                raise SlotTakenError(error_message or "Record not unique", status_code=resp.status_code)
            raise RemoteCallError(
                f"Directus {method} {path} returned {resp.status_code}: {error_message}",
                status_code=resp.status_code,
            )

        if resp.status_code == 204 or not resp.content:
            return {}
        return resp.json()


def _parse_error(resp: httpx.Response) -> tuple[str | None, str]:
    try:
        errors = resp.json().get("errors") or []
    except ValueError:
        return None, resp.text
    if not errors:
        return None, resp.text
    first = errors[0] or {}
    return (first.get("extensions") or {}).get("code"), first.get("message") or resp.text
