from __future__ import annotations

import logging

from appointment_core.application.ports.provider_directory import ProviderDirectoryPort
from appointment_core.application.ports.service_catalog import ServiceCatalogPort
from appointment_core.domain.entities.service import Service
from appointment_core.infrastructure.directus.directus_client import DirectusClient


class DirectusProviderDirectory(ProviderDirectoryPort):
    def __init__(self, client: DirectusClient) -> None:
        self._client = client

    def resolve(self, external_ref: str) -> str | None:
        items = self._client.list_items("masters", {"telegramId": external_ref}, fields="id")
        if not items or items[0].get("id") is None:
            return None
        return str(items[0]["id"])


class DirectusServiceCatalog(ServiceCatalogPort):
    def __init__(self, client: DirectusClient) -> None:
        self._client = client
        self._logger = logging.getLogger(__name__)

    def resolve(self, provider_id: str, ref: str) -> Service | None:
        items = self._client.list_items("services", {"master": provider_id})
        wanted = str(ref).strip()
        match = next((item for item in items if str(item.get("id")) == wanted), None)
        if match is None:
            match = next((item for item in items if str(item.get("name", "")).strip() == wanted), None)
        if match is None:
            return None
        return self._to_service(match)

    def _to_service(self, item: dict) -> Service | None:
        try:
            duration = int(item.get("duration"))
        except (TypeError, ValueError):
            duration = 0
        if duration <= 0:
            self._logger.warning("Service has no usable duration", extra={"service": item.get("id")})
            return None
        return Service(
            id=str(item["id"]),
            name=str(item.get("name") or ""),
            duration_minutes=duration,
            price=float(item.get("price") or 0),
        )
