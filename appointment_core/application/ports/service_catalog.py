from __future__ import annotations

from abc import ABC, abstractmethod

from appointment_core.domain.entities.service import Service


class ServiceCatalogPort(ABC):
    @abstractmethod
    def resolve(self, provider_id: str, ref: str) -> Service | None:
        """Find a provider's service by id, falling back to its name."""
        raise NotImplementedError
