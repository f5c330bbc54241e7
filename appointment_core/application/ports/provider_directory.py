from __future__ import annotations

from abc import ABC, abstractmethod


class ProviderDirectoryPort(ABC):
    @abstractmethod
    def resolve(self, external_ref: str) -> str | None:
        """Resolve a provider's external reference to its durable id. None if unknown."""
        raise NotImplementedError
