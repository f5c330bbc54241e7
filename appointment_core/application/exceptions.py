from __future__ import annotations

from enum import Enum


class RemoteCallError(RuntimeError):
    """Raised when a remote backend fails (network errors, 4xx/5xx responses)."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RemoteTimeoutError(RemoteCallError):
    """Raised when a remote call exceeds its timeout."""
    pass


class SlotTakenError(RemoteCallError):
    """Raised when the primary store rejects a duplicate (provider, date, time)."""
    pass


class NotFoundError(LookupError):
    """Raised when a provider, service or appointment cannot be resolved."""
    pass


class AppointmentNotFoundError(NotFoundError):
    pass


class RemoteErrorCode(str, Enum):
    ALREADY_CONFIRMED = "already_confirmed"
    CLIENT_UNREACHABLE = "client_unreachable"
    BOT_BLOCKED = "bot_blocked"
    SLOT_TAKEN = "slot_taken"
    INVALID_PAYLOAD = "invalid_payload"
    UPSTREAM_ERROR = "upstream_error"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, raw: object) -> "RemoteErrorCode":
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            return cls.UNKNOWN


class ConfirmationError(RemoteCallError):
    """Structured failure from the booking confirmation service."""

    def __init__(
        self,
        code: RemoteErrorCode,
        message: str = "",
        status_code: int | None = None,
    ) -> None:
        super().__init__(message or code.value, status_code=status_code)
        self.code = code


class NotificationError(RemoteCallError):
    """Structured failure from the notification service."""

    def __init__(
        self,
        code: RemoteErrorCode,
        message: str = "",
        status_code: int | None = None,
    ) -> None:
        super().__init__(message or code.value, status_code=status_code)
        self.code = code
