from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from appointment_core.domain.entities.appointment import Appointment


class BookingState(str, Enum):
    VALIDATING = "validating"
    RESOLVING_PROVIDER_IDENTITY = "resolving_provider_identity"
    RESOLVING_SERVICE_IDENTITY = "resolving_service_identity"
    CREATING_PRIMARY_RECORD = "creating_primary_record"
    CONFIRMING_WITH_SECONDARY_SERVICE = "confirming_with_secondary_service"
    COMPENSATING_ROLLBACK = "compensating_rollback"
    COMPLETED = "completed"
    FAILED = "failed"


class BookingFailureKind(str, Enum):
    INVALID_INPUT = "invalid_input"
    IDENTITY_NOT_FOUND = "identity_not_found"
    PRIMARY_WRITE_FAILED = "primary_write_failed"
    SECONDARY_CONFIRM_FAILED = "secondary_confirm_failed"
    ROLLBACK_FAILED = "rollback_failed"  # a record may survive without confirmation
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class BookingRequest:
    provider_ref: str
    service_ref: str
    date: str
    time: str
    client_ref: str
    client_name: str = ""
    client_phone: str | None = None
    client_username: str | None = None


@dataclass(frozen=True)
class BookingFailure:
    kind: BookingFailureKind
    reason: str
    code: str | None = None
    appointment_id: str | None = None  # set when a record may need reconciliation


@dataclass(frozen=True)
class BookingResult:
    state: BookingState
    appointment: Appointment | None = None
    failure: BookingFailure | None = None
    transitions: tuple[BookingState, ...] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        return self.state == BookingState.COMPLETED and self.appointment is not None
