from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass, replace
from typing import Any, Callable
from zoneinfo import ZoneInfo

from appointment_core.application.exceptions import (
    ConfirmationError,
    RemoteErrorCode,
    RemoteTimeoutError,
    SlotTakenError,
)
from appointment_core.application.ports.appointment_store import AppointmentStorePort
from appointment_core.application.ports.booking_confirmation import (
    BookingConfirmationPort,
    ConfirmationPayload,
)
from appointment_core.application.ports.notification import NotificationPort, ReminderPayload
from appointment_core.application.ports.provider_directory import ProviderDirectoryPort
from appointment_core.application.ports.service_catalog import ServiceCatalogPort
from appointment_core.application.utils.time_utils import is_valid_date, is_valid_time, to_utc_instant
from appointment_core.domain.entities.appointment import Appointment, AppointmentStatus
from appointment_core.domain.entities.booking import (
    BookingFailure,
    BookingFailureKind,
    BookingRequest,
    BookingResult,
    BookingState,
)
from appointment_core.domain.entities.service import Service

# Results that must be replayed rather than re-run for a repeated token.
_CACHEABLE_FAILURES = {BookingFailureKind.ROLLBACK_FAILED}


@dataclass(frozen=True)
class _CachedAttempt:
    request: BookingRequest
    result: BookingResult
    expires_at: float


class _Trail:
    """Ordered record of the states one attempt passed through."""

    def __init__(self) -> None:
        self.states: list[BookingState] = [BookingState.VALIDATING]

    def enter(self, state: BookingState) -> None:
        self.states.append(state)

    def freeze(self) -> tuple[BookingState, ...]:
        return tuple(self.states)


class BookingOrchestrator:
    def __init__(
        self,
        directory: ProviderDirectoryPort,
        catalog: ServiceCatalogPort,
        store: AppointmentStorePort,
        confirmation: BookingConfirmationPort,
        notifier: NotificationPort | None,
        timezone: ZoneInfo,
        step_timeout_seconds: float = 10.0,
        idempotency_window_seconds: float = 900.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._directory = directory
        self._catalog = catalog
        self._store = store
        self._confirmation = confirmation
        self._notifier = notifier
        self._timezone = timezone
        self._step_timeout = step_timeout_seconds
        self._idempotency_window = idempotency_window_seconds
        self._clock = clock
        self._steps = ThreadPoolExecutor(max_workers=8, thread_name_prefix="booking-step")
        self._reminders = ThreadPoolExecutor(max_workers=2, thread_name_prefix="booking-reminder")
        self._attempts: dict[str, _CachedAttempt] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._lock_users: dict[str, int] = {}
        self._lock_lock = threading.Lock()
        self._logger = logging.getLogger(__name__)

    def book_appointment(
        self,
        request: BookingRequest,
        idempotency_token: str,
        cancel_event: threading.Event | None = None,
    ) -> BookingResult:
        """Run one booking attempt to a terminal state.

        A token seen before with the same request returns the earlier result without
        touching either backend again.
        """
        token = (idempotency_token or "").strip()
        if not token:
            return _failed(_Trail(), BookingFailureKind.INVALID_INPUT, "Idempotency token is required")

        lock = self._acquire_lock(token)
        try:
            with lock:
                result, service, replayed = self._run_once(request, token, cancel_event)
        finally:
            self._release_lock(token)

        if not replayed and result.ok and result.appointment is not None and service is not None:
            self._dispatch_reminder(result.appointment, service)
        return result

    def close(self) -> None:
        """Wait for in-flight steps and reminders, then stop the worker pools."""
        self._steps.shutdown(wait=True)
        self._reminders.shutdown(wait=True)

    def _run_once(
        self,
        request: BookingRequest,
        token: str,
        cancel_event: threading.Event | None,
    ) -> tuple[BookingResult, Service | None, bool]:
        cached = self._cached(token)
        if cached is not None:
            if cached.request != request:
                self._logger.warning("Idempotency token reused for a different request", extra={"attempt": token})
                rejected = _failed(
                    _Trail(),
                    BookingFailureKind.INVALID_INPUT,
                    "Idempotency token was already used for a different booking",
                )
                return rejected, None, True
            self._logger.info("Replaying booking attempt", extra={"attempt": token, "state": cached.result.state.value})
            return cached.result, None, True

        result, service = self._run(request, token, cancel_event)
        if result.ok or (result.failure and result.failure.kind in _CACHEABLE_FAILURES):
            self._remember(token, request, result)
        return result, service, False

    def _run(
        self,
        request: BookingRequest,
        token: str,
        cancel_event: threading.Event | None,
    ) -> tuple[BookingResult, Service | None]:
        trail = _Trail()

        problem = _validate(request)
        if problem:
            return self._fail(trail, token, BookingFailureKind.INVALID_INPUT, problem), None
        if _is_cancelled(cancel_event):
            return self._fail(trail, token, BookingFailureKind.CANCELLED, "Cancelled before booking started"), None

        trail.enter(BookingState.RESOLVING_PROVIDER_IDENTITY)
        try:
            provider_id = self._call(self._directory.resolve, request.provider_ref)
        except RemoteTimeoutError:
            return self._fail(trail, token, BookingFailureKind.TIMEOUT, "Provider lookup timed out"), None
        except Exception as e:
            self._logger.exception("Provider lookup failed", extra={"attempt": token, "error": str(e)})
            return self._fail(trail, token, BookingFailureKind.IDENTITY_NOT_FOUND, str(e), code="lookup_error"), None
        if not provider_id:
            return self._fail(
                trail, token, BookingFailureKind.IDENTITY_NOT_FOUND, f"Provider {request.provider_ref!r} not found", code="provider"
            ), None
        if _is_cancelled(cancel_event):
            return self._fail(trail, token, BookingFailureKind.CANCELLED, "Cancelled before booking started"), None

        trail.enter(BookingState.RESOLVING_SERVICE_IDENTITY)
        try:
            service = self._call(self._catalog.resolve, provider_id, request.service_ref)
        except RemoteTimeoutError:
            return self._fail(trail, token, BookingFailureKind.TIMEOUT, "Service lookup timed out"), None
        except Exception as e:
            self._logger.exception("Service lookup failed", extra={"attempt": token, "error": str(e)})
            return self._fail(trail, token, BookingFailureKind.IDENTITY_NOT_FOUND, str(e), code="lookup_error"), None
        if not service or not service.id:
            return self._fail(
                trail, token, BookingFailureKind.IDENTITY_NOT_FOUND, f"Service {request.service_ref!r} not found", code="service"
            ), None
        if _is_cancelled(cancel_event):
            return self._fail(trail, token, BookingFailureKind.CANCELLED, "Cancelled before booking started"), None

        # From here on the attempt runs to a terminal state; cancellation is ignored.
        trail.enter(BookingState.CREATING_PRIMARY_RECORD)
        record = Appointment(
            id=None,
            provider_id=provider_id,
            service_id=service.id,
            client_ref=request.client_ref.strip(),
            date=request.date,
            time=request.time,
            duration_minutes=service.duration_minutes,
            status=AppointmentStatus.CONFIRMED,
            client_name=request.client_name,
            client_phone=(request.client_phone or "").strip() or None,
            starts_at=to_utc_instant(request.date, request.time, self._timezone),
        )
        future = self._steps.submit(self._store.create, record)
        try:
            appointment_id = future.result(timeout=self._step_timeout)
        except FutureTimeoutError:
            future.add_done_callback(self._discard_late_record)
            return self._fail(trail, token, BookingFailureKind.TIMEOUT, "Primary write timed out"), service
        except RemoteTimeoutError:
            return self._fail(trail, token, BookingFailureKind.TIMEOUT, "Primary write timed out"), service
        except SlotTakenError as e:
            return self._fail(trail, token, BookingFailureKind.PRIMARY_WRITE_FAILED, str(e), code="slot_taken"), service
        except Exception as e:
            self._logger.exception("Primary write failed", extra={"attempt": token, "error": str(e)})
            return self._fail(trail, token, BookingFailureKind.PRIMARY_WRITE_FAILED, str(e)), service
        appointment = replace(record, id=str(appointment_id))
        self._logger.info(
            "Primary record created",
            extra={"attempt": token, "appointment_id": appointment.id, "provider_id": provider_id},
        )

        trail.enter(BookingState.CONFIRMING_WITH_SECONDARY_SERVICE)
        payload = ConfirmationPayload(
            appointment_id=appointment.id,
            provider_id=provider_id,
            service_id=service.id,
            client_ref=appointment.client_ref,
            client_name=appointment.client_name,
            starts_at=appointment.starts_at,
            client_phone=appointment.client_phone,
            client_username=request.client_username,
        )
        try:
            self._call(self._confirmation.confirm, payload, token)
        except ConfirmationError as e:
            if e.code != RemoteErrorCode.ALREADY_CONFIRMED:
                return self._compensate(
                    trail, token, appointment, BookingFailureKind.SECONDARY_CONFIRM_FAILED, str(e), e.code.value
                ), service
            self._logger.info("Booking already confirmed upstream", extra={"attempt": token, "appointment_id": appointment.id})
        except RemoteTimeoutError:
            # The far side may still apply this confirmation after the rollback below.
            self._logger.warning(
                "Confirmation may land after rollback, reconcile by idempotency key",
                extra={"attempt": token, "appointment_id": appointment.id, "code": "timeout"},
            )
            return self._compensate(
                trail, token, appointment, BookingFailureKind.TIMEOUT, "Booking confirmation timed out", "timeout"
            ), service
        except Exception as e:
            self._logger.exception("Booking confirmation failed", extra={"attempt": token, "error": str(e)})
            return self._compensate(
                trail,
                token,
                appointment,
                BookingFailureKind.SECONDARY_CONFIRM_FAILED,
                str(e),
                RemoteErrorCode.UPSTREAM_ERROR.value,
            ), service

        trail.enter(BookingState.COMPLETED)
        self._logger.info("Booking completed", extra={"attempt": token, "appointment_id": appointment.id})
        return BookingResult(state=BookingState.COMPLETED, appointment=appointment, transitions=trail.freeze()), service

    def _compensate(
        self,
        trail: _Trail,
        token: str,
        appointment: Appointment,
        kind: BookingFailureKind,
        reason: str,
        code: str | None,
    ) -> BookingResult:
        trail.enter(BookingState.COMPENSATING_ROLLBACK)
        self._logger.warning(
            "Rolling back primary record",
            extra={"attempt": token, "appointment_id": appointment.id, "failure": kind.value, "code": code},
        )
        try:
            self._call(self._store.delete, appointment.id)
        except Exception as e:
            self._logger.error(
                "Rollback failed, record needs manual reconciliation",
                extra={"attempt": token, "appointment_id": appointment.id, "error": str(e)},
            )
            return self._fail(
                trail,
                token,
                BookingFailureKind.ROLLBACK_FAILED,
                f"{reason}; rollback failed: {e}",
                code=code,
                appointment_id=appointment.id,
            )
        return self._fail(trail, token, kind, reason, code=code)

    def _fail(
        self,
        trail: _Trail,
        token: str,
        kind: BookingFailureKind,
        reason: str,
        code: str | None = None,
        appointment_id: str | None = None,
    ) -> BookingResult:
        self._logger.warning(
            "Booking failed",
            extra={"attempt": token, "state": trail.states[-1].value, "failure": kind.value, "code": code, "reason": reason},
        )
        return _failed(trail, kind, reason, code=code, appointment_id=appointment_id)

    def _call(self, fn: Callable[..., Any], *args: Any) -> Any:
        future = self._steps.submit(fn, *args)
        try:
            return future.result(timeout=self._step_timeout)
        except FutureTimeoutError:
            raise RemoteTimeoutError(f"{getattr(fn, '__qualname__', fn)} exceeded {self._step_timeout}s")

    def _discard_late_record(self, future: Future) -> None:
        if future.cancelled() or future.exception() is not None:
            return
        appointment_id = str(future.result())
        try:
            self._store.delete(appointment_id)
            self._logger.warning("Removed primary record written after timeout", extra={"appointment_id": appointment_id})
        except Exception as e:
            self._logger.error(
                "Primary record written after timeout could not be removed",
                extra={"appointment_id": appointment_id, "error": str(e)},
            )

    def _dispatch_reminder(self, appointment: Appointment, service: Service) -> None:
        if self._notifier is None:
            return
        payload = ReminderPayload(
            provider_id=appointment.provider_id,
            client_ref=appointment.client_ref,
            client_name=appointment.client_name,
            service_name=service.name,
            date=appointment.date,
            time=appointment.time,
        )
        future = self._reminders.submit(self._notifier.send_reminder, payload)
        future.add_done_callback(lambda f: self._log_reminder_outcome(f, appointment.id))

    def _log_reminder_outcome(self, future: Future, appointment_id: str | None) -> None:
        error = future.exception()
        if error is not None:
            self._logger.warning(
                "Reminder dispatch failed", extra={"appointment_id": appointment_id, "error": str(error)}
            )

    def _cached(self, token: str) -> _CachedAttempt | None:
        now = self._clock()
        with self._lock_lock:
            expired = [key for key, entry in self._attempts.items() if entry.expires_at <= now]
            for key in expired:
                del self._attempts[key]
            return self._attempts.get(token)

    def _acquire_lock(self, token: str) -> threading.Lock:
        with self._lock_lock:
            if token not in self._locks:
                self._locks[token] = threading.Lock()
            self._lock_users[token] = self._lock_users.get(token, 0) + 1
            return self._locks[token]

    def _release_lock(self, token: str) -> None:
        # A lock only lives while some call for its token is in flight.
        with self._lock_lock:
            users = self._lock_users[token] - 1
            if users:
                self._lock_users[token] = users
            else:
                del self._lock_users[token]
                del self._locks[token]

    def _remember(self, token: str, request: BookingRequest, result: BookingResult) -> None:
        with self._lock_lock:
            self._attempts[token] = _CachedAttempt(
                request=request,
                result=result,
                expires_at=self._clock() + self._idempotency_window,
            )


def _validate(request: BookingRequest) -> str | None:
    if not is_valid_date(request.date):
        return f"Invalid date {request.date!r}, expected YYYY-MM-DD"
    if not is_valid_time(request.time):
        return f"Invalid time {request.time!r}, expected HH:MM"
    if not (request.client_ref or "").strip():
        return "Client identity is required"
    if not (request.provider_ref or "").strip():
        return "Provider reference is required"
    if not (request.service_ref or "").strip():
        return "Service reference is required"
    return None


def _is_cancelled(cancel_event: threading.Event | None) -> bool:
    return cancel_event is not None and cancel_event.is_set()


def _failed(
    trail: _Trail,
    kind: BookingFailureKind,
    reason: str,
    code: str | None = None,
    appointment_id: str | None = None,
) -> BookingResult:
    trail.enter(BookingState.FAILED)
    return BookingResult(
        state=BookingState.FAILED,
        failure=BookingFailure(kind=kind, reason=reason, code=code, appointment_id=appointment_id),
        transitions=trail.freeze(),
    )
