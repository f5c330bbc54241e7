from datetime import date as date_type
import logging

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Response

from appointment_core.api.v1.schemas import (
    AppointmentSchema,
    AvailabilityResponseSchema,
    BookingRequestSchema,
    FailureSchema,
)
from appointment_core.application.exceptions import (
    AppointmentNotFoundError,
    NotFoundError,
    NotificationError,
    RemoteCallError,
    RemoteErrorCode,
)
from appointment_core.application.use_cases.appointments import AppointmentsUseCase
from appointment_core.application.use_cases.availability import AvailabilityUseCase
from appointment_core.application.use_cases.booking import BookingOrchestrator
from appointment_core.domain.entities.booking import BookingFailure, BookingFailureKind, BookingRequest
from appointment_core.wiring.dependencies import (
    get_appointments_use_case,
    get_availability_use_case,
    get_booking_orchestrator,
)

router = APIRouter()
logger = logging.getLogger(__name__)

FAILURE_STATUS = {
    BookingFailureKind.INVALID_INPUT: 400,
    BookingFailureKind.IDENTITY_NOT_FOUND: 404,
    BookingFailureKind.PRIMARY_WRITE_FAILED: 502,
    BookingFailureKind.SECONDARY_CONFIRM_FAILED: 502,
    BookingFailureKind.ROLLBACK_FAILED: 500,
    BookingFailureKind.TIMEOUT: 504,
    BookingFailureKind.CANCELLED: 409,
}

FAILURE_MESSAGES = {
    BookingFailureKind.INVALID_INPUT: "Invalid booking request.",
    BookingFailureKind.IDENTITY_NOT_FOUND: "Provider or service not found.",
    BookingFailureKind.PRIMARY_WRITE_FAILED: "Could not save the booking. Please try again.",
    BookingFailureKind.SECONDARY_CONFIRM_FAILED: "Could not confirm the booking. Please try again.",
    BookingFailureKind.ROLLBACK_FAILED: "Something went wrong with your booking. Support has been notified.",
    BookingFailureKind.TIMEOUT: "The booking service took too long to respond. Please try again.",
    BookingFailureKind.CANCELLED: "The booking was cancelled.",
}

CODE_STATUS = {
    "slot_taken": 409,
    "lookup_error": 502,
    RemoteErrorCode.CLIENT_UNREACHABLE.value: 422,
    RemoteErrorCode.BOT_BLOCKED.value: 422,
}

CODE_MESSAGES = {
    "provider": "Provider not found.",
    "service": "Service not found.",
    "slot_taken": "This time is no longer available. Please pick another slot.",
    RemoteErrorCode.CLIENT_UNREACHABLE.value: "Please open the bot and press /start, then try again.",
    RemoteErrorCode.BOT_BLOCKED.value: "The bot is blocked. Unblock it in Telegram and try again.",
}


def failure_detail(failure: BookingFailure) -> tuple[int, FailureSchema]:
    # Rollback failures always keep the generic support status and message.
    if failure.kind == BookingFailureKind.ROLLBACK_FAILED:
        status = FAILURE_STATUS[failure.kind]
        message = FAILURE_MESSAGES[failure.kind]
    else:
        status = CODE_STATUS.get(failure.code or "", FAILURE_STATUS[failure.kind])
        message = CODE_MESSAGES.get(failure.code or "", FAILURE_MESSAGES[failure.kind])
    return status, FailureSchema(kind=failure.kind.value, code=failure.code, message=message)


@router.get("/providers/{provider_ref}/availability", response_model=AvailabilityResponseSchema)
def get_availability(
    provider_ref: str,
    date: str = Query(..., description="YYYY-MM-DD"),
    service: str = Query(..., description="Service id or name"),
    uc: AvailabilityUseCase = Depends(get_availability_use_case),
):
    try:
        found, slots = uc.execute(provider_ref=provider_ref, day=date, service_ref=service)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except RemoteCallError as e:
        logger.exception("Availability sources unavailable", extra={"error": str(e)})
        raise HTTPException(status_code=502, detail="Schedule data is temporarily unavailable.")

    return AvailabilityResponseSchema(
        date=date,
        service_id=found.id,
        service_name=found.name,
        duration_minutes=found.duration_minutes,
        slots=[slot.start_time for slot in slots],
    )


@router.post("/bookings", response_model=AppointmentSchema, status_code=201)
def create_booking(
    req: BookingRequestSchema,
    idempotency_key: str | None = Header(None, alias="Idempotency-Key"),
    orchestrator: BookingOrchestrator = Depends(get_booking_orchestrator),
):
    if not idempotency_key:
        raise HTTPException(status_code=400, detail="Idempotency-Key header is required")

    result = orchestrator.book_appointment(
        BookingRequest(
            provider_ref=req.provider_ref,
            service_ref=req.service_ref,
            date=req.date,
            time=req.time,
            client_ref=req.client_ref,
            client_name=req.client_name,
            client_phone=req.client_phone,
            client_username=req.client_username,
        ),
        idempotency_key,
    )
    if result.ok:
        return AppointmentSchema.from_entity(result.appointment)

    status, detail = failure_detail(result.failure)
    raise HTTPException(status_code=status, detail=detail.model_dump())


@router.get("/providers/{provider_ref}/appointments", response_model=list[AppointmentSchema])
def list_appointments(
    provider_ref: str,
    date: str = Query(..., description="YYYY-MM-DD"),
    uc: AppointmentsUseCase = Depends(get_appointments_use_case),
):
    try:
        day = date_type.fromisoformat(date)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid date {date!r}, expected YYYY-MM-DD")
    try:
        appointments = uc.list_for_day(provider_ref, day)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return [AppointmentSchema.from_entity(a) for a in appointments]


@router.delete("/appointments/{appointment_id}", status_code=204)
def cancel_appointment(
    appointment_id: str,
    uc: AppointmentsUseCase = Depends(get_appointments_use_case),
) -> Response:
    try:
        uc.cancel(appointment_id)
    except AppointmentNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except RemoteCallError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return Response(status_code=204)


@router.post("/appointments/{appointment_id}/reminder", response_model=AppointmentSchema)
def send_reminder(
    appointment_id: str,
    uc: AppointmentsUseCase = Depends(get_appointments_use_case),
):
    try:
        appointment = uc.send_reminder(appointment_id)
    except AppointmentNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except NotificationError as e:
        message = CODE_MESSAGES.get(e.code.value, "Could not send the reminder.")
        raise HTTPException(
            status_code=CODE_STATUS.get(e.code.value, 502),
            detail=FailureSchema(kind="notification_failed", code=e.code.value, message=message).model_dump(),
        )
    except RemoteCallError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return AppointmentSchema.from_entity(appointment)
