import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from appointment_core.api.v1.schemas import RecurringBreakSchema, ScheduleSchema, TimeBlockSchema
from appointment_core.application.exceptions import NotFoundError, RemoteCallError
from appointment_core.application.use_cases.working_hours import WorkingHoursUseCase
from appointment_core.domain.entities.unavailability import RecurringBreak, TimeBlock
from appointment_core.wiring.dependencies import get_working_hours_use_case

router = APIRouter()
logger = logging.getLogger(__name__)


def _http_error(e: Exception) -> HTTPException:
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, ValueError):
        return HTTPException(status_code=400, detail=str(e))
    logger.exception("Schedule backend failed", extra={"error": str(e)})
    return HTTPException(status_code=502, detail="Schedule data is temporarily unavailable.")


@router.get("/providers/{provider_ref}/schedule", response_model=ScheduleSchema)
def get_schedule(
    provider_ref: str,
    uc: WorkingHoursUseCase = Depends(get_working_hours_use_case),
):
    try:
        return ScheduleSchema.from_entity(uc.get_schedule(provider_ref))
    except (NotFoundError, RemoteCallError) as e:
        raise _http_error(e)


@router.put("/providers/{provider_ref}/schedule", response_model=ScheduleSchema)
def update_schedule(
    provider_ref: str,
    req: ScheduleSchema,
    uc: WorkingHoursUseCase = Depends(get_working_hours_use_case),
):
    try:
        saved = uc.update_schedule(provider_ref, req.to_entity())
    except (ValueError, NotFoundError, RemoteCallError) as e:
        raise _http_error(e)
    return ScheduleSchema.from_entity(saved)


@router.get("/providers/{provider_ref}/time-blocks", response_model=list[TimeBlockSchema])
def list_time_blocks(
    provider_ref: str,
    date: str | None = Query(None, description="YYYY-MM-DD"),
    uc: WorkingHoursUseCase = Depends(get_working_hours_use_case),
):
    try:
        blocks = uc.list_time_blocks(provider_ref, date)
    except (NotFoundError, RemoteCallError) as e:
        raise _http_error(e)
    return [TimeBlockSchema.from_entity(b) for b in blocks]


@router.post("/providers/{provider_ref}/time-blocks", response_model=TimeBlockSchema, status_code=201)
def add_time_block(
    provider_ref: str,
    req: TimeBlockSchema,
    uc: WorkingHoursUseCase = Depends(get_working_hours_use_case),
):
    block = TimeBlock(date=req.date, start_time=req.start_time, end_time=req.end_time, title=req.title)
    try:
        created = uc.add_time_block(provider_ref, block)
    except (ValueError, NotFoundError, RemoteCallError) as e:
        raise _http_error(e)
    return TimeBlockSchema.from_entity(created)


@router.delete("/providers/{provider_ref}/time-blocks/{block_id}", status_code=204)
def remove_time_block(
    provider_ref: str,
    block_id: str,
    uc: WorkingHoursUseCase = Depends(get_working_hours_use_case),
) -> Response:
    try:
        uc.remove_time_block(provider_ref, block_id)
    except (NotFoundError, RemoteCallError) as e:
        raise _http_error(e)
    return Response(status_code=204)


@router.get("/providers/{provider_ref}/breaks", response_model=list[RecurringBreakSchema])
def list_recurring_breaks(
    provider_ref: str,
    uc: WorkingHoursUseCase = Depends(get_working_hours_use_case),
):
    try:
        items = uc.list_recurring_breaks(provider_ref)
    except (NotFoundError, RemoteCallError) as e:
        raise _http_error(e)
    return [RecurringBreakSchema.from_entity(item) for item in items]


@router.post("/providers/{provider_ref}/breaks", response_model=RecurringBreakSchema, status_code=201)
def add_recurring_break(
    provider_ref: str,
    req: RecurringBreakSchema,
    uc: WorkingHoursUseCase = Depends(get_working_hours_use_case),
):
    item = RecurringBreak(days_of_week=frozenset(req.days_of_week), start_time=req.start_time, end_time=req.end_time)
    try:
        created = uc.add_recurring_break(provider_ref, item)
    except (ValueError, NotFoundError, RemoteCallError) as e:
        raise _http_error(e)
    return RecurringBreakSchema.from_entity(created)


@router.delete("/providers/{provider_ref}/breaks/{break_id}", status_code=204)
def remove_recurring_break(
    provider_ref: str,
    break_id: str,
    uc: WorkingHoursUseCase = Depends(get_working_hours_use_case),
) -> Response:
    try:
        uc.remove_recurring_break(provider_ref, break_id)
    except (NotFoundError, RemoteCallError) as e:
        raise _http_error(e)
    return Response(status_code=204)
