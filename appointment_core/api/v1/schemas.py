from pydantic import BaseModel, Field

from appointment_core.domain.entities.appointment import Appointment
from appointment_core.domain.entities.schedule import WEEKDAY_KEYS, WeeklySchedule
from appointment_core.domain.entities.unavailability import RecurringBreak, TimeBlock


class AvailabilityResponseSchema(BaseModel):
    date: str
    service_id: str
    service_name: str
    duration_minutes: int
    slots: list[str] = Field(default_factory=list)


class BookingRequestSchema(BaseModel):
    provider_ref: str
    service_ref: str
    date: str = Field(description="YYYY-MM-DD")
    time: str = Field(description="HH:MM")
    client_ref: str = ""
    client_name: str = ""
    client_phone: str | None = None
    client_username: str | None = None


class AppointmentSchema(BaseModel):
    id: str | None
    provider_id: str
    service_id: str
    client_ref: str
    client_name: str
    date: str
    time: str
    duration_minutes: int
    status: str
    reminder_sent: bool = False

    @classmethod
    def from_entity(cls, appointment: Appointment) -> "AppointmentSchema":
        return cls(
            id=appointment.id,
            provider_id=appointment.provider_id,
            service_id=appointment.service_id,
            client_ref=appointment.client_ref,
            client_name=appointment.client_name,
            date=appointment.date,
            time=appointment.time,
            duration_minutes=appointment.duration_minutes,
            status=appointment.status.value,
            reminder_sent=appointment.reminder_sent,
        )


class FailureSchema(BaseModel):
    kind: str
    code: str | None = None
    message: str


class DayScheduleSchema(BaseModel):
    enabled: bool = False
    start_time: str = "09:00"
    end_time: str = "18:00"


class ScheduleSchema(BaseModel):
    days: dict[str, DayScheduleSchema] = Field(default_factory=dict, description="Keyed by mon..sun")

    def to_entity(self) -> WeeklySchedule:
        unknown = set(self.days) - set(WEEKDAY_KEYS)
        if unknown:
            raise ValueError(f"Unknown day keys: {', '.join(sorted(unknown))}")
        return WeeklySchedule.from_payload({key: day.model_dump() for key, day in self.days.items()})

    @classmethod
    def from_entity(cls, schedule: WeeklySchedule) -> "ScheduleSchema":
        return cls(
            days={
                key: DayScheduleSchema(enabled=day["enabled"], start_time=day["startTime"], end_time=day["endTime"])
                for key, day in schedule.to_payload().items()
            }
        )


class TimeBlockSchema(BaseModel):
    id: str | None = None
    date: str = Field(description="YYYY-MM-DD")
    start_time: str
    end_time: str
    title: str = ""

    @classmethod
    def from_entity(cls, block: TimeBlock) -> "TimeBlockSchema":
        return cls(id=block.id, date=block.date, start_time=block.start_time, end_time=block.end_time, title=block.title)


class RecurringBreakSchema(BaseModel):
    id: str | None = None
    days_of_week: list[int] = Field(description="ISO weekdays, 1=Monday..7=Sunday")
    start_time: str
    end_time: str

    @classmethod
    def from_entity(cls, item: RecurringBreak) -> "RecurringBreakSchema":
        return cls(
            id=item.id,
            days_of_week=sorted(item.days_of_week),
            start_time=item.start_time,
            end_time=item.end_time,
        )
