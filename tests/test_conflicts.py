"""
Tests for day-scoped conflict collection.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from appointment_core.application.use_cases.conflicts import collect_conflicts
from appointment_core.domain.entities.appointment import Appointment, AppointmentStatus
from appointment_core.domain.entities.schedule import WeeklySchedule, iso_weekday_from_sunday_based
from appointment_core.domain.entities.unavailability import RecurringBreak, TimeBlock

MOSCOW = ZoneInfo("Europe/Moscow")
MONDAY = date(2026, 10, 19)


def _appointment(day: str, time: str, duration: int = 60, **kwargs) -> Appointment:
    return Appointment(
        id=kwargs.pop("id", "a1"),
        provider_id="1",
        service_id="11",
        client_ref="555",
        date=day,
        time=time,
        duration_minutes=duration,
        **kwargs,
    )


def test_sunday_based_weekdays_map_to_iso():
    assert iso_weekday_from_sunday_based(0) == 7
    assert iso_weekday_from_sunday_based(1) == 1
    assert iso_weekday_from_sunday_based(6) == 6


def test_schedule_payload_keys_land_on_iso_weekdays():
    schedule = WeeklySchedule.from_payload(
        {
            "sun": {"enabled": True, "startTime": "10:00", "endTime": "14:00"},
            "mon": {"enabled": False, "startTime": "09:00", "endTime": "18:00"},
        }
    )

    assert schedule.for_weekday(7).enabled is True
    assert schedule.for_weekday(7).start_time == "10:00"
    assert schedule.for_weekday(1).enabled is False
    assert schedule.for_weekday(3) is None


def test_local_appointments_filtered_by_date():
    conflicts = collect_conflicts(
        MONDAY,
        [_appointment("2026-10-19", "10:00", 90), _appointment("2026-10-20", "10:00", id="a2")],
        [],
        [],
        MOSCOW,
    )

    assert conflicts.appointments == [(600, 690)]


def test_stored_instant_is_rendered_in_provider_timezone():
    """21:30Z on the 19th is 00:30 on the 20th in Moscow."""
    late = _appointment("2026-10-19", "21:30", 60, starts_at=datetime(2026, 10, 19, 21, 30, tzinfo=timezone.utc))

    on_19th = collect_conflicts(MONDAY, [late], [], [], MOSCOW)
    on_20th = collect_conflicts(date(2026, 10, 20), [late], [], [], MOSCOW)

    assert on_19th.appointments == []
    assert on_20th.appointments == [(30, 90)]


def test_naive_instant_is_treated_as_utc():
    appt = _appointment("", "", 30, starts_at=datetime(2026, 10, 19, 6, 0))

    conflicts = collect_conflicts(MONDAY, [appt], [], [], MOSCOW)

    assert conflicts.appointments == [(540, 570)]


def test_cancelled_appointments_are_ignored():
    cancelled = _appointment("2026-10-19", "10:00", status=AppointmentStatus.CANCELLED)

    assert collect_conflicts(MONDAY, [cancelled], [], [], MOSCOW).appointments == []


def test_time_blocks_match_exact_date():
    blocks = [
        TimeBlock(date="2026-10-19", start_time="12:00", end_time="12:30", title="Dentist"),
        TimeBlock(date="2026-10-18", start_time="09:00", end_time="18:00", title="Day off"),
    ]

    assert collect_conflicts(MONDAY, [], blocks, [], MOSCOW).time_blocks == [(720, 750)]


def test_recurring_breaks_match_iso_weekday():
    breaks = [
        RecurringBreak(days_of_week=frozenset({1, 3}), start_time="13:00", end_time="14:00"),
        RecurringBreak(days_of_week=frozenset({7}), start_time="10:00", end_time="11:00"),
    ]

    monday = collect_conflicts(MONDAY, [], [], breaks, MOSCOW)
    sunday = collect_conflicts(date(2026, 10, 25), [], [], breaks, MOSCOW)

    assert monday.breaks == [(780, 840)]
    assert sunday.breaks == [(600, 660)]


def test_all_merges_every_source():
    conflicts = collect_conflicts(
        MONDAY,
        [_appointment("2026-10-19", "10:00")],
        [TimeBlock(date="2026-10-19", start_time="12:00", end_time="12:30")],
        [RecurringBreak(days_of_week=frozenset({1}), start_time="13:00", end_time="14:00")],
        MOSCOW,
    )

    assert conflicts.all() == [(600, 660), (720, 750), (780, 840)]
