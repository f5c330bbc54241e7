"""
Tests for provider edits to weekly hours, time blocks and recurring breaks.
"""

from __future__ import annotations

from datetime import date
from zoneinfo import ZoneInfo

import pytest

from appointment_core.application.exceptions import NotFoundError
from appointment_core.application.use_cases.availability import compute_availability
from appointment_core.application.use_cases.working_hours import WorkingHoursUseCase
from appointment_core.domain.entities.schedule import DaySchedule, WeeklySchedule
from appointment_core.domain.entities.unavailability import RecurringBreak, TimeBlock
from appointment_core.infrastructure.store.memory_store import (
    MemoryAvailabilitySources,
    MemoryProviderDirectory,
)

MONDAY = "2026-10-19"


def _use_case():
    sources = MemoryAvailabilitySources()
    use_case = WorkingHoursUseCase(
        directory=MemoryProviderDirectory({"100001": "1"}),
        schedules=sources,
        time_blocks=sources,
        recurring_breaks=sources,
    )
    return use_case, sources


def _slots(sources: MemoryAvailabilitySources) -> list[str]:
    slots = compute_availability(
        date.fromisoformat(MONDAY),
        60,
        sources.get_schedule("1"),
        [],
        sources.list_time_blocks("1"),
        sources.list_recurring_breaks("1"),
        ZoneInfo("Europe/Moscow"),
    )
    return [s.start_time for s in slots]


def test_missing_schedule_reads_as_empty():
    use_case, _ = _use_case()

    assert use_case.get_schedule("100001").days == {}


def test_updated_schedule_drives_availability():
    use_case, sources = _use_case()

    use_case.update_schedule("100001", WeeklySchedule(days={1: DaySchedule(True, "10:00", "12:00")}))

    assert use_case.get_schedule("100001").for_weekday(1).start_time == "10:00"
    assert _slots(sources) == ["10:00", "10:15", "10:30", "10:45", "11:00"]


@pytest.mark.parametrize(
    "day",
    [DaySchedule(True, "12:00", "10:00"), DaySchedule(True, "10:00", "10:00"), DaySchedule(True, "9:00", "12:00")],
)
def test_enabled_day_needs_a_real_range(day):
    use_case, sources = _use_case()

    with pytest.raises(ValueError):
        use_case.update_schedule("100001", WeeklySchedule(days={1: day}))
    assert sources.get_schedule("1") is None


def test_disabled_day_keeps_its_hours_unchecked():
    use_case, _ = _use_case()

    saved = use_case.update_schedule("100001", WeeklySchedule(days={7: DaySchedule(False, "", "")}))

    assert saved.for_weekday(7).enabled is False


def test_time_block_add_list_remove():
    use_case, sources = _use_case()
    use_case.update_schedule("100001", WeeklySchedule(days={1: DaySchedule(True, "10:00", "12:00")}))

    block = use_case.add_time_block("100001", TimeBlock(date=MONDAY, start_time="10:30", end_time="11:30", title="Dentist"))

    assert block.id is not None
    assert [b.id for b in use_case.list_time_blocks("100001", MONDAY)] == [block.id]
    assert use_case.list_time_blocks("100001", "2026-10-20") == []
    assert _slots(sources) == []

    use_case.remove_time_block("100001", block.id)

    assert use_case.list_time_blocks("100001") == []
    with pytest.raises(NotFoundError):
        use_case.remove_time_block("100001", block.id)


@pytest.mark.parametrize(
    "block",
    [
        TimeBlock(date="19.10.2026", start_time="10:00", end_time="11:00"),
        TimeBlock(date=MONDAY, start_time="11:00", end_time="10:00"),
        TimeBlock(date=MONDAY, start_time="10:00", end_time="24:00"),
    ],
)
def test_invalid_time_block_is_rejected(block):
    use_case, sources = _use_case()

    with pytest.raises(ValueError):
        use_case.add_time_block("100001", block)
    assert sources.list_time_blocks("1") == []


def test_recurring_break_add_and_remove():
    use_case, sources = _use_case()
    use_case.update_schedule("100001", WeeklySchedule(days={1: DaySchedule(True, "10:00", "12:00")}))

    lunch = use_case.add_recurring_break(
        "100001", RecurringBreak(days_of_week=frozenset({1, 2}), start_time="11:00", end_time="12:00")
    )

    assert _slots(sources) == ["10:00"]
    assert [b.id for b in use_case.list_recurring_breaks("100001")] == [lunch.id]

    use_case.remove_recurring_break("100001", lunch.id)

    assert use_case.list_recurring_breaks("100001") == []


@pytest.mark.parametrize("days", [frozenset(), frozenset({0, 1}), frozenset({8})])
def test_break_days_must_be_iso_weekdays(days):
    use_case, _ = _use_case()

    with pytest.raises(ValueError):
        use_case.add_recurring_break("100001", RecurringBreak(days_of_week=days, start_time="13:00", end_time="14:00"))


def test_unknown_provider():
    use_case, _ = _use_case()

    with pytest.raises(NotFoundError):
        use_case.add_time_block("42", TimeBlock(date=MONDAY, start_time="10:00", end_time="11:00"))
