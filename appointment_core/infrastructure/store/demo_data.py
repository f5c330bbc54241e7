from __future__ import annotations

from appointment_core.domain.entities.schedule import WeeklySchedule
from appointment_core.domain.entities.service import Service
from appointment_core.domain.entities.unavailability import RecurringBreak

DEMO_PROVIDER_REF = "100001"
DEMO_PROVIDER_ID = "1"

DEMO_PROVIDERS = {DEMO_PROVIDER_REF: DEMO_PROVIDER_ID}

DEMO_SERVICES = {
    DEMO_PROVIDER_ID: [
        Service(id="11", name="Маникюр", duration_minutes=60, price=1200),
        Service(id="12", name="Маникюр + гель-лак", duration_minutes=90, price=1500),
        Service(id="13", name="Педикюр", duration_minutes=120, price=2000),
    ]
}

DEMO_SCHEDULE = WeeklySchedule.from_payload(
    {
        "mon": {"enabled": True, "startTime": "09:00", "endTime": "18:00"},
        "tue": {"enabled": True, "startTime": "09:00", "endTime": "18:00"},
        "wed": {"enabled": True, "startTime": "09:00", "endTime": "18:00"},
        "thu": {"enabled": True, "startTime": "09:00", "endTime": "18:00"},
        "fri": {"enabled": True, "startTime": "10:00", "endTime": "16:00"},
        "sat": {"enabled": False, "startTime": "10:00", "endTime": "14:00"},
        "sun": {"enabled": False, "startTime": "10:00", "endTime": "14:00"},
    }
)

DEMO_BREAKS = [
    RecurringBreak(id="lunch", days_of_week=frozenset({1, 2, 3, 4, 5}), start_time="13:00", end_time="14:00"),
]
