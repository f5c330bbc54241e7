"""
Tests for the HTTP adapters against canned responses (httpx.MockTransport).
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import httpx
import pytest

from appointment_core.application.exceptions import (
    ConfirmationError,
    NotFoundError,
    NotificationError,
    RemoteCallError,
    RemoteErrorCode,
    RemoteTimeoutError,
    SlotTakenError,
)
from appointment_core.application.ports.booking_confirmation import ConfirmationPayload
from appointment_core.application.ports.notification import ReminderPayload
from appointment_core.domain.entities.appointment import Appointment
from appointment_core.domain.entities.schedule import WeeklySchedule
from appointment_core.domain.entities.unavailability import RecurringBreak, TimeBlock
from appointment_core.infrastructure.booking_api.booking_client import BookingApiClient
from appointment_core.infrastructure.directus.directus_appointments import DirectusAppointmentStore
from appointment_core.infrastructure.directus.directus_client import DirectusClient
from appointment_core.infrastructure.directus.directus_directory import (
    DirectusProviderDirectory,
    DirectusServiceCatalog,
)
from appointment_core.infrastructure.directus.directus_sources import (
    DirectusRecurringBreakSource,
    DirectusScheduleSource,
    DirectusTimeBlockSource,
)
from appointment_core.infrastructure.notify.notify_client import NotifyClient

MOSCOW = ZoneInfo("Europe/Moscow")
BASE_URL = "https://directus.test"


def _directus(handler) -> DirectusClient:
    return DirectusClient(base_url=BASE_URL, token="secret", transport=httpx.MockTransport(handler))


def _payload() -> ConfirmationPayload:
    return ConfirmationPayload(
        appointment_id="7",
        provider_id="1",
        service_id="11",
        client_ref="555",
        client_name="Anna",
        starts_at=datetime(2026, 10, 19, 6, 0, tzinfo=timezone.utc),
        client_phone="+79990000000",
    )


def test_provider_directory_filters_by_external_ref():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"data": [{"id": 3}]})

    assert DirectusProviderDirectory(_directus(handler)).resolve("100001") == "3"
    request = seen[0]
    assert request.url.path == "/items/masters"
    assert request.url.params["filter[telegramId][_eq]"] == "100001"
    assert request.url.params["fields"] == "id"
    assert request.headers["Authorization"] == "Bearer secret"


def test_provider_directory_miss():
    client = _directus(lambda request: httpx.Response(200, json={"data": []}))

    assert DirectusProviderDirectory(client).resolve("42") is None


def test_service_catalog_matches_id_then_name():
    items = [
        {"id": 11, "name": "Manicure", "duration": 60, "price": 1500},
        {"id": 12, "name": "11", "duration": 90},
        {"id": 13, "name": "Broken", "duration": None},
    ]
    client = _directus(lambda request: httpx.Response(200, json={"data": items}))
    catalog = DirectusServiceCatalog(client)

    by_id = catalog.resolve("1", "11")
    by_name = catalog.resolve("1", "Manicure")

    assert (by_id.id, by_id.duration_minutes, by_id.price) == ("11", 60, 1500.0)
    assert by_name.id == "11"
    assert catalog.resolve("1", "Broken") is None
    assert catalog.resolve("1", "Pedicure") is None


def test_appointment_create_payload():
    bodies = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"data": {"id": 7}})

    store = DirectusAppointmentStore(_directus(handler), MOSCOW)
    appointment_id = store.create(
        Appointment(
            id=None,
            provider_id="1",
            service_id="11",
            client_ref="555",
            date="2026-10-19",
            time="09:00",
            duration_minutes=90,
            client_name="Anna",
        )
    )

    assert appointment_id == "7"
    assert bodies[0] == {
        "master": "1",
        "service": "11",
        "clientName": "Anna",
        "clientTelegramId": "555",
        "dateTime": "2026-10-19T06:00:00Z",
        "duration": 90,
        "reminderSent": False,
        "status": "confirmed",
    }


def test_unique_violation_becomes_slot_taken():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            400,
            json={"errors": [{"message": "Value has to be unique.", "extensions": {"code": "RECORD_NOT_UNIQUE"}}]},
        )

    with pytest.raises(SlotTakenError):
        _directus(handler).create_item("appointments", {})


def test_directus_timeout_and_server_error():
    def slow(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(RemoteTimeoutError):
        _directus(slow).list_items("masters")

    with pytest.raises(RemoteCallError) as exc:
        _directus(lambda request: httpx.Response(500, text="boom")).list_items("masters")
    assert exc.value.status_code == 500


def test_get_item_missing_returns_none():
    client = _directus(lambda request: httpx.Response(403, json={"errors": [{"message": "Forbidden"}]}))

    assert DirectusAppointmentStore(client, MOSCOW).get("7") is None


def test_appointments_are_localized_with_legacy_duration():
    row = {
        "id": 7,
        "master": 1,
        "service": 11,
        "clientTelegramId": "555",
        "clientName": "Anna",
        "dateTime": "2026-10-18T21:30:00Z",
        "reminderSent": True,
    }
    client = _directus(lambda request: httpx.Response(200, json={"data": [row]}))

    (appointment,) = DirectusAppointmentStore(client, MOSCOW).list_for_provider("1")

    assert (appointment.date, appointment.time) == ("2026-10-19", "00:30")
    assert appointment.duration_minutes == 60
    assert appointment.status.value == "confirmed"
    assert appointment.reminder_sent


def test_schedule_source_accepts_json_string():
    schedule = {"mon": {"enabled": True, "startTime": "10:00", "endTime": "17:00"}, "sun": {"enabled": False}}
    client = _directus(lambda request: httpx.Response(200, json={"data": [{"schedule": json.dumps(schedule)}]}))

    result = DirectusScheduleSource(client).get_schedule("1")

    assert result.for_weekday(1).start_time == "10:00"
    assert result.for_weekday(7).enabled is False
    assert result.for_weekday(2) is None


def test_time_block_and_break_parsing():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("time_blocks"):
            return httpx.Response(
                200,
                json={"data": [{"id": 1, "date": "2026-10-19T00:00:00", "startTime": "12:00:00", "endTime": "13:00"}]},
            )
        return httpx.Response(
            200,
            json={"data": [{"id": 2, "days_of_week": "1, 3,9", "start_time": "13:00", "end_time": "14:00"}]},
        )

    client = _directus(handler)
    (block,) = DirectusTimeBlockSource(client).list_time_blocks("1")
    (pause,) = DirectusRecurringBreakSource(client).list_recurring_breaks("1")

    assert (block.date, block.start_time, block.end_time) == ("2026-10-19", "12:00", "13:00")
    assert pause.days_of_week == frozenset({1, 3})


def test_booking_client_sends_idempotency_key():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"success": True})

    BookingApiClient("https://api.test/booking", transport=httpx.MockTransport(handler)).confirm(_payload(), "token-1")

    request = seen[0]
    body = json.loads(request.content)
    assert request.headers["Idempotency-Key"] == "token-1"
    assert body["dateTime"] == "2026-10-19T06:00:00Z"
    assert body["clientPhone"] == "+79990000000"
    assert "username" not in body


@pytest.mark.parametrize(
    "status, body, expected",
    [
        (200, {"success": False, "code": "client_unreachable"}, RemoteErrorCode.CLIENT_UNREACHABLE),
        (400, {"code": "ALREADY_CONFIRMED"}, RemoteErrorCode.ALREADY_CONFIRMED),
        (409, {}, RemoteErrorCode.SLOT_TAKEN),
        (422, {"message": "bad"}, RemoteErrorCode.INVALID_PAYLOAD),
        (500, {}, RemoteErrorCode.UPSTREAM_ERROR),
        (502, {"code": "gremlins"}, RemoteErrorCode.UNKNOWN),
    ],
)
def test_booking_client_error_codes(status, body, expected):
    client = BookingApiClient(
        "https://api.test/booking",
        transport=httpx.MockTransport(lambda request: httpx.Response(status, json=body)),
    )

    with pytest.raises(ConfirmationError) as exc:
        client.confirm(_payload(), "token-1")

    assert exc.value.code == expected
    assert exc.value.status_code == status


def test_booking_client_timeout():
    def slow(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    client = BookingApiClient("https://api.test/booking", transport=httpx.MockTransport(slow))

    with pytest.raises(RemoteTimeoutError):
        client.confirm(_payload(), "token-1")


def test_notify_client_surfaces_structured_code():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content))
        return httpx.Response(200, json={"success": False, "code": "bot_blocked", "message": "Forbidden: bot was blocked"})

    client = NotifyClient("https://api.test/notify", transport=httpx.MockTransport(handler))
    payload = ReminderPayload(
        provider_id="1", client_ref="555", client_name="Anna", service_name="Manicure", date="2026-10-19", time="09:00"
    )

    with pytest.raises(NotificationError) as exc:
        client.send_reminder(payload)

    assert exc.value.code == RemoteErrorCode.BOT_BLOCKED
    assert seen[0]["notificationType"] == "reminder"


def test_appointment_listing_is_not_paginated():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        limit = int(request.url.params.get("limit", "100"))
        rows = [
            {"id": i, "master": 1, "service": 11, "dateTime": f"2026-10-{1 + i % 28:02d}T06:00:00Z", "status": "confirmed"}
            for i in range(150)
        ]
        return httpx.Response(200, json={"data": rows if limit == -1 else rows[:limit]})

    appointments = DirectusAppointmentStore(_directus(handler), MOSCOW).list_for_provider("1")

    assert len(appointments) == 150
    params = seen[0].url.params
    assert params["limit"] == "-1"
    assert params["filter[status][_eq]"] == "confirmed"


def test_schedule_save_updates_existing_row():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append((request.method, request.url.path, json.loads(request.content) if request.content else None))
        if request.method == "GET":
            return httpx.Response(200, json={"data": [{"id": 5}]})
        return httpx.Response(200, json={"data": {"id": 5}})

    schedule = WeeklySchedule.from_payload({"mon": {"enabled": True, "startTime": "10:00", "endTime": "17:00"}})
    DirectusScheduleSource(_directus(handler)).save_schedule("1", schedule)

    assert calls[-1] == (
        "PATCH",
        "/items/schedules/5",
        {"schedule": {"mon": {"enabled": True, "startTime": "10:00", "endTime": "17:00"}}},
    )


def test_schedule_save_creates_first_row():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append((request.method, json.loads(request.content) if request.content else None))
        if request.method == "GET":
            return httpx.Response(200, json={"data": []})
        return httpx.Response(200, json={"data": {"id": 6}})

    DirectusScheduleSource(_directus(handler)).save_schedule("1", WeeklySchedule())

    assert calls[-1] == ("POST", {"master": "1", "schedule": {}})


def test_time_block_add_and_owned_remove():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append((request.method, request.url.path))
        if request.method == "POST":
            body = json.loads(request.content)
            assert body == {"master": "1", "date": "2026-10-19", "startTime": "12:00", "endTime": "13:00", "title": "Dentist"}
            return httpx.Response(200, json={"data": {"id": 9}})
        if request.method == "GET":
            return httpx.Response(200, json={"data": {"id": 9, "master": 1}})
        return httpx.Response(204)

    source = DirectusTimeBlockSource(_directus(handler))
    block_id = source.add_time_block("1", TimeBlock(date="2026-10-19", start_time="12:00", end_time="13:00", title="Dentist"))
    source.remove_time_block("1", block_id)

    assert block_id == "9"
    assert calls[-1] == ("DELETE", "/items/time_blocks/9")


def test_removing_another_providers_break_is_not_found():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.method)
        return httpx.Response(200, json={"data": {"id": 4, "master": 2}})

    with pytest.raises(NotFoundError):
        DirectusRecurringBreakSource(_directus(handler)).remove_recurring_break("1", "4")
    assert "DELETE" not in calls


def test_recurring_break_add_payload():
    bodies = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"data": {"id": 3}})

    break_id = DirectusRecurringBreakSource(_directus(handler)).add_recurring_break(
        "1", RecurringBreak(days_of_week=frozenset({5, 1}), start_time="13:00", end_time="14:00")
    )

    assert break_id == "3"
    assert bodies[0] == {"master": "1", "days_of_week": [1, 5], "start_time": "13:00", "end_time": "14:00"}
