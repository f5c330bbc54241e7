from __future__ import annotations

import json
import logging
from typing import Any

from appointment_core.application.exceptions import NotFoundError
from appointment_core.application.ports.availability_sources import (
    RecurringBreakSourcePort,
    ScheduleSourcePort,
    TimeBlockSourcePort,
)
from appointment_core.application.utils.time_utils import normalize_time
from appointment_core.domain.entities.schedule import WeeklySchedule
from appointment_core.domain.entities.unavailability import RecurringBreak, TimeBlock
from appointment_core.infrastructure.directus.directus_client import DirectusClient


class DirectusScheduleSource(ScheduleSourcePort):
    def __init__(self, client: DirectusClient) -> None:
        self._client = client
        self._logger = logging.getLogger(__name__)

    def get_schedule(self, provider_id: str) -> WeeklySchedule | None:
        items = self._client.list_items("schedules", {"master": provider_id})
        if not items:
            return None
        raw = items[0].get("schedule")
        if isinstance(raw, str):
            try:
                raw = json.loads(raw)
            except ValueError:
                self._logger.warning("Unreadable schedule JSON", extra={"provider_id": provider_id})
                return None
        return WeeklySchedule.from_payload(raw if isinstance(raw, dict) else None)

    def save_schedule(self, provider_id: str, schedule: WeeklySchedule) -> None:
        existing = self._client.list_items("schedules", {"master": provider_id}, fields="id")
        if existing:
            self._client.update_item("schedules", str(existing[0]["id"]), {"schedule": schedule.to_payload()})
        else:
            self._client.create_item("schedules", {"master": provider_id, "schedule": schedule.to_payload()})
        self._logger.info("Schedule saved", extra={"provider_id": provider_id})


class DirectusTimeBlockSource(TimeBlockSourcePort):
    def __init__(self, client: DirectusClient) -> None:
        self._client = client

    def list_time_blocks(self, provider_id: str) -> list[TimeBlock]:
        items = self._client.list_items("time_blocks", {"master": provider_id})
        return [
            TimeBlock(
                id=str(item.get("id")),
                date=str(item["date"])[:10],
                start_time=normalize_time(str(item["startTime"])),
                end_time=normalize_time(str(item["endTime"])),
                title=str(item.get("title") or ""),
            )
            for item in items
            if item.get("date") and item.get("startTime") and item.get("endTime")
        ]

    def add_time_block(self, provider_id: str, block: TimeBlock) -> str:
        created = self._client.create_item(
            "time_blocks",
            {
                "master": provider_id,
                "date": block.date,
                "startTime": block.start_time,
                "endTime": block.end_time,
                "title": block.title,
            },
        )
        return _created_id(created, "time block")

    def remove_time_block(self, provider_id: str, block_id: str) -> None:
        _delete_owned(self._client, "time_blocks", provider_id, block_id)


class DirectusRecurringBreakSource(RecurringBreakSourcePort):
    def __init__(self, client: DirectusClient) -> None:
        self._client = client

    def list_recurring_breaks(self, provider_id: str) -> list[RecurringBreak]:
        items = self._client.list_items("recurring_breaks", {"master": provider_id})
        return [
            RecurringBreak(
                id=str(item.get("id")),
                days_of_week=_parse_days(item.get("days_of_week")),
                start_time=normalize_time(str(item["start_time"])),
                end_time=normalize_time(str(item["end_time"])),
            )
            for item in items
            if item.get("start_time") and item.get("end_time")
        ]

    def add_recurring_break(self, provider_id: str, item: RecurringBreak) -> str:
        created = self._client.create_item(
            "recurring_breaks",
            {
                "master": provider_id,
                "days_of_week": sorted(item.days_of_week),
                "start_time": item.start_time,
                "end_time": item.end_time,
            },
        )
        return _created_id(created, "recurring break")

    def remove_recurring_break(self, provider_id: str, break_id: str) -> None:
        _delete_owned(self._client, "recurring_breaks", provider_id, break_id)


def _created_id(created: dict[str, Any], label: str) -> str:
    if created.get("id") is None:
        raise ValueError(f"No {label} id returned from Directus")
    return str(created["id"])


def _delete_owned(client: DirectusClient, collection: str, provider_id: str, item_id: str) -> None:
    item = client.get_item(collection, item_id)
    if item is None or str(item.get("master")) != str(provider_id):
        raise NotFoundError(f"{collection} item {item_id!r} not found")
    client.delete_item(collection, item_id)


def _parse_days(raw: Any) -> frozenset[int]:
    """ISO weekdays stored as ["1", "3"], [1, 3] or "1,3"."""
    if isinstance(raw, str):
        raw = raw.split(",")
    days: set[int] = set()
    for value in raw or []:
        try:
            day = int(str(value).strip())
        except ValueError:
            continue
        if 1 <= day <= 7:
            days.add(day)
    return frozenset(days)
