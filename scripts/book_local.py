#!/usr/bin/env python3
"""
Local booking harness (no HTTP, in-memory backends).

Usage:
  python3 scripts/book_local.py --date 2026-10-19 --service 11
  python3 scripts/book_local.py --date 2026-10-19 --service 11 --book 09:00 --client 555

What it does:
- Prints the bookable slots for the demo provider on the given day
- Optionally books one slot and prints the state trail of the attempt
"""
from __future__ import annotations

import argparse
import logging
import sys
import uuid
from pathlib import Path
from zoneinfo import ZoneInfo

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from appointment_core.application.use_cases.availability import AvailabilityUseCase
from appointment_core.application.use_cases.booking import BookingOrchestrator
from appointment_core.domain.entities.booking import BookingRequest
from appointment_core.infrastructure.booking_api.mock_booking import MockBookingConfirmation
from appointment_core.infrastructure.notify.mock_notify import MockNotificationService
from appointment_core.infrastructure.store.demo_data import (
    DEMO_BREAKS,
    DEMO_PROVIDER_ID,
    DEMO_PROVIDER_REF,
    DEMO_PROVIDERS,
    DEMO_SCHEDULE,
    DEMO_SERVICES,
)
from appointment_core.infrastructure.store.memory_store import (
    MemoryAppointmentStore,
    MemoryAvailabilitySources,
    MemoryProviderDirectory,
    MemoryServiceCatalog,
)


def main() -> int:
    parser = argparse.ArgumentParser(description="Compute slots and book against in-memory backends.")
    parser.add_argument("--date", required=True, help="YYYY-MM-DD")
    parser.add_argument("--service", default="11", help="Service id or name")
    parser.add_argument("--book", help="HH:MM slot to book")
    parser.add_argument("--client", default="555", help="Client reference (Telegram id)")
    parser.add_argument("--timezone", default="Europe/Moscow")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s:%(name)s:%(message)s")
    tz = ZoneInfo(args.timezone)

    directory = MemoryProviderDirectory(DEMO_PROVIDERS)
    catalog = MemoryServiceCatalog(DEMO_SERVICES)
    store = MemoryAppointmentStore()
    sources = MemoryAvailabilitySources(
        schedules={DEMO_PROVIDER_ID: DEMO_SCHEDULE},
        recurring_breaks={DEMO_PROVIDER_ID: list(DEMO_BREAKS)},
    )
    availability = AvailabilityUseCase(directory, catalog, sources, store, sources, sources, tz)

    service, slots = availability.execute(DEMO_PROVIDER_REF, args.date, args.service)
    print(f"\n{service.name} ({service.duration_minutes} min) on {args.date}:")
    print("  " + (", ".join(s.start_time for s in slots) or "no free slots"))

    if not args.book:
        return 0

    orchestrator = BookingOrchestrator(
        directory=directory,
        catalog=catalog,
        store=store,
        confirmation=MockBookingConfirmation(),
        notifier=MockNotificationService(),
        timezone=tz,
    )
    try:
        result = orchestrator.book_appointment(
            BookingRequest(
                provider_ref=DEMO_PROVIDER_REF,
                service_ref=args.service,
                date=args.date,
                time=args.book,
                client_ref=args.client,
                client_name="Local Client",
            ),
            idempotency_token=f"local-{uuid.uuid4().hex}",
        )
    finally:
        orchestrator.close()

    print("\nstates: " + " -> ".join(state.value for state in result.transitions))
    if not result.ok:
        print(f"failed: {result.failure.kind.value} ({result.failure.code}) {result.failure.reason}")
        return 1

    print(f"booked appointment #{result.appointment.id} at {result.appointment.time}")
    _, slots = availability.execute(DEMO_PROVIDER_REF, args.date, args.service)
    print("remaining: " + (", ".join(s.start_time for s in slots) or "none"))
    return 0


if __name__ == "__main__":
    sys.exit(main())
