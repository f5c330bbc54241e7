from functools import lru_cache
import logging
from zoneinfo import ZoneInfo

from appointment_core.core.config import settings
from appointment_core.application.ports.appointment_store import AppointmentStorePort
from appointment_core.application.ports.availability_sources import (
    RecurringBreakSourcePort,
    ScheduleSourcePort,
    TimeBlockSourcePort,
)
from appointment_core.application.ports.booking_confirmation import BookingConfirmationPort
from appointment_core.application.ports.notification import NotificationPort
from appointment_core.application.ports.provider_directory import ProviderDirectoryPort
from appointment_core.application.ports.service_catalog import ServiceCatalogPort
from appointment_core.application.use_cases.appointments import AppointmentsUseCase
from appointment_core.application.use_cases.availability import AvailabilityUseCase
from appointment_core.application.use_cases.booking import BookingOrchestrator
from appointment_core.application.use_cases.working_hours import WorkingHoursUseCase
from appointment_core.infrastructure.booking_api.booking_client import BookingApiClient
from appointment_core.infrastructure.booking_api.mock_booking import MockBookingConfirmation
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
from appointment_core.infrastructure.notify.mock_notify import MockNotificationService
from appointment_core.infrastructure.notify.notify_client import NotifyClient
from appointment_core.infrastructure.store.demo_data import (
    DEMO_BREAKS,
    DEMO_PROVIDER_ID,
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


logger = logging.getLogger(__name__)


def use_local_backends() -> bool:
    return settings.ENV.lower() in {"dev", "local"}


@lru_cache
def get_timezone() -> ZoneInfo:
    # Settings has already rejected unknown zone names.
    return ZoneInfo(settings.PROVIDER_TIMEZONE)


@lru_cache
def get_directus_client() -> DirectusClient:
    return DirectusClient()


@lru_cache
def _memory_sources() -> MemoryAvailabilitySources:
    return MemoryAvailabilitySources(
        schedules={DEMO_PROVIDER_ID: DEMO_SCHEDULE},
        recurring_breaks={DEMO_PROVIDER_ID: list(DEMO_BREAKS)},
    )


@lru_cache
def get_provider_directory() -> ProviderDirectoryPort:
    if use_local_backends():
        return MemoryProviderDirectory(DEMO_PROVIDERS)
    return DirectusProviderDirectory(get_directus_client())


@lru_cache
def get_service_catalog() -> ServiceCatalogPort:
    if use_local_backends():
        return MemoryServiceCatalog(DEMO_SERVICES)
    return DirectusServiceCatalog(get_directus_client())


@lru_cache
def get_appointment_store() -> AppointmentStorePort:
    if use_local_backends():
        logger.info("Using MemoryAppointmentStore (ENV=dev/local)")
        return MemoryAppointmentStore(enforce_unique_slots=settings.ENFORCE_UNIQUE_SLOTS)
    logger.info("Using DirectusAppointmentStore")
    return DirectusAppointmentStore(get_directus_client(), get_timezone())


def get_schedule_source() -> ScheduleSourcePort:
    if use_local_backends():
        return _memory_sources()
    return DirectusScheduleSource(get_directus_client())


def get_time_block_source() -> TimeBlockSourcePort:
    if use_local_backends():
        return _memory_sources()
    return DirectusTimeBlockSource(get_directus_client())


def get_recurring_break_source() -> RecurringBreakSourcePort:
    if use_local_backends():
        return _memory_sources()
    return DirectusRecurringBreakSource(get_directus_client())


@lru_cache
def get_booking_confirmation() -> BookingConfirmationPort:
    if use_local_backends():
        logger.info("Using MockBookingConfirmation (ENV=dev/local)")
        return MockBookingConfirmation()
    logger.info("Using real BookingApiClient")
    return BookingApiClient()


@lru_cache
def get_notifier() -> NotificationPort:
    if use_local_backends():
        logger.info("Using MockNotificationService (ENV=dev/local)")
        return MockNotificationService()
    logger.info("Using real NotifyClient")
    return NotifyClient()


def get_availability_use_case() -> AvailabilityUseCase:
    return AvailabilityUseCase(
        directory=get_provider_directory(),
        catalog=get_service_catalog(),
        schedules=get_schedule_source(),
        appointments=get_appointment_store(),
        time_blocks=get_time_block_source(),
        recurring_breaks=get_recurring_break_source(),
        timezone=get_timezone(),
        granularity_minutes=settings.SLOT_GRANULARITY_MINUTES,
    )


@lru_cache
def get_booking_orchestrator() -> BookingOrchestrator:
    # Singleton: the idempotency cache lives on the instance.
    return BookingOrchestrator(
        directory=get_provider_directory(),
        catalog=get_service_catalog(),
        store=get_appointment_store(),
        confirmation=get_booking_confirmation(),
        notifier=get_notifier(),
        timezone=get_timezone(),
        step_timeout_seconds=settings.REMOTE_CALL_TIMEOUT_SECONDS,
        idempotency_window_seconds=settings.IDEMPOTENCY_WINDOW_SECONDS,
    )


def get_appointments_use_case() -> AppointmentsUseCase:
    return AppointmentsUseCase(
        directory=get_provider_directory(),
        catalog=get_service_catalog(),
        store=get_appointment_store(),
        notifier=get_notifier(),
        timezone=get_timezone(),
    )


def get_working_hours_use_case() -> WorkingHoursUseCase:
    return WorkingHoursUseCase(
        directory=get_provider_directory(),
        schedules=get_schedule_source(),
        time_blocks=get_time_block_source(),
        recurring_breaks=get_recurring_break_source(),
    )
