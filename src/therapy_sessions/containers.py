"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from therapy_sessions.adapters.daily_client import HttpxDailyClient
from therapy_sessions.adapters.openai_notes_client import OpenAINotesClient
from therapy_sessions.adapters.supabase_availability_repository import (
    SupabaseAvailabilityRepository,
)
from therapy_sessions.adapters.supabase_history_repository import (
    SupabaseSessionHistoryRepository,
)
from therapy_sessions.adapters.supabase_note_repository import (
    SupabaseSessionNoteRepository,
)
from therapy_sessions.adapters.supabase_session_repository import (
    SupabaseSessionRepository,
)
from therapy_sessions.config import Settings
from therapy_sessions.services.availability import AvailabilityService
from therapy_sessions.services.history import SessionHistoryService
from therapy_sessions.services.notes import SessionNotesService
from therapy_sessions.services.sessions import SessionService
from therapy_sessions.services.soap_notes import SoapNotesService
from therapy_sessions.services.status_updater import SessionStatusUpdater


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    session_service: SessionService
    availability_service: AvailabilityService
    notes_service: SessionNotesService
    history_service: SessionHistoryService
    soap_notes_service: SoapNotesService
    status_updater: SessionStatusUpdater
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    session_repository = SupabaseSessionRepository(supabase_client)
    availability_repository = SupabaseAvailabilityRepository(supabase_client)
    note_repository = SupabaseSessionNoteRepository(supabase_client)
    history_repository = SupabaseSessionHistoryRepository(supabase_client)

    daily_client = HttpxDailyClient.create(
        api_key=resolved_settings.daily_api_key,
        base_url=resolved_settings.daily_base_url,
    )
    notes_client = OpenAINotesClient.create(
        api_key=resolved_settings.notes_api_key,
        base_url=resolved_settings.notes_base_url,
    )

    availability_service = AvailabilityService(
        repository=availability_repository,
        booking_lookup=session_repository,
        timezone_name=resolved_settings.clinic_timezone,
        default_slot_minutes=resolved_settings.default_slot_minutes,
    )
    notes_service = SessionNotesService(note_repository)
    history_service = SessionHistoryService(history_repository)
    session_service = SessionService(
        repository=session_repository,
        availability_service=availability_service,
        history_service=history_service,
        notes_service=notes_service,
        room_client=daily_client,
        timezone_name=resolved_settings.clinic_timezone,
        join_early_minutes=resolved_settings.join_early_minutes,
        join_late_minutes=resolved_settings.join_late_minutes,
        cancellation_notice_hours=resolved_settings.cancellation_notice_hours,
    )
    soap_notes_service = SoapNotesService(
        client=notes_client,
        session_repository=session_repository,
        notes_service=notes_service,
        model=resolved_settings.notes_model,
        timezone_name=resolved_settings.clinic_timezone,
    )
    status_updater = SessionStatusUpdater(session_repository)

    async def close_resources() -> None:
        await daily_client.close()
        await notes_client.close()

    return AppContainer(
        settings=resolved_settings,
        session_service=session_service,
        availability_service=availability_service,
        notes_service=notes_service,
        history_service=history_service,
        soap_notes_service=soap_notes_service,
        status_updater=status_updater,
        close_resources=close_resources,
    )
