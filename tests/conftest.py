"""Shared test fixtures."""

from dataclasses import dataclass, field, replace
from datetime import UTC, date, datetime, time
from uuid import UUID, uuid4
from zoneinfo import ZoneInfo

import pytest

from therapy_sessions.adapters.daily_client import VideoRoom, VideoRoomClient
from therapy_sessions.config import Settings
from therapy_sessions.containers import AppContainer
from therapy_sessions.domain.availability import (
    AvailabilityOverride,
    AvailabilityWindow,
)
from therapy_sessions.domain.sessions import (
    STATUS_SCHEDULED,
    BookingRequest,
    Participant,
    SessionDetail,
    SessionFilters,
    SessionNote,
    SessionRecord,
)
from therapy_sessions.services.availability import (
    AvailabilityRepository,
    AvailabilityService,
)
from therapy_sessions.services.history import (
    SessionHistoryRepository,
    SessionHistoryService,
)
from therapy_sessions.services.notes import SessionNoteRepository, SessionNotesService
from therapy_sessions.services.sessions import SessionRepository, SessionService
from therapy_sessions.services.soap_notes import NotesClient, SoapNotesService
from therapy_sessions.services.status_updater import SessionStatusUpdater

LAGOS = ZoneInfo("Africa/Lagos")
# Monday 2026-03-02, 09:00 in Lagos.
NOW = datetime(2026, 3, 2, 8, 0, tzinfo=UTC)
PATIENT_ID = UUID("7f0c1a52-6f1e-4c55-9a34-0d5f3c1b2a01")
THERAPIST_ID = UUID("2b9e4d10-83a7-4f6b-b1c2-5e8d7a6f4c02")


def fixed_clock() -> datetime:
    return NOW


@dataclass
class InMemorySessionRepository(SessionRepository):
    """In-memory session repository for tests."""

    sessions: dict[UUID, SessionRecord] = field(default_factory=dict)
    participants: dict[UUID, Participant] = field(default_factory=dict)
    updates: list[tuple[UUID, dict[str, object]]] = field(default_factory=list)

    def create_session(self, request: BookingRequest) -> SessionRecord:
        session = SessionRecord(
            id=uuid4(),
            patient_id=request.patient_id,
            therapist_id=request.therapist_id,
            scheduled_at=request.scheduled_at,
            duration_minutes=request.duration_minutes,
            session_type=request.session_type,
            status=STATUS_SCHEDULED,
            amount_paid=request.amount_paid,
            currency=request.currency,
            notes=request.notes,
            rescheduled_from=request.rescheduled_from,
        )
        self.sessions[session.id] = session
        return session

    def get_session(self, session_id: UUID) -> SessionRecord | None:
        return self.sessions.get(session_id)

    def get_session_detail(self, session_id: UUID) -> SessionDetail | None:
        session = self.sessions.get(session_id)
        if session is None:
            return None
        return SessionDetail(
            session=session,
            patient=self.participants.get(session.patient_id),
            therapist=self.participants.get(session.therapist_id),
        )

    def list_sessions(self, filters: SessionFilters) -> list[SessionRecord]:
        matches = [
            session
            for session in self.sessions.values()
            if _matches(session, filters)
        ]
        matches.sort(key=lambda item: item.scheduled_at, reverse=not filters.ascending)
        if filters.limit is not None:
            matches = matches[: filters.limit]
        return matches

    def update_session(self, session_id: UUID, changes: dict[str, object]) -> None:
        self.updates.append((session_id, changes))
        self.sessions[session_id] = replace(self.sessions[session_id], **changes)

    def seed(  # noqa: PLR0913
        self,
        scheduled_at: datetime,
        status: str = STATUS_SCHEDULED,
        duration_minutes: int = 60,
        patient_id: UUID = PATIENT_ID,
        therapist_id: UUID = THERAPIST_ID,
        **extra: object,
    ) -> SessionRecord:
        """Insert a session directly, bypassing availability checks."""
        session = SessionRecord(
            id=uuid4(),
            patient_id=patient_id,
            therapist_id=therapist_id,
            scheduled_at=scheduled_at,
            duration_minutes=duration_minutes,
            session_type="video",
            status=status,
            **extra,  # type: ignore[arg-type]
        )
        self.sessions[session.id] = session
        return session


def _matches(session: SessionRecord, filters: SessionFilters) -> bool:
    if filters.patient_id and session.patient_id != filters.patient_id:
        return False
    if filters.therapist_id and session.therapist_id != filters.therapist_id:
        return False
    if filters.statuses and session.status not in filters.statuses:
        return False
    if filters.starts_after and session.scheduled_at < filters.starts_after:
        return False
    return not (
        filters.starts_before and session.scheduled_at >= filters.starts_before
    )


@dataclass
class InMemoryAvailabilityRepository(AvailabilityRepository):
    """In-memory availability repository for tests."""

    windows: list[AvailabilityWindow] = field(default_factory=list)
    overrides: dict[UUID, AvailabilityOverride] = field(default_factory=dict)

    def list_windows(
        self, therapist_id: UUID, day_of_week: int
    ) -> list[AvailabilityWindow]:
        return [
            window
            for window in self.windows
            if window.therapist_id == therapist_id
            and window.day_of_week == day_of_week
        ]

    def list_overrides(
        self, therapist_id: UUID, override_date: date
    ) -> list[AvailabilityOverride]:
        return [
            override
            for override in self.overrides.values()
            if override.therapist_id == therapist_id
            and override.override_date == override_date
        ]

    def create_override(  # noqa: PLR0913
        self,
        therapist_id: UUID,
        override_date: date,
        override_type: str,
        start_time: time | None,
        end_time: time | None,
        reason: str | None,
    ) -> AvailabilityOverride:
        override = AvailabilityOverride(
            id=uuid4(),
            therapist_id=therapist_id,
            override_date=override_date,
            override_type=override_type,
            start_time=start_time,
            end_time=end_time,
            reason=reason,
        )
        self.overrides[override.id] = override
        return override

    def deactivate_override(self, override_id: UUID) -> bool:
        return self.overrides.pop(override_id, None) is not None

    def open_every_day(
        self,
        therapist_id: UUID = THERAPIST_ID,
        start: time = time(9, 0),
        end: time = time(17, 0),
    ) -> None:
        """Add the same window for all seven weekdays."""
        for day in range(7):
            self.windows.append(AvailabilityWindow(therapist_id, day, start, end))


@dataclass
class InMemoryNoteRepository(SessionNoteRepository):
    """In-memory note repository for tests."""

    notes: list[SessionNote] = field(default_factory=list)

    def create_note(
        self,
        session_id: UUID,
        author_id: UUID,
        note_type: str,
        content: str,
        soap: dict[str, object] | None,
    ) -> SessionNote:
        note = SessionNote(
            id=uuid4(),
            session_id=session_id,
            author_id=author_id,
            note_type=note_type,
            content=content,
            created_at=NOW,
            soap=soap,
        )
        self.notes.append(note)
        return note

    def list_notes(self, session_id: UUID) -> list[SessionNote]:
        return [note for note in reversed(self.notes) if note.session_id == session_id]


@dataclass
class InMemoryHistoryRepository(SessionHistoryRepository):
    """In-memory history repository for tests."""

    events: list[dict[str, object]] = field(default_factory=list)
    fail: bool = False

    def create_event(  # noqa: PLR0913
        self,
        session_id: UUID,
        actor_id: UUID,
        event_type: str,
        reason: str | None,
        before: dict[str, object] | None,
        after: dict[str, object] | None,
    ) -> None:
        if self.fail:
            raise RuntimeError("history unavailable")
        self.events.append(
            {
                "session_id": session_id,
                "actor_id": actor_id,
                "event_type": event_type,
                "reason": reason,
                "before": before,
                "after": after,
            }
        )

    def list_events(self, session_id: UUID) -> list[dict[str, object]]:
        if self.fail:
            raise RuntimeError("history unavailable")
        return [event for event in self.events if event["session_id"] == session_id]


@dataclass
class FakeVideoRoomClient(VideoRoomClient):
    """Fake video room client that records calls."""

    rooms: list[str] = field(default_factory=list)
    tokens: list[tuple[str, UUID, bool]] = field(default_factory=list)
    fail_rooms: bool = False
    fail_tokens: bool = False

    async def create_room(self, name: str, expires_at: datetime) -> VideoRoom:
        if self.fail_rooms:
            raise RuntimeError("daily unavailable")
        self.rooms.append(name)
        return VideoRoom(name=name, url=f"https://clinic.daily.co/{name}")

    async def create_meeting_token(
        self,
        room_name: str,
        user_id: UUID,
        is_owner: bool,
        expires_at: datetime,
    ) -> str:
        if self.fail_tokens:
            raise RuntimeError("daily unavailable")
        self.tokens.append((room_name, user_id, is_owner))
        return f"token-{len(self.tokens)}"


@dataclass
class FakeNotesClient(NotesClient):
    """Fake notes client returning canned SOAP text."""

    text: str = (
        "# SOAP Notes\n"
        "## SUBJECTIVE\nPatient reports improved sleep.\n"
        "## OBJECTIVE\nCalm affect, good eye contact.\n"
        "## ASSESSMENT\nAnxiety symptoms decreasing.\n"
        "## PLAN\nContinue weekly CBT sessions.\n"
    )
    error: Exception | None = None
    prompts: list[str] = field(default_factory=list)

    async def complete(  # noqa: PLR0913
        self,
        *,
        model: str,
        system_prompt: str,
        prompt: str,
        temperature: float,
        max_tokens: int,
    ) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.text


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-key",
        admin_token="admin-token",
        daily_api_key="daily-key",
        notes_api_key="notes-key",
    )


@pytest.fixture
def session_repository() -> InMemorySessionRepository:
    return InMemorySessionRepository()


@pytest.fixture
def availability_repository() -> InMemoryAvailabilityRepository:
    repository = InMemoryAvailabilityRepository()
    repository.open_every_day()
    return repository


@pytest.fixture
def note_repository() -> InMemoryNoteRepository:
    return InMemoryNoteRepository()


@pytest.fixture
def history_repository() -> InMemoryHistoryRepository:
    return InMemoryHistoryRepository()


@pytest.fixture
def room_client() -> FakeVideoRoomClient:
    return FakeVideoRoomClient()


@pytest.fixture
def notes_client() -> FakeNotesClient:
    return FakeNotesClient()


@pytest.fixture
def availability_service(
    availability_repository: InMemoryAvailabilityRepository,
    session_repository: InMemorySessionRepository,
) -> AvailabilityService:
    return AvailabilityService(
        repository=availability_repository,
        booking_lookup=session_repository,
        clock=fixed_clock,
    )


@pytest.fixture
def notes_service(note_repository: InMemoryNoteRepository) -> SessionNotesService:
    return SessionNotesService(note_repository)


@pytest.fixture
def session_service(
    session_repository: InMemorySessionRepository,
    availability_service: AvailabilityService,
    history_repository: InMemoryHistoryRepository,
    notes_service: SessionNotesService,
    room_client: FakeVideoRoomClient,
) -> SessionService:
    return SessionService(
        repository=session_repository,
        availability_service=availability_service,
        history_service=SessionHistoryService(history_repository),
        notes_service=notes_service,
        room_client=room_client,
        clock=fixed_clock,
    )


@pytest.fixture
def container(  # noqa: PLR0913
    settings: Settings,
    session_service: SessionService,
    availability_service: AvailabilityService,
    notes_service: SessionNotesService,
    session_repository: InMemorySessionRepository,
    notes_client: FakeNotesClient,
) -> AppContainer:
    soap_notes_service = SoapNotesService(
        client=notes_client,
        session_repository=session_repository,
        notes_service=notes_service,
        model=settings.notes_model,
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        session_service=session_service,
        availability_service=availability_service,
        notes_service=notes_service,
        history_service=session_service.history_service,
        soap_notes_service=soap_notes_service,
        status_updater=SessionStatusUpdater(session_repository, clock=fixed_clock),
        close_resources=close_resources,
    )
