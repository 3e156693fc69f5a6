"""Session lifecycle: booking, joining, completion, rescheduling, cancellation."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import UTC, date, datetime, timedelta
from typing import Protocol
from uuid import UUID
from zoneinfo import ZoneInfo

from therapy_sessions.adapters.daily_client import VideoRoomClient
from therapy_sessions.domain.availability import TimeSlot
from therapy_sessions.domain.results import INTERNAL_ERROR, ErrorKind, SessionResult
from therapy_sessions.domain.sessions import (
    BLOCKING_STATUSES,
    SESSION_TYPES,
    STATUS_CANCELLED,
    STATUS_COMPLETED,
    STATUS_IN_PROGRESS,
    STATUS_RESCHEDULED,
    STATUS_SCHEDULED,
    BookingRequest,
    DashboardSessions,
    JoinTicket,
    SessionDetail,
    SessionFilters,
    SessionNote,
    SessionRecord,
)
from therapy_sessions.services.availability import AvailabilityService
from therapy_sessions.services.history import SessionHistoryService
from therapy_sessions.services.notes import SessionNotesService

_logger = logging.getLogger(__name__)

JOINABLE_STATUSES = frozenset({STATUS_SCHEDULED, STATUS_IN_PROGRESS})
COMPLETABLE_STATUSES = frozenset({STATUS_SCHEDULED, STATUS_IN_PROGRESS})
DASHBOARD_UPCOMING_LIMIT = 5
DASHBOARD_PAST_LIMIT = 10
ROOM_GRACE = timedelta(hours=1)


class SessionRepository(Protocol):
    """Persistence interface for therapy sessions."""

    def create_session(self, request: BookingRequest) -> SessionRecord:
        """Insert a scheduled session and return it."""

    def get_session(self, session_id: UUID) -> SessionRecord | None:
        """Return a session by id, if present."""

    def get_session_detail(self, session_id: UUID) -> SessionDetail | None:
        """Return a session joined with participant names, if present."""

    def list_sessions(self, filters: SessionFilters) -> list[SessionRecord]:
        """Return sessions matching the filters."""

    def update_session(self, session_id: UUID, changes: dict[str, object]) -> None:
        """Apply column changes to a session."""


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class SessionService:
    """Mediates session creation, queries and status transitions."""

    repository: SessionRepository
    availability_service: AvailabilityService
    history_service: SessionHistoryService
    notes_service: SessionNotesService
    room_client: VideoRoomClient
    timezone_name: str = "Africa/Lagos"
    join_early_minutes: int = 30
    join_late_minutes: int = 15
    cancellation_notice_hours: int = 24
    clock: Callable[[], datetime] = field(default=_utcnow)

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone_name)

    def book_session(self, request: BookingRequest) -> SessionResult[SessionRecord]:
        """Book a session after checking the therapist is free."""
        if request.duration_minutes <= 0:
            return SessionResult.fail(
                ErrorKind.INVALID_INPUT, "Duration must be a positive number of minutes"
            )
        if request.session_type not in SESSION_TYPES:
            return SessionResult.fail(
                ErrorKind.INVALID_INPUT,
                f"Unknown session type: {request.session_type}",
            )
        request = replace(request, scheduled_at=self._aware(request.scheduled_at))
        if request.scheduled_at <= self.clock():
            return SessionResult.fail(
                ErrorKind.INVALID_INPUT, "Sessions must be booked in the future"
            )
        try:
            if not self.availability_service.check_availability(
                request.therapist_id, request.scheduled_at, request.ends_at
            ):
                return SessionResult.fail(
                    ErrorKind.NOT_AVAILABLE, "Therapist not available"
                )
            session = self.repository.create_session(request)
        except Exception:
            _logger.exception(
                "Failed to book session: therapist_id=%s scheduled_at=%s",
                request.therapist_id,
                request.scheduled_at,
            )
            return SessionResult.fail(ErrorKind.INTERNAL, "Failed to book session")
        _logger.info(
            "Session booked: id=%s therapist_id=%s scheduled_at=%s",
            session.id,
            session.therapist_id,
            session.scheduled_at.isoformat(),
        )
        return SessionResult.ok(session)

    def check_therapist_availability(
        self, therapist_id: UUID, start: datetime, end: datetime
    ) -> bool:
        """Return True when the therapist can take the interval."""
        return self.availability_service.check_availability(
            therapist_id, self._aware(start), self._aware(end)
        )

    def get_available_slots(
        self, therapist_id: UUID, day: date, duration_minutes: int | None = None
    ) -> list[TimeSlot]:
        """Return free slots for a therapist on a date."""
        return self.availability_service.get_available_slots(
            therapist_id, day, duration_minutes
        )

    def get_sessions(self, filters: SessionFilters) -> list[SessionRecord]:
        """Return sessions matching the filters; errors yield an empty list."""
        try:
            return self.repository.list_sessions(filters)
        except Exception:
            _logger.exception("Failed to fetch sessions: filters=%s", filters)
            return []

    def get_user_sessions(self, user_id: UUID) -> list[SessionRecord]:
        """Return a patient's sessions, newest first."""
        return self.get_sessions(SessionFilters(patient_id=user_id))

    def get_therapist_sessions(self, therapist_id: UUID) -> list[SessionRecord]:
        """Return a therapist's sessions, newest first."""
        return self.get_sessions(SessionFilters(therapist_id=therapist_id))

    def get_upcoming_sessions(
        self, user_id: UUID, limit: int = 10
    ) -> list[SessionRecord]:
        """Return a patient's scheduled sessions that have not started yet."""
        return self.get_sessions(
            SessionFilters(
                patient_id=user_id,
                statuses=[STATUS_SCHEDULED],
                starts_after=self.clock(),
                ascending=True,
                limit=limit,
            )
        )

    def get_today_sessions(
        self, user_id: UUID, is_therapist: bool = False
    ) -> list[SessionRecord]:
        """Return today's active sessions in the clinic timezone."""
        day_start = self.clock().astimezone(self.tz).replace(
            hour=0, minute=0, second=0, microsecond=0
        )
        return self.get_sessions(
            SessionFilters(
                **_participant_filter(user_id, is_therapist),
                statuses=sorted(BLOCKING_STATUSES),
                starts_after=day_start.astimezone(UTC),
                starts_before=(day_start + timedelta(days=1)).astimezone(UTC),
                ascending=True,
            )
        )

    def get_dashboard_sessions(
        self, user_id: UUID, is_therapist: bool = False
    ) -> DashboardSessions:
        """Group a user's sessions into upcoming, today, this week and past."""
        sessions = self.get_sessions(
            SessionFilters(**_participant_filter(user_id, is_therapist), ascending=True)
        )
        now = self.clock()
        local_now = now.astimezone(self.tz)
        today = local_now.date()
        week_start = today - timedelta(days=today.weekday())
        week_end = week_start + timedelta(days=7)

        def local_day(session: SessionRecord) -> date:
            return session.scheduled_at.astimezone(self.tz).date()

        upcoming = [
            session
            for session in sessions
            if session.status == STATUS_SCHEDULED and session.scheduled_at >= now
        ][:DASHBOARD_UPCOMING_LIMIT]
        today_sessions = [
            session
            for session in sessions
            if session.status in BLOCKING_STATUSES and local_day(session) == today
        ]
        this_week = [
            session
            for session in sessions
            if session.status in BLOCKING_STATUSES | {STATUS_COMPLETED}
            and week_start <= local_day(session) < week_end
        ]
        past = [
            session
            for session in reversed(sessions)
            if session.status in {STATUS_COMPLETED, STATUS_CANCELLED}
        ][:DASHBOARD_PAST_LIMIT]
        return DashboardSessions(
            upcoming=upcoming, today=today_sessions, this_week=this_week, past=past
        )

    def get_session_by_id(self, session_id: UUID) -> SessionRecord | None:
        """Return a session by id; errors yield None."""
        try:
            return self.repository.get_session(session_id)
        except Exception:
            _logger.exception("Failed to fetch session: session_id=%s", session_id)
            return None

    def get_session_details(self, session_id: UUID) -> SessionResult[SessionDetail]:
        """Return a session with participant names and notes."""
        try:
            detail = self.repository.get_session_detail(session_id)
        except Exception:
            _logger.exception(
                "Failed to fetch session details: session_id=%s", session_id
            )
            return SessionResult.fail(ErrorKind.INTERNAL, INTERNAL_ERROR)
        if detail is None:
            return SessionResult.fail(ErrorKind.NOT_FOUND, "Session not found")
        notes = self.notes_service.get_notes(session_id)
        return SessionResult.ok(replace(detail, notes=notes))

    async def join_session(
        self, session_id: UUID, user_id: UUID
    ) -> SessionResult[JoinTicket]:
        """Admit a participant to the video room and start the session."""
        try:
            return await self._join_session(session_id, user_id)
        except Exception:
            _logger.exception(
                "Failed to join session: session_id=%s user_id=%s", session_id, user_id
            )
            return SessionResult.fail(ErrorKind.INTERNAL, INTERNAL_ERROR)

    def complete_session(
        self, session_id: UUID, actor_id: UUID, summary: str | None = None
    ) -> SessionResult[SessionRecord]:
        """Mark a session completed with an optional summary."""
        try:
            session = self.repository.get_session(session_id)
            if session is None:
                return SessionResult.fail(ErrorKind.NOT_FOUND, "Session not found")
            if session.status not in COMPLETABLE_STATUSES:
                return SessionResult.fail(
                    ErrorKind.INVALID_STATE,
                    f"Session cannot be completed (status: {session.status})",
                )
            changes: dict[str, object] = {
                "status": STATUS_COMPLETED,
                "completed_at": self.clock(),
            }
            if summary and summary.strip():
                changes["summary"] = summary.strip()
            self.repository.update_session(session_id, changes)
        except Exception:
            _logger.exception("Failed to complete session: session_id=%s", session_id)
            return SessionResult.fail(ErrorKind.INTERNAL, INTERNAL_ERROR)

        self.history_service.record_event(
            session_id=session_id,
            actor_id=actor_id,
            event_type=STATUS_COMPLETED,
            before={"status": session.status},
            after={"status": STATUS_COMPLETED},
        )
        _logger.info("Session completed: id=%s", session_id)
        return SessionResult.ok(replace(session, **changes))

    def reschedule_session(
        self,
        session_id: UUID,
        actor_id: UUID,
        new_start: datetime,
        reason: str | None = None,
    ) -> SessionResult[SessionRecord]:
        """Move a scheduled session; returns the newly booked session."""
        new_start = self._aware(new_start)
        try:
            session = self.repository.get_session(session_id)
            if session is None:
                return SessionResult.fail(ErrorKind.NOT_FOUND, "Session not found")
            if session.status != STATUS_SCHEDULED:
                return SessionResult.fail(
                    ErrorKind.INVALID_STATE,
                    f"Session cannot be rescheduled (status: {session.status})",
                )
            if new_start <= self.clock():
                return SessionResult.fail(
                    ErrorKind.INVALID_INPUT,
                    "Sessions must be rescheduled to the future",
                )
            new_end = new_start + timedelta(minutes=session.duration_minutes)
            if not self.availability_service.check_availability(
                session.therapist_id,
                new_start,
                new_end,
                exclude_session_id=session.id,
            ):
                return SessionResult.fail(
                    ErrorKind.NOT_AVAILABLE, "Therapist not available"
                )
            moved = self.repository.create_session(
                BookingRequest(
                    patient_id=session.patient_id,
                    therapist_id=session.therapist_id,
                    scheduled_at=new_start,
                    duration_minutes=session.duration_minutes,
                    session_type=session.session_type,
                    amount_paid=session.amount_paid,
                    currency=session.currency,
                    notes=session.notes,
                    rescheduled_from=session.id,
                )
            )
            self.repository.update_session(
                session_id,
                {"status": STATUS_RESCHEDULED, "reschedule_reason": reason},
            )
        except Exception:
            _logger.exception(
                "Failed to reschedule session: session_id=%s", session_id
            )
            return SessionResult.fail(ErrorKind.INTERNAL, INTERNAL_ERROR)

        self.history_service.record_event(
            session_id=session_id,
            actor_id=actor_id,
            event_type=STATUS_RESCHEDULED,
            reason=reason,
            before={"scheduled_at": session.scheduled_at.isoformat()},
            after={
                "scheduled_at": moved.scheduled_at.isoformat(),
                "session_id": str(moved.id),
            },
        )
        _logger.info("Session rescheduled: id=%s new_id=%s", session_id, moved.id)
        return SessionResult.ok(moved)

    def cancel_session(
        self, session_id: UUID, actor_id: UUID, reason: str | None = None
    ) -> SessionResult[SessionRecord]:
        """Cancel a scheduled session that is far enough in the future."""
        try:
            session = self.repository.get_session(session_id)
            if session is None:
                return SessionResult.fail(ErrorKind.NOT_FOUND, "Session not found")
            if session.status != STATUS_SCHEDULED:
                return SessionResult.fail(
                    ErrorKind.INVALID_STATE,
                    f"Session cannot be cancelled (status: {session.status})",
                )
            now = self.clock()
            notice = timedelta(hours=self.cancellation_notice_hours)
            if session.scheduled_at - now < notice:
                return SessionResult.fail(
                    ErrorKind.INVALID_STATE,
                    "Sessions cannot be cancelled within "
                    f"{self.cancellation_notice_hours} hours of start time",
                )
            changes: dict[str, object] = {
                "status": STATUS_CANCELLED,
                "cancellation_reason": reason,
                "cancelled_by": actor_id,
                "cancelled_at": now,
            }
            self.repository.update_session(session_id, changes)
        except Exception:
            _logger.exception("Failed to cancel session: session_id=%s", session_id)
            return SessionResult.fail(ErrorKind.INTERNAL, INTERNAL_ERROR)

        self.history_service.record_event(
            session_id=session_id,
            actor_id=actor_id,
            event_type=STATUS_CANCELLED,
            reason=reason,
            before={"status": session.status},
            after={"status": STATUS_CANCELLED},
        )
        _logger.info("Session cancelled: id=%s", session_id)
        return SessionResult.ok(replace(session, **changes))

    def add_session_note(
        self, session_id: UUID, author_id: UUID, content: str
    ) -> SessionResult[SessionNote]:
        """Attach a manual note to an existing session."""
        try:
            session = self.repository.get_session(session_id)
        except Exception:
            _logger.exception("Failed to fetch session: session_id=%s", session_id)
            return SessionResult.fail(ErrorKind.INTERNAL, INTERNAL_ERROR)
        if session is None:
            return SessionResult.fail(ErrorKind.NOT_FOUND, "Session not found")
        return self.notes_service.add_note(session_id, author_id, content)

    def get_session_notes(self, session_id: UUID) -> list[SessionNote]:
        """Return notes for a session, newest first."""
        return self.notes_service.get_notes(session_id)

    async def _join_session(
        self, session_id: UUID, user_id: UUID
    ) -> SessionResult[JoinTicket]:
        session = self.repository.get_session(session_id)
        if session is None:
            return SessionResult.fail(ErrorKind.NOT_FOUND, "Session not found")
        if not session.is_participant(user_id):
            return SessionResult.fail(
                ErrorKind.UNAUTHORIZED, "Access denied to this session"
            )
        if session.status not in JOINABLE_STATUSES:
            return SessionResult.fail(
                ErrorKind.INVALID_STATE,
                f"Session cannot be joined (status: {session.status})",
            )

        now = self.clock()
        opens_at = session.scheduled_at - timedelta(minutes=self.join_early_minutes)
        closes_at = session.scheduled_at + timedelta(minutes=self.join_late_minutes)
        if now < opens_at:
            return SessionResult.fail(
                ErrorKind.NOT_AVAILABLE,
                "Session not ready yet. You can join "
                f"{self.join_early_minutes} minutes before the start time.",
            )
        if now > closes_at:
            return SessionResult.fail(
                ErrorKind.NOT_AVAILABLE, "Join window has closed for this session"
            )

        changes: dict[str, object] = {}
        room_url, room_name = session.room_url, session.room_name
        if not room_url or not room_name:
            try:
                room = await self.room_client.create_room(
                    name=f"session-{session.id}",
                    expires_at=session.ends_at + ROOM_GRACE,
                )
            except Exception:
                _logger.exception(
                    "Failed to create video room: session_id=%s", session_id
                )
                return SessionResult.fail(
                    ErrorKind.UPSTREAM, "Failed to create video room"
                )
            room_url, room_name = room.url, room.name
            changes.update({"room_url": room_url, "room_name": room_name})

        try:
            meeting_token = await self.room_client.create_meeting_token(
                room_name=room_name,
                user_id=user_id,
                is_owner=user_id == session.therapist_id,
                expires_at=session.ends_at + ROOM_GRACE,
            )
        except Exception:
            _logger.exception(
                "Failed to create meeting token: session_id=%s", session_id
            )
            return SessionResult.fail(
                ErrorKind.UPSTREAM, "Failed to create meeting token"
            )

        if session.status != STATUS_IN_PROGRESS:
            changes["status"] = STATUS_IN_PROGRESS
        if changes:
            self.repository.update_session(session_id, changes)
        joined = replace(session, **changes)
        _logger.info("Session joined: id=%s user_id=%s", session_id, user_id)
        return SessionResult.ok(
            JoinTicket(
                session=joined,
                room_url=room_url,
                room_name=room_name,
                meeting_token=meeting_token,
            )
        )

    def _aware(self, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=self.tz)
        return value


def _participant_filter(user_id: UUID, is_therapist: bool) -> dict[str, UUID]:
    if is_therapist:
        return {"therapist_id": user_id}
    return {"patient_id": user_id}
