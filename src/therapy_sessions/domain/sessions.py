"""Domain models for therapy sessions."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from uuid import UUID

STATUS_SCHEDULED = "scheduled"
STATUS_IN_PROGRESS = "in_progress"
STATUS_COMPLETED = "completed"
STATUS_CANCELLED = "cancelled"
STATUS_RESCHEDULED = "rescheduled"

SESSION_STATUSES = frozenset(
    {
        STATUS_SCHEDULED,
        STATUS_IN_PROGRESS,
        STATUS_COMPLETED,
        STATUS_CANCELLED,
        STATUS_RESCHEDULED,
    }
)

# Statuses that occupy a therapist's calendar.
BLOCKING_STATUSES = frozenset({STATUS_SCHEDULED, STATUS_IN_PROGRESS})

SESSION_TYPES = frozenset({"video", "audio", "chat", "in_person"})


@dataclass(frozen=True)
class SessionRecord:
    """Represents a persisted therapy session."""

    id: UUID
    patient_id: UUID
    therapist_id: UUID
    scheduled_at: datetime
    duration_minutes: int
    session_type: str
    status: str
    amount_paid: float | None = None
    currency: str | None = None
    summary: str | None = None
    notes: str | None = None
    reschedule_reason: str | None = None
    cancellation_reason: str | None = None
    cancelled_by: UUID | None = None
    cancelled_at: datetime | None = None
    completed_at: datetime | None = None
    rescheduled_from: UUID | None = None
    room_url: str | None = None
    room_name: str | None = None

    @property
    def ends_at(self) -> datetime:
        """Return the scheduled end of the session."""
        return self.scheduled_at + timedelta(minutes=self.duration_minutes)

    def is_participant(self, user_id: UUID) -> bool:
        """Return true when the user is the patient or the therapist."""
        return user_id in {self.patient_id, self.therapist_id}


@dataclass(frozen=True)
class BookingRequest:
    """Input for booking a new session."""

    patient_id: UUID
    therapist_id: UUID
    scheduled_at: datetime
    duration_minutes: int = 60
    session_type: str = "video"
    amount_paid: float | None = None
    currency: str | None = None
    notes: str | None = None
    rescheduled_from: UUID | None = None

    @property
    def ends_at(self) -> datetime:
        return self.scheduled_at + timedelta(minutes=self.duration_minutes)


@dataclass(frozen=True)
class SessionFilters:
    """Predicates for session listing queries."""

    patient_id: UUID | None = None
    therapist_id: UUID | None = None
    statuses: list[str] | None = None
    starts_after: datetime | None = None
    starts_before: datetime | None = None
    ascending: bool = False
    limit: int | None = None


@dataclass(frozen=True)
class Participant:
    """Display details for a session participant."""

    id: UUID
    full_name: str | None
    email: str | None


@dataclass(frozen=True)
class SessionNote:
    """A note attached to a session."""

    id: UUID
    session_id: UUID
    author_id: UUID
    note_type: str
    content: str
    created_at: datetime
    soap: dict[str, object] | None = None


@dataclass(frozen=True)
class SessionDetail:
    """Session with participant names and notes."""

    session: SessionRecord
    patient: Participant | None
    therapist: Participant | None
    notes: list[SessionNote] = field(default_factory=list)

    @property
    def patient_name(self) -> str:
        if self.patient and self.patient.full_name:
            return self.patient.full_name
        return "Patient"

    @property
    def therapist_name(self) -> str:
        if self.therapist and self.therapist.full_name:
            return self.therapist.full_name
        return "Therapist"


@dataclass(frozen=True)
class JoinTicket:
    """Everything a participant needs to enter the video room."""

    session: SessionRecord
    room_url: str
    room_name: str
    meeting_token: str | None


@dataclass(frozen=True)
class DashboardSessions:
    """Sessions grouped for dashboard display."""

    upcoming: list[SessionRecord]
    today: list[SessionRecord]
    this_week: list[SessionRecord]
    past: list[SessionRecord]
