"""Supabase-backed session repository."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import Client

from therapy_sessions.domain.sessions import (
    STATUS_SCHEDULED,
    BookingRequest,
    Participant,
    SessionDetail,
    SessionFilters,
    SessionRecord,
)
from therapy_sessions.services.sessions import SessionRepository

_COLUMNS = (
    "id, patient_id, therapist_id, scheduled_at, duration_minutes, session_type, "
    "status, amount_paid, currency, summary, notes, reschedule_reason, "
    "cancellation_reason, cancelled_by, cancelled_at, completed_at, "
    "rescheduled_from, room_url, room_name"
)
_DETAIL_COLUMNS = (
    f"{_COLUMNS}, "
    "patient:patient_id (id, full_name, email), "
    "therapist:therapist_id (id, full_name, email)"
)


@dataclass
class SupabaseSessionRepository(SessionRepository):
    """Supabase implementation for therapy sessions."""

    client: Client

    def create_session(self, request: BookingRequest) -> SessionRecord:
        """Insert a scheduled session row and return it."""
        response = (
            self.client.table("sessions")
            .insert(
                {
                    "patient_id": str(request.patient_id),
                    "therapist_id": str(request.therapist_id),
                    "scheduled_at": request.scheduled_at.isoformat(),
                    "duration_minutes": request.duration_minutes,
                    "session_type": request.session_type,
                    "status": STATUS_SCHEDULED,
                    "amount_paid": request.amount_paid,
                    "currency": request.currency,
                    "notes": request.notes,
                    "rescheduled_from": str(request.rescheduled_from)
                    if request.rescheduled_from
                    else None,
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create session")
        return _parse_session(response.data[0])

    def get_session(self, session_id: UUID) -> SessionRecord | None:
        """Return a session by id, if present."""
        response = (
            self.client.table("sessions")
            .select(_COLUMNS)
            .eq("id", str(session_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_session(response.data[0])

    def get_session_detail(self, session_id: UUID) -> SessionDetail | None:
        """Return a session with participant names, if present."""
        response = (
            self.client.table("sessions")
            .select(_DETAIL_COLUMNS)
            .eq("id", str(session_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        row = response.data[0]
        return SessionDetail(
            session=_parse_session(row),
            patient=_parse_participant(row.get("patient")),
            therapist=_parse_participant(row.get("therapist")),
        )

    def list_sessions(self, filters: SessionFilters) -> list[SessionRecord]:
        """Return sessions matching the filters ordered by start time."""
        query = self.client.table("sessions").select(_COLUMNS)
        if filters.patient_id:
            query = query.eq("patient_id", str(filters.patient_id))
        if filters.therapist_id:
            query = query.eq("therapist_id", str(filters.therapist_id))
        if filters.statuses:
            query = query.in_("status", list(filters.statuses))
        if filters.starts_after:
            query = query.gte("scheduled_at", filters.starts_after.isoformat())
        if filters.starts_before:
            query = query.lt("scheduled_at", filters.starts_before.isoformat())
        query = query.order("scheduled_at", desc=not filters.ascending)
        if filters.limit:
            query = query.limit(filters.limit)
        response = query.execute()
        return [_parse_session(row) for row in response.data or []]

    def update_session(self, session_id: UUID, changes: dict[str, object]) -> None:
        """Update session columns."""
        payload = {key: _serialize(value) for key, value in changes.items()}
        payload["updated_at"] = datetime.now(tz=UTC).isoformat()
        self.client.table("sessions").update(payload).eq(
            "id", str(session_id)
        ).execute()


def _serialize(value: object) -> object:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    return value


def _parse_datetime(raw: object) -> datetime | None:
    if isinstance(raw, str) and raw:
        return datetime.fromisoformat(raw)
    return None


def _parse_uuid(raw: object) -> UUID | None:
    return UUID(str(raw)) if raw else None


def _parse_session(row: dict[str, object]) -> SessionRecord:
    scheduled_at = _parse_datetime(row.get("scheduled_at"))
    if scheduled_at is None:
        raise ValueError(f"Session {row.get('id')} has no scheduled_at")
    amount_paid = row.get("amount_paid")
    return SessionRecord(
        id=UUID(str(row["id"])),
        patient_id=UUID(str(row["patient_id"])),
        therapist_id=UUID(str(row["therapist_id"])),
        scheduled_at=scheduled_at,
        duration_minutes=int(row.get("duration_minutes") or 60),
        session_type=str(row.get("session_type") or "video"),
        status=str(row["status"]),
        amount_paid=float(amount_paid) if amount_paid is not None else None,
        currency=row.get("currency"),
        summary=row.get("summary"),
        notes=row.get("notes"),
        reschedule_reason=row.get("reschedule_reason"),
        cancellation_reason=row.get("cancellation_reason"),
        cancelled_by=_parse_uuid(row.get("cancelled_by")),
        cancelled_at=_parse_datetime(row.get("cancelled_at")),
        completed_at=_parse_datetime(row.get("completed_at")),
        rescheduled_from=_parse_uuid(row.get("rescheduled_from")),
        room_url=row.get("room_url"),
        room_name=row.get("room_name"),
    )


def _parse_participant(raw: object) -> Participant | None:
    if not isinstance(raw, dict) or not raw.get("id"):
        return None
    return Participant(
        id=UUID(str(raw["id"])),
        full_name=raw.get("full_name"),
        email=raw.get("email"),
    )
