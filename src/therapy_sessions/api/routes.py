"""Session and availability endpoints."""

from __future__ import annotations

from datetime import MAXYEAR, MINYEAR, date, datetime  # noqa: TC003
from typing import TYPE_CHECKING, TypeVar
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, HTTPException, Query, Request, status

from therapy_sessions.api.models import (
    AddNoteRequest,
    BookSessionRequest,
    CancelSessionRequest,
    CompleteSessionRequest,
    JoinSessionRequest,
    OverrideRequest,
    RescheduleSessionRequest,
    SoapNotesRequest,
)
from therapy_sessions.config import parse_status_filter
from therapy_sessions.domain.results import ErrorKind, SessionResult
from therapy_sessions.domain.sessions import BookingRequest, SessionFilters

if TYPE_CHECKING:
    from therapy_sessions.containers import AppContainer

T = TypeVar("T")

router = APIRouter(tags=["sessions"])

_STATUS_BY_KIND = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.UNAUTHORIZED: status.HTTP_403_FORBIDDEN,
    ErrorKind.NOT_AVAILABLE: status.HTTP_409_CONFLICT,
    ErrorKind.INVALID_STATE: status.HTTP_409_CONFLICT,
    ErrorKind.INVALID_INPUT: status.HTTP_400_BAD_REQUEST,
    ErrorKind.UPSTREAM: status.HTTP_502_BAD_GATEWAY,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def _container(request: Request) -> AppContainer:
    return request.app.state.container


def _unwrap(result: SessionResult[T]) -> T | None:
    """Return result data or raise the matching HTTP error."""
    if result.success:
        return result.data
    kind = result.kind or ErrorKind.INTERNAL
    raise HTTPException(status_code=_STATUS_BY_KIND[kind], detail=result.error)


@router.get("/sessions")
async def list_sessions(  # noqa: PLR0913
    request: Request,
    patient_id: UUID | None = None,
    therapist_id: UUID | None = None,
    status_filter: str | None = Query(default=None, alias="status"),
    upcoming: bool = False,
    limit: int | None = None,
) -> dict[str, object]:
    """Return sessions filtered by participant and status."""
    service = _container(request).session_service
    filters = SessionFilters(
        patient_id=patient_id,
        therapist_id=therapist_id,
        statuses=parse_status_filter(status_filter),
        starts_after=service.clock() if upcoming else None,
        ascending=upcoming,
        limit=limit,
    )
    return {"sessions": service.get_sessions(filters)}


@router.get("/sessions/dashboard")
async def dashboard_sessions(
    request: Request, user_id: UUID, is_therapist: bool = False
) -> dict[str, object]:
    """Return sessions grouped for a dashboard."""
    service = _container(request).session_service
    return {"sessions": service.get_dashboard_sessions(user_id, is_therapist)}


@router.post("/sessions", status_code=status.HTTP_201_CREATED)
async def book_session(
    payload: BookSessionRequest, request: Request
) -> dict[str, object]:
    """Book a new session."""
    service = _container(request).session_service
    result = service.book_session(BookingRequest(**payload.model_dump()))
    return {"session": _unwrap(result)}


@router.get("/sessions/{session_id}")
async def get_session(session_id: UUID, request: Request) -> dict[str, object]:
    """Return a session by id."""
    session = _container(request).session_service.get_session_by_id(session_id)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Session not found"
        )
    return {"session": session}


@router.get("/sessions/{session_id}/details")
async def get_session_details(
    session_id: UUID, request: Request
) -> dict[str, object]:
    """Return a session with participant names and notes."""
    result = _container(request).session_service.get_session_details(session_id)
    detail = _unwrap(result)
    return {
        "session": detail.session,
        "patient_name": detail.patient_name,
        "therapist_name": detail.therapist_name,
        "notes": detail.notes,
    }


@router.post("/sessions/{session_id}/join")
async def join_session(
    session_id: UUID, payload: JoinSessionRequest, request: Request
) -> dict[str, object]:
    """Join the video room for a session."""
    service = _container(request).session_service
    ticket = _unwrap(await service.join_session(session_id, payload.user_id))
    return {
        "session": ticket.session,
        "room_url": ticket.room_url,
        "room_name": ticket.room_name,
        "meeting_token": ticket.meeting_token,
    }


@router.post("/sessions/{session_id}/complete")
async def complete_session(
    session_id: UUID, payload: CompleteSessionRequest, request: Request
) -> dict[str, object]:
    """Mark a session completed."""
    service = _container(request).session_service
    result = service.complete_session(session_id, payload.actor_id, payload.summary)
    return {"session": _unwrap(result)}


@router.post("/sessions/{session_id}/reschedule")
async def reschedule_session(
    session_id: UUID, payload: RescheduleSessionRequest, request: Request
) -> dict[str, object]:
    """Move a session to a new start time."""
    service = _container(request).session_service
    result = service.reschedule_session(
        session_id, payload.actor_id, payload.new_start, payload.reason
    )
    return {"session": _unwrap(result)}


@router.post("/sessions/{session_id}/cancel")
async def cancel_session(
    session_id: UUID, payload: CancelSessionRequest, request: Request
) -> dict[str, object]:
    """Cancel a session."""
    service = _container(request).session_service
    result = service.cancel_session(session_id, payload.actor_id, payload.reason)
    return {"session": _unwrap(result)}


@router.get("/sessions/{session_id}/notes")
async def list_notes(session_id: UUID, request: Request) -> dict[str, object]:
    """Return notes for a session."""
    service = _container(request).session_service
    return {"notes": service.get_session_notes(session_id)}


@router.post("/sessions/{session_id}/notes", status_code=status.HTTP_201_CREATED)
async def add_note(
    session_id: UUID, payload: AddNoteRequest, request: Request
) -> dict[str, object]:
    """Attach a manual note to a session."""
    service = _container(request).session_service
    result = service.add_session_note(session_id, payload.author_id, payload.content)
    return {"note": _unwrap(result)}


@router.post(
    "/sessions/{session_id}/soap-notes", status_code=status.HTTP_201_CREATED
)
async def generate_soap_notes(
    session_id: UUID, payload: SoapNotesRequest, request: Request
) -> dict[str, object]:
    """Generate SOAP notes from a session transcript."""
    service = _container(request).soap_notes_service
    result = await service.generate(session_id, payload.author_id, payload.transcript)
    return {"note": _unwrap(result)}


@router.get("/therapists/{therapist_id}/availability/slots")
async def available_slots(
    therapist_id: UUID,
    request: Request,
    day: date,
    duration_minutes: int | None = None,
) -> dict[str, object]:
    """Return free slots on a date."""
    service = _container(request).availability_service
    return {"slots": service.get_available_slots(therapist_id, day, duration_minutes)}


@router.get("/therapists/{therapist_id}/availability/check")
async def check_availability(
    therapist_id: UUID, request: Request, start: datetime, end: datetime
) -> dict[str, bool]:
    """Return whether the therapist is free for the interval."""
    service = _container(request).session_service
    return {
        "available": service.check_therapist_availability(therapist_id, start, end)
    }


@router.get("/therapists/{therapist_id}/availability/days")
async def available_days(
    therapist_id: UUID,
    request: Request,
    year: int,
    month: int,
    duration_minutes: int | None = None,
) -> dict[str, object]:
    """Return dates in a month with free slots."""
    if not MINYEAR <= year <= MAXYEAR:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid year"
        )
    if not 1 <= month <= 12:  # noqa: PLR2004
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid month"
        )
    service = _container(request).availability_service
    return {
        "days": service.get_available_days(therapist_id, year, month, duration_minutes)
    }


@router.post(
    "/therapists/{therapist_id}/availability/overrides",
    status_code=status.HTTP_201_CREATED,
)
async def add_override(
    therapist_id: UUID, payload: OverrideRequest, request: Request
) -> dict[str, object]:
    """Add a date-specific availability override."""
    service = _container(request).availability_service
    result = service.add_override(therapist_id=therapist_id, **payload.model_dump())
    return {"override": _unwrap(result)}


@router.delete("/availability/overrides/{override_id}")
async def remove_override(override_id: UUID, request: Request) -> dict[str, str]:
    """Deactivate an availability override."""
    service = _container(request).availability_service
    _unwrap(service.remove_override(override_id))
    return {"status": "ok"}
