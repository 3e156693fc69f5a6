"""Pydantic request models for the HTTP API."""

from datetime import date, datetime, time
from uuid import UUID

from pydantic import BaseModel, Field


class BookSessionRequest(BaseModel):
    """Payload for booking a session."""

    patient_id: UUID
    therapist_id: UUID
    scheduled_at: datetime
    duration_minutes: int = 60
    session_type: str = "video"
    amount_paid: float | None = Field(default=None, ge=0)
    currency: str | None = None
    notes: str | None = None


class JoinSessionRequest(BaseModel):
    """Payload for joining a session."""

    user_id: UUID


class CompleteSessionRequest(BaseModel):
    """Payload for completing a session."""

    actor_id: UUID
    summary: str | None = None


class RescheduleSessionRequest(BaseModel):
    """Payload for rescheduling a session."""

    actor_id: UUID
    new_start: datetime
    reason: str | None = None


class CancelSessionRequest(BaseModel):
    """Payload for cancelling a session."""

    actor_id: UUID
    reason: str | None = None


class AddNoteRequest(BaseModel):
    """Payload for adding a manual note."""

    author_id: UUID
    content: str


class SoapNotesRequest(BaseModel):
    """Payload for generating SOAP notes from a transcript."""

    author_id: UUID
    transcript: str


class OverrideRequest(BaseModel):
    """Payload for a date-specific availability override."""

    override_date: date
    override_type: str
    start_time: time | None = None
    end_time: time | None = None
    reason: str | None = None
