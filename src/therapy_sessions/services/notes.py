"""Session notes service."""

import logging
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from therapy_sessions.domain.results import ErrorKind, SessionResult
from therapy_sessions.domain.sessions import SessionNote

_logger = logging.getLogger(__name__)

NOTE_TYPES = frozenset({"manual", "soap"})


class SessionNoteRepository(Protocol):
    """Persistence interface for session notes."""

    def create_note(
        self,
        session_id: UUID,
        author_id: UUID,
        note_type: str,
        content: str,
        soap: dict[str, object] | None,
    ) -> SessionNote:
        """Create a note and return it."""

    def list_notes(self, session_id: UUID) -> list[SessionNote]:
        """Return notes for a session, newest first."""


@dataclass
class SessionNotesService:
    """Append and read notes attached to sessions."""

    repository: SessionNoteRepository

    def add_note(
        self,
        session_id: UUID,
        author_id: UUID,
        content: str,
        note_type: str = "manual",
        soap: dict[str, object] | None = None,
    ) -> SessionResult[SessionNote]:
        """Store a note for a session."""
        cleaned = content.strip()
        if not cleaned:
            return SessionResult.fail(ErrorKind.INVALID_INPUT, "Note cannot be empty")
        if note_type not in NOTE_TYPES:
            return SessionResult.fail(
                ErrorKind.INVALID_INPUT, f"Unknown note type: {note_type}"
            )
        try:
            note = self.repository.create_note(
                session_id=session_id,
                author_id=author_id,
                note_type=note_type,
                content=cleaned,
                soap=soap,
            )
        except Exception:
            _logger.exception("Failed to add session note: session_id=%s", session_id)
            return SessionResult.fail(ErrorKind.INTERNAL, "Failed to add session note")
        return SessionResult.ok(note)

    def get_notes(self, session_id: UUID) -> list[SessionNote]:
        """Return notes for a session; errors yield an empty list."""
        try:
            return self.repository.list_notes(session_id)
        except Exception:
            _logger.exception(
                "Failed to fetch session notes: session_id=%s", session_id
            )
            return []
