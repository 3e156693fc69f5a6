"""Supabase repository for session notes."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import Client

from therapy_sessions.domain.sessions import SessionNote
from therapy_sessions.services.notes import SessionNoteRepository

_COLUMNS = "id, session_id, author_id, note_type, content, soap_json, created_at"


@dataclass
class SupabaseSessionNoteRepository(SessionNoteRepository):
    """Supabase implementation for session notes."""

    client: Client

    def create_note(
        self,
        session_id: UUID,
        author_id: UUID,
        note_type: str,
        content: str,
        soap: dict[str, object] | None,
    ) -> SessionNote:
        """Insert a note row and return it."""
        response = (
            self.client.table("session_notes")
            .insert(
                {
                    "session_id": str(session_id),
                    "author_id": str(author_id),
                    "note_type": note_type,
                    "content": content,
                    "soap_json": soap,
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create session note")
        return _parse_note(response.data[0])

    def list_notes(self, session_id: UUID) -> list[SessionNote]:
        """Return notes for a session, newest first."""
        response = (
            self.client.table("session_notes")
            .select(_COLUMNS)
            .eq("session_id", str(session_id))
            .order("created_at", desc=True)
            .execute()
        )
        return [_parse_note(row) for row in response.data or []]


def _parse_note(row: dict[str, object]) -> SessionNote:
    created_raw = row.get("created_at")
    created_at = (
        datetime.fromisoformat(created_raw)
        if isinstance(created_raw, str) and created_raw
        else datetime.now(tz=UTC)
    )
    return SessionNote(
        id=UUID(str(row["id"])),
        session_id=UUID(str(row["session_id"])),
        author_id=UUID(str(row["author_id"])),
        note_type=str(row.get("note_type") or "manual"),
        content=str(row.get("content", "")),
        created_at=created_at,
        soap=row.get("soap_json"),
    )
