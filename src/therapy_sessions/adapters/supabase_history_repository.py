"""Supabase repository for session history events."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from therapy_sessions.services.history import SessionHistoryRepository


@dataclass
class SupabaseSessionHistoryRepository(SessionHistoryRepository):
    """Supabase-backed session history repository."""

    client: Client

    def create_event(  # noqa: PLR0913
        self,
        session_id: UUID,
        actor_id: UUID,
        event_type: str,
        reason: str | None,
        before: dict[str, object] | None,
        after: dict[str, object] | None,
    ) -> None:
        """Create a session history row."""
        self.client.table("session_history").insert(
            {
                "session_id": str(session_id),
                "actor_id": str(actor_id),
                "event_type": event_type,
                "reason": reason,
                "before_json": before,
                "after_json": after,
            }
        ).execute()

    def list_events(self, session_id: UUID) -> list[dict[str, object]]:
        """Return history rows for a session, oldest first."""
        response = (
            self.client.table("session_history")
            .select("*")
            .eq("session_id", str(session_id))
            .order("created_at", desc=False)
            .execute()
        )
        return response.data or []
