"""Append-only history of session lifecycle changes."""

import logging
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

_logger = logging.getLogger(__name__)


class SessionHistoryRepository(Protocol):
    """Persistence interface for session history rows."""

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

    def list_events(self, session_id: UUID) -> list[dict[str, object]]:
        """Return history rows for a session, oldest first."""


@dataclass
class SessionHistoryService:
    """Service for recording who changed a session and why."""

    repository: SessionHistoryRepository

    def record_event(  # noqa: PLR0913
        self,
        session_id: UUID,
        actor_id: UUID,
        event_type: str,
        reason: str | None = None,
        before: dict[str, object] | None = None,
        after: dict[str, object] | None = None,
    ) -> bool:
        """Persist a history row; failures are logged and reported as False."""
        try:
            self.repository.create_event(
                session_id=session_id,
                actor_id=actor_id,
                event_type=event_type,
                reason=reason,
                before=before,
                after=after,
            )
        except Exception:
            _logger.exception(
                "Failed to record session history: session_id=%s event=%s",
                session_id,
                event_type,
            )
            return False
        return True

    def list_events(self, session_id: UUID) -> list[dict[str, object]]:
        """Return the history of a session; errors yield an empty list."""
        try:
            return self.repository.list_events(session_id)
        except Exception:
            _logger.exception(
                "Failed to fetch session history: session_id=%s", session_id
            )
            return []
