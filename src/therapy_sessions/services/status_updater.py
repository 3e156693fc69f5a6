"""Background status maintenance for sessions that have run past their end."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from therapy_sessions.domain.sessions import (
    BLOCKING_STATUSES,
    STATUS_COMPLETED,
    SessionFilters,
)
from therapy_sessions.services.sessions import SessionRepository

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class SessionStatusUpdater:
    """Completes sessions whose scheduled end plus a grace period has passed."""

    repository: SessionRepository
    grace_minutes: int = 5
    clock: Callable[[], datetime] = field(default=_utcnow)

    def complete_expired_sessions(self, now: datetime | None = None) -> int:
        """Mark expired sessions completed and return how many were updated."""
        current = now or self.clock()
        grace = timedelta(minutes=self.grace_minutes)
        candidates = self.repository.list_sessions(
            SessionFilters(
                statuses=sorted(BLOCKING_STATUSES),
                starts_before=current,
                ascending=True,
            )
        )
        updated = 0
        for session in candidates:
            if session.ends_at + grace >= current:
                continue
            self.repository.update_session(
                session.id,
                {"status": STATUS_COMPLETED, "completed_at": current},
            )
            updated += 1
        if updated:
            _logger.info("Completed %s expired sessions", updated)
        return updated
