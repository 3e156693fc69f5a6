"""Tests for expired session maintenance."""

from datetime import timedelta

from therapy_sessions.domain.sessions import (
    STATUS_CANCELLED,
    STATUS_COMPLETED,
    STATUS_IN_PROGRESS,
    STATUS_SCHEDULED,
)
from therapy_sessions.services.status_updater import SessionStatusUpdater
from tests.conftest import NOW, InMemorySessionRepository, fixed_clock


def test_complete_expired_sessions_respects_grace_period(
    session_repository: InMemorySessionRepository,
) -> None:
    expired = session_repository.seed(
        NOW - timedelta(minutes=70), status=STATUS_IN_PROGRESS
    )
    in_grace = session_repository.seed(NOW - timedelta(minutes=63))
    running = session_repository.seed(
        NOW - timedelta(minutes=30), status=STATUS_IN_PROGRESS
    )
    cancelled = session_repository.seed(
        NOW - timedelta(hours=3), status=STATUS_CANCELLED
    )
    future = session_repository.seed(NOW + timedelta(hours=1))
    updater = SessionStatusUpdater(session_repository, clock=fixed_clock)

    updated = updater.complete_expired_sessions()

    assert updated == 1
    assert session_repository.sessions[expired.id].status == STATUS_COMPLETED
    assert session_repository.sessions[expired.id].completed_at == NOW
    assert session_repository.sessions[in_grace.id].status == STATUS_SCHEDULED
    assert session_repository.sessions[running.id].status == STATUS_IN_PROGRESS
    assert session_repository.sessions[cancelled.id].status == STATUS_CANCELLED
    assert session_repository.sessions[future.id].status == STATUS_SCHEDULED


def test_complete_expired_sessions_accepts_explicit_time(
    session_repository: InMemorySessionRepository,
) -> None:
    session = session_repository.seed(NOW)
    updater = SessionStatusUpdater(session_repository, clock=fixed_clock)

    assert updater.complete_expired_sessions(NOW + timedelta(minutes=64)) == 0
    assert updater.complete_expired_sessions(NOW + timedelta(minutes=66)) == 1
    assert session_repository.sessions[session.id].status == STATUS_COMPLETED
