"""Admin API endpoints with simple token auth."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request, status

from therapy_sessions.config import parse_status_filter
from therapy_sessions.domain.sessions import SessionFilters

if TYPE_CHECKING:
    from therapy_sessions.containers import AppContainer

_logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid admin token."""
    if not x_admin_token or x_admin_token != admin_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


@router.get("/health", dependencies=[Depends(require_admin)])
async def admin_health() -> dict[str, str]:
    """Admin health check endpoint."""
    return {"status": "ok"}


@router.get("/sessions", dependencies=[Depends(require_admin)])
async def list_sessions(
    request: Request,
    status_filter: str | None = Query(default=None, alias="status"),
    limit: int = 50,
) -> dict[str, object]:
    """Return recent sessions across all participants."""
    container: AppContainer = request.app.state.container
    filters = SessionFilters(statuses=parse_status_filter(status_filter), limit=limit)
    return {"sessions": container.session_service.get_sessions(filters)}


@router.get("/sessions/{session_id}/history", dependencies=[Depends(require_admin)])
async def session_history(session_id: UUID, request: Request) -> dict[str, object]:
    """Return the audit trail for a session."""
    container: AppContainer = request.app.state.container
    return {"events": container.history_service.list_events(session_id)}


@router.post("/sessions/expire", dependencies=[Depends(require_admin)])
async def expire_sessions(request: Request) -> dict[str, object]:
    """Complete sessions whose end time has passed."""
    container: AppContainer = request.app.state.container
    try:
        completed = container.status_updater.complete_expired_sessions()
    except Exception as exc:
        _logger.exception("Failed to complete expired sessions")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to complete expired sessions",
        ) from exc
    return {"completed": completed}
