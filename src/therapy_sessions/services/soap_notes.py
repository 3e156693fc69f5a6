"""SOAP note generation from session transcripts."""

import logging
import re
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID
from zoneinfo import ZoneInfo

from therapy_sessions.domain.results import INTERNAL_ERROR, ErrorKind, SessionResult
from therapy_sessions.domain.sessions import SessionDetail, SessionNote
from therapy_sessions.domain.soap import SoapNotes, SoapSections
from therapy_sessions.services.notes import SessionNotesService
from therapy_sessions.services.sessions import SessionRepository

_logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a professional therapist assistant specializing in clinical "
    "documentation. Generate accurate SOAP notes from therapy session "
    "transcripts. Use professional terminology, stay objective and factual, "
    "protect patient privacy and follow the SOAP format strictly."
)

_SECTION_PATTERN = re.compile(
    r"^#{1,3}\s*(SUBJECTIVE|OBJECTIVE|ASSESSMENT|PLAN)\b", re.IGNORECASE
)


class NotesClient(Protocol):
    """Interface for chat-completion note generation."""

    async def complete(
        self,
        *,
        model: str,
        system_prompt: str,
        prompt: str,
        temperature: float,
        max_tokens: int,
    ) -> str:
        """Return the generated text for a prompt."""


@dataclass
class SoapNotesService:
    """Builds prompts, calls the notes model and stores SOAP notes."""

    client: NotesClient
    session_repository: SessionRepository
    notes_service: SessionNotesService
    model: str
    provider: str = "deepseek"
    timezone_name: str = "Africa/Lagos"
    temperature: float = 0.2
    max_tokens: int = 2000

    async def generate(
        self, session_id: UUID, author_id: UUID, transcript: str
    ) -> SessionResult[SessionNote]:
        """Generate SOAP notes for a session and store them as a note."""
        if not transcript.strip():
            return SessionResult.fail(
                ErrorKind.INVALID_INPUT, "Transcript cannot be empty"
            )
        try:
            detail = self.session_repository.get_session_detail(session_id)
        except Exception:
            _logger.exception("Failed to load session: session_id=%s", session_id)
            return SessionResult.fail(ErrorKind.INTERNAL, INTERNAL_ERROR)
        if detail is None:
            return SessionResult.fail(ErrorKind.NOT_FOUND, "Session not found")

        prompt = build_soap_prompt(transcript, detail, ZoneInfo(self.timezone_name))
        try:
            raw = await self.client.complete(
                model=self.model,
                system_prompt=SYSTEM_PROMPT,
                prompt=prompt,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except Exception:
            _logger.exception("SOAP generation failed: session_id=%s", session_id)
            return SessionResult.fail(
                ErrorKind.UPSTREAM, "AI note generation failed. Please try again."
            )
        if not raw.strip():
            return SessionResult.fail(
                ErrorKind.UPSTREAM, "AI note generation returned an empty response"
            )

        notes = parse_soap_notes(raw, self.provider)
        _logger.info(
            "SOAP notes generated: session_id=%s words=%s",
            session_id,
            notes.word_count,
        )
        return self.notes_service.add_note(
            session_id=session_id,
            author_id=author_id,
            content=notes.raw,
            note_type="soap",
            soap=notes.structured.model_dump(),
        )


def build_soap_prompt(transcript: str, detail: SessionDetail, tz: ZoneInfo) -> str:
    """Build the user prompt for SOAP generation."""
    session = detail.session
    session_date = session.scheduled_at.astimezone(tz).date().isoformat()
    return (
        "Generate comprehensive SOAP notes for this therapy session.\n\n"
        "PATIENT INFORMATION:\n"
        f"- Patient: {detail.patient_name}\n"
        f"- Session Date: {session_date}\n"
        f"- Duration: {session.duration_minutes} minutes\n"
        f"- Therapist: {detail.therapist_name}\n"
        f"- Session Type: {session.session_type}\n\n"
        "SESSION TRANSCRIPT:\n"
        f"{transcript.strip()}\n\n"
        "Write the notes as markdown with these headings:\n"
        "## SUBJECTIVE\n## OBJECTIVE\n## ASSESSMENT\n## PLAN\n"
    )


def parse_soap_notes(raw: str, provider: str) -> SoapNotes:
    """Split model output into SOAP sections."""
    sections: dict[str, list[str]] = {
        "subjective": [],
        "objective": [],
        "assessment": [],
        "plan": [],
    }
    current: str | None = None
    for line in raw.splitlines():
        match = _SECTION_PATTERN.match(line.strip())
        if match:
            current = match.group(1).lower()
            continue
        if line.startswith("# "):
            continue
        if current is not None:
            sections[current].append(line)

    structured = SoapSections(
        **{name: "\n".join(lines).strip() for name, lines in sections.items()}
    )
    return SoapNotes(
        raw=raw.strip(),
        structured=structured,
        word_count=len(raw.split()),
        provider=provider,
    )
