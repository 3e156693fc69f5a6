"""Models for generated SOAP notes."""

from pydantic import BaseModel, Field


class SoapSections(BaseModel):
    """The four SOAP sections."""

    subjective: str = ""
    objective: str = ""
    assessment: str = ""
    plan: str = ""


class SoapNotes(BaseModel):
    """Parsed SOAP notes with provenance."""

    raw: str
    structured: SoapSections
    word_count: int = Field(ge=0)
    provider: str
