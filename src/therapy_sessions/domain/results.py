"""Result objects returned by session operations."""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class ErrorKind(Enum):
    """Failure categories callers can branch on."""

    NOT_FOUND = "not_found"
    UNAUTHORIZED = "unauthorized"
    NOT_AVAILABLE = "not_available"
    INVALID_STATE = "invalid_state"
    INVALID_INPUT = "invalid_input"
    UPSTREAM = "upstream"
    INTERNAL = "internal"


@dataclass(frozen=True)
class SessionResult(Generic[T]):
    """Tagged success/failure outcome of a session operation."""

    success: bool
    data: T | None = None
    error: str | None = None
    kind: ErrorKind | None = None

    @classmethod
    def ok(cls, data: T | None = None) -> "SessionResult[T]":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, kind: ErrorKind, error: str) -> "SessionResult[T]":
        return cls(success=False, error=error, kind=kind)


INTERNAL_ERROR = "Internal server error"
