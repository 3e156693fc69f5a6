"""Domain models for therapist availability."""

from dataclasses import dataclass
from datetime import date, datetime, time
from uuid import UUID

OVERRIDE_UNAVAILABLE = "unavailable"
OVERRIDE_CUSTOM_HOURS = "custom_hours"


@dataclass(frozen=True)
class AvailabilityWindow:
    """Recurring weekly window; day_of_week uses 0 for Sunday."""

    therapist_id: UUID
    day_of_week: int
    start_time: time
    end_time: time
    is_available: bool = True


@dataclass(frozen=True)
class AvailabilityOverride:
    """Date specific exception to the weekly windows."""

    id: UUID
    therapist_id: UUID
    override_date: date
    override_type: str
    start_time: time | None = None
    end_time: time | None = None
    reason: str | None = None


@dataclass(frozen=True)
class TimeSlot:
    """Bookable slot produced from availability windows."""

    date: date
    start: datetime
    end: datetime
    duration_minutes: int


def day_of_week(value: date) -> int:
    """Return the weekday index with Sunday as 0."""
    return (value.weekday() + 1) % 7
