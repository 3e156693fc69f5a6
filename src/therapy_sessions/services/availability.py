"""Therapist availability: weekly windows, overrides and bookable slots."""

import calendar
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, time, timedelta
from typing import Protocol
from uuid import UUID
from zoneinfo import ZoneInfo

from therapy_sessions.domain.availability import (
    OVERRIDE_CUSTOM_HOURS,
    OVERRIDE_UNAVAILABLE,
    AvailabilityOverride,
    AvailabilityWindow,
    TimeSlot,
    day_of_week,
)
from therapy_sessions.domain.results import ErrorKind, SessionResult
from therapy_sessions.domain.sessions import (
    BLOCKING_STATUSES,
    SessionFilters,
    SessionRecord,
)

_logger = logging.getLogger(__name__)


class AvailabilityRepository(Protocol):
    """Persistence interface for weekly windows and overrides."""

    def list_windows(
        self, therapist_id: UUID, day_of_week: int
    ) -> list[AvailabilityWindow]:
        """Return weekly windows for a therapist on a weekday."""

    def list_overrides(
        self, therapist_id: UUID, override_date: date
    ) -> list[AvailabilityOverride]:
        """Return active overrides for a therapist on a date."""

    def create_override(  # noqa: PLR0913
        self,
        therapist_id: UUID,
        override_date: date,
        override_type: str,
        start_time: time | None,
        end_time: time | None,
        reason: str | None,
    ) -> AvailabilityOverride:
        """Create an override and return it."""

    def deactivate_override(self, override_id: UUID) -> bool:
        """Deactivate an override; return False when it does not exist."""


class BookingLookup(Protocol):
    """Read access to booked sessions."""

    def list_sessions(self, filters: SessionFilters) -> list[SessionRecord]:
        """Return sessions matching the filters."""


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class AvailabilityService:
    """Answers whether and when a therapist can be booked."""

    repository: AvailabilityRepository
    booking_lookup: BookingLookup
    timezone_name: str = "Africa/Lagos"
    default_slot_minutes: int = 60
    clock: Callable[[], datetime] = field(default=_utcnow)

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone_name)

    def get_windows(
        self, therapist_id: UUID, weekday: int
    ) -> list[AvailabilityWindow]:
        """Return enabled, well-formed weekly windows for a weekday."""
        windows = self.repository.list_windows(therapist_id, weekday)
        return [
            window
            for window in windows
            if window.is_available and window.start_time < window.end_time
        ]

    def check_availability(
        self,
        therapist_id: UUID,
        start: datetime,
        end: datetime,
        exclude_session_id: UUID | None = None,
    ) -> bool:
        """Return True when the interval can be booked; errors count as False."""
        try:
            return self._check_availability(
                therapist_id, start, end, exclude_session_id
            )
        except Exception:
            _logger.exception(
                "Availability check failed: therapist_id=%s start=%s",
                therapist_id,
                start,
            )
            return False

    def get_available_slots(
        self,
        therapist_id: UUID,
        day: date,
        duration_minutes: int | None = None,
    ) -> list[TimeSlot]:
        """Return free slots of the given length on a clinic-local date."""
        duration = duration_minutes or self.default_slot_minutes
        if duration <= 0:
            return []
        try:
            return self._available_slots(therapist_id, day, duration)
        except Exception:
            _logger.exception(
                "Failed to list slots: therapist_id=%s day=%s", therapist_id, day
            )
            return []

    def get_available_days(
        self,
        therapist_id: UUID,
        year: int,
        month: int,
        duration_minutes: int | None = None,
    ) -> list[date]:
        """Return dates of a month that still have at least one free slot."""
        _, days_in_month = calendar.monthrange(year, month)
        available = []
        for day_number in range(1, days_in_month + 1):
            day = date(year, month, day_number)
            if self.get_available_slots(therapist_id, day, duration_minutes):
                available.append(day)
        return available

    def list_overrides(
        self, therapist_id: UUID, override_date: date
    ) -> list[AvailabilityOverride]:
        """Return active overrides for a date."""
        return self.repository.list_overrides(therapist_id, override_date)

    def add_override(  # noqa: PLR0913
        self,
        therapist_id: UUID,
        override_date: date,
        override_type: str,
        start_time: time | None = None,
        end_time: time | None = None,
        reason: str | None = None,
    ) -> SessionResult[AvailabilityOverride]:
        """Record a date-specific exception to the weekly windows."""
        if override_type not in {OVERRIDE_UNAVAILABLE, OVERRIDE_CUSTOM_HOURS}:
            return SessionResult.fail(
                ErrorKind.INVALID_INPUT, f"Unknown override type: {override_type}"
            )
        if override_type == OVERRIDE_CUSTOM_HOURS and (
            start_time is None or end_time is None or start_time >= end_time
        ):
            return SessionResult.fail(
                ErrorKind.INVALID_INPUT,
                "Custom hours need a start time before the end time",
            )
        try:
            override = self.repository.create_override(
                therapist_id=therapist_id,
                override_date=override_date,
                override_type=override_type,
                start_time=start_time,
                end_time=end_time,
                reason=reason,
            )
        except Exception:
            _logger.exception(
                "Failed to add override: therapist_id=%s date=%s",
                therapist_id,
                override_date,
            )
            return SessionResult.fail(ErrorKind.INTERNAL, "Failed to add override")
        _logger.info(
            "Override added: therapist_id=%s date=%s type=%s",
            therapist_id,
            override_date,
            override_type,
        )
        return SessionResult.ok(override)

    def remove_override(self, override_id: UUID) -> SessionResult[None]:
        """Deactivate an override."""
        try:
            removed = self.repository.deactivate_override(override_id)
        except Exception:
            _logger.exception("Failed to remove override: id=%s", override_id)
            return SessionResult.fail(ErrorKind.INTERNAL, "Failed to remove override")
        if not removed:
            return SessionResult.fail(ErrorKind.NOT_FOUND, "Override not found")
        return SessionResult.ok()

    def _check_availability(
        self,
        therapist_id: UUID,
        start: datetime,
        end: datetime,
        exclude_session_id: UUID | None,
    ) -> bool:
        if end <= start:
            return False
        local_start = start.astimezone(self.tz)
        local_end = end.astimezone(self.tz)
        day = local_start.date()
        if local_end.date() != day:
            return False

        windows = self.get_windows(therapist_id, day_of_week(day))
        if not any(
            window.start_time <= local_start.time()
            and local_end.time() <= window.end_time
            for window in windows
        ):
            return False

        overrides = self.repository.list_overrides(therapist_id, day)
        if not _fits_overrides(local_start.time(), local_end.time(), overrides):
            return False

        booked = [
            session
            for session in self._booked_sessions(therapist_id, day)
            if session.id != exclude_session_id
        ]
        return not any(
            _overlaps(start, end, session.scheduled_at, session.ends_at)
            for session in booked
        )

    def _available_slots(
        self, therapist_id: UUID, day: date, duration: int
    ) -> list[TimeSlot]:
        overrides = self.repository.list_overrides(therapist_id, day)
        if any(item.override_type == OVERRIDE_UNAVAILABLE for item in overrides):
            return []

        step = timedelta(minutes=duration)
        candidates: dict[datetime, TimeSlot] = {}
        for window in self.get_windows(therapist_id, day_of_week(day)):
            cursor = datetime.combine(day, window.start_time, tzinfo=self.tz)
            window_end = datetime.combine(day, window.end_time, tzinfo=self.tz)
            while cursor + step <= window_end:
                candidates[cursor] = TimeSlot(
                    date=day,
                    start=cursor,
                    end=cursor + step,
                    duration_minutes=duration,
                )
                cursor += step

        booked = self._booked_sessions(therapist_id, day)
        now = self.clock()
        slots = []
        for start in sorted(candidates):
            slot = candidates[start]
            if slot.start <= now:
                continue
            if not _fits_overrides(slot.start.time(), slot.end.time(), overrides):
                continue
            if any(
                _overlaps(slot.start, slot.end, session.scheduled_at, session.ends_at)
                for session in booked
            ):
                continue
            slots.append(slot)
        return slots

    def _booked_sessions(self, therapist_id: UUID, day: date) -> list[SessionRecord]:
        day_start = datetime.combine(day, time.min, tzinfo=self.tz)
        day_end = day_start + timedelta(days=1)
        return self.booking_lookup.list_sessions(
            SessionFilters(
                therapist_id=therapist_id,
                statuses=sorted(BLOCKING_STATUSES),
                starts_after=day_start.astimezone(UTC),
                starts_before=day_end.astimezone(UTC),
                ascending=True,
            )
        )


def _overlaps(
    start: datetime, end: datetime, other_start: datetime, other_end: datetime
) -> bool:
    return start < other_end and other_start < end


def _fits_overrides(
    start: time, end: time, overrides: list[AvailabilityOverride]
) -> bool:
    for override in overrides:
        if override.override_type == OVERRIDE_UNAVAILABLE:
            return False
        if override.override_type == OVERRIDE_CUSTOM_HOURS:
            if override.start_time is None or override.end_time is None:
                continue
            if start < override.start_time or end > override.end_time:
                return False
    return True
