"""Supabase repository for therapist availability."""

from dataclasses import dataclass
from datetime import date, time
from uuid import UUID

from supabase import Client

from therapy_sessions.domain.availability import (
    AvailabilityOverride,
    AvailabilityWindow,
)
from therapy_sessions.services.availability import AvailabilityRepository


@dataclass
class SupabaseAvailabilityRepository(AvailabilityRepository):
    """Supabase implementation for weekly windows and overrides."""

    client: Client

    def list_windows(
        self, therapist_id: UUID, day_of_week: int
    ) -> list[AvailabilityWindow]:
        """Return enabled weekly windows for a weekday."""
        response = (
            self.client.table("therapist_availability")
            .select("therapist_id, day_of_week, start_time, end_time, is_available")
            .eq("therapist_id", str(therapist_id))
            .eq("day_of_week", day_of_week)
            .eq("is_available", True)
            .order("start_time", desc=False)
            .execute()
        )
        return [
            AvailabilityWindow(
                therapist_id=UUID(str(row["therapist_id"])),
                day_of_week=int(row["day_of_week"]),
                start_time=time.fromisoformat(str(row["start_time"])),
                end_time=time.fromisoformat(str(row["end_time"])),
                is_available=bool(row.get("is_available", True)),
            )
            for row in response.data or []
        ]

    def list_overrides(
        self, therapist_id: UUID, override_date: date
    ) -> list[AvailabilityOverride]:
        """Return active overrides for a date."""
        response = (
            self.client.table("availability_overrides")
            .select(
                "id, therapist_id, override_date, override_type, start_time, "
                "end_time, reason"
            )
            .eq("therapist_id", str(therapist_id))
            .eq("override_date", override_date.isoformat())
            .eq("is_active", True)
            .execute()
        )
        return [_parse_override(row) for row in response.data or []]

    def create_override(  # noqa: PLR0913
        self,
        therapist_id: UUID,
        override_date: date,
        override_type: str,
        start_time: time | None,
        end_time: time | None,
        reason: str | None,
    ) -> AvailabilityOverride:
        """Insert an override row and return it."""
        response = (
            self.client.table("availability_overrides")
            .insert(
                {
                    "therapist_id": str(therapist_id),
                    "override_date": override_date.isoformat(),
                    "override_type": override_type,
                    "start_time": start_time.isoformat() if start_time else None,
                    "end_time": end_time.isoformat() if end_time else None,
                    "reason": reason,
                    "is_active": True,
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create availability override")
        return _parse_override(response.data[0])

    def deactivate_override(self, override_id: UUID) -> bool:
        """Soft-delete an override."""
        response = (
            self.client.table("availability_overrides")
            .update({"is_active": False})
            .eq("id", str(override_id))
            .execute()
        )
        return bool(response.data)


def _parse_time(raw: object) -> time | None:
    if isinstance(raw, str) and raw:
        return time.fromisoformat(raw)
    return None


def _parse_override(row: dict[str, object]) -> AvailabilityOverride:
    return AvailabilityOverride(
        id=UUID(str(row["id"])),
        therapist_id=UUID(str(row["therapist_id"])),
        override_date=date.fromisoformat(str(row["override_date"])),
        override_type=str(row["override_type"]),
        start_time=_parse_time(row.get("start_time")),
        end_time=_parse_time(row.get("end_time")),
        reason=row.get("reason"),
    )
