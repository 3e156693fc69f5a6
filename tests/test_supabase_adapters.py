"""Tests for Supabase adapter implementations."""

from dataclasses import dataclass, field
from datetime import UTC, date, datetime, time
from uuid import uuid4

from therapy_sessions.adapters.supabase_availability_repository import (
    SupabaseAvailabilityRepository,
)
from therapy_sessions.adapters.supabase_history_repository import (
    SupabaseSessionHistoryRepository,
)
from therapy_sessions.adapters.supabase_note_repository import (
    SupabaseSessionNoteRepository,
)
from therapy_sessions.adapters.supabase_session_repository import (
    SupabaseSessionRepository,
)
from therapy_sessions.domain.availability import OVERRIDE_CUSTOM_HOURS
from therapy_sessions.domain.sessions import (
    STATUS_CANCELLED,
    BookingRequest,
    SessionFilters,
)
from tests.conftest import PATIENT_ID, THERAPIST_ID


@dataclass
class FakeResponse:
    data: list[dict[str, object]] | None


@dataclass
class FakeTable:
    name: str
    response_queue: dict[str, list[list[dict[str, object]]]] = field(
        default_factory=lambda: {"select": [], "insert": [], "update": [], "delete": []}
    )
    last_payload: object | None = None
    last_columns: str | None = None
    last_filters: list[tuple[str, object]] = field(default_factory=list)
    last_order: tuple[str, bool] | None = None
    last_limit: int | None = None

    def queue(self, action: str, data: list[dict[str, object]]) -> None:
        self.response_queue[action].append(data)

    def select(self, columns: str = "*") -> "FakeTable":
        self._action = "select"
        self.last_columns = columns
        self.last_filters = []
        return self

    def insert(self, payload) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "insert"
        self.last_payload = payload
        return self

    def update(self, payload) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "update"
        self.last_payload = payload
        self.last_filters = []
        return self

    def eq(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((column, value))
        return self

    def in_(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((column, value))
        return self

    def gte(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((f"{column}>=", value))
        return self

    def lt(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((f"{column}<", value))
        return self

    def limit(self, count: int) -> "FakeTable":
        self.last_limit = count
        return self

    def order(self, column: str, desc: bool = False) -> "FakeTable":
        self.last_order = (column, desc)
        return self

    def execute(self) -> FakeResponse:
        action = getattr(self, "_action", "select")
        queue = self.response_queue.get(action, [])
        data = queue.pop(0) if queue else []
        return FakeResponse(data=data)


@dataclass
class FakeSupabaseClient:
    tables: dict[str, FakeTable] = field(default_factory=dict)

    def table(self, name: str) -> FakeTable:
        if name not in self.tables:
            self.tables[name] = FakeTable(name=name)
        return self.tables[name]


def _session_row(**overrides: object) -> dict[str, object]:
    row: dict[str, object] = {
        "id": str(uuid4()),
        "patient_id": str(PATIENT_ID),
        "therapist_id": str(THERAPIST_ID),
        "scheduled_at": "2026-03-03T09:00:00+00:00",
        "duration_minutes": 50,
        "session_type": "video",
        "status": "scheduled",
        "amount_paid": "15000.00",
        "currency": "NGN",
    }
    row.update(overrides)
    return row


def test_supabase_session_repository_create_and_get() -> None:
    client = FakeSupabaseClient()
    sessions_table = client.table("sessions")
    row = _session_row()
    sessions_table.queue("insert", [row])
    sessions_table.queue("select", [row])
    repository = SupabaseSessionRepository(client)

    created = repository.create_session(
        BookingRequest(
            patient_id=PATIENT_ID,
            therapist_id=THERAPIST_ID,
            scheduled_at=datetime(2026, 3, 3, 9, 0, tzinfo=UTC),
            duration_minutes=50,
        )
    )
    fetched = repository.get_session(created.id)

    assert isinstance(sessions_table.last_payload, dict)
    assert sessions_table.last_payload["status"] == "scheduled"
    assert sessions_table.last_payload["scheduled_at"] == "2026-03-03T09:00:00+00:00"
    assert created.amount_paid == 15000.0
    assert created.duration_minutes == 50
    assert fetched == created
    assert ("id", row["id"]) in sessions_table.last_filters


def test_supabase_session_repository_detail_parses_participants() -> None:
    client = FakeSupabaseClient()
    sessions_table = client.table("sessions")
    sessions_table.queue(
        "select",
        [
            _session_row(
                patient={"id": str(PATIENT_ID), "full_name": "Tunde", "email": None},
                therapist=None,
            )
        ],
    )
    repository = SupabaseSessionRepository(client)

    detail = repository.get_session_detail(uuid4())
    missing = repository.get_session_detail(uuid4())

    assert detail is not None
    assert detail.patient_name == "Tunde"
    assert detail.therapist is None
    assert missing is None
    assert "patient:patient_id" in (sessions_table.last_columns or "")


def test_supabase_session_repository_list_applies_filters() -> None:
    client = FakeSupabaseClient()
    sessions_table = client.table("sessions")
    sessions_table.queue("select", [_session_row(), _session_row()])
    repository = SupabaseSessionRepository(client)
    after = datetime(2026, 3, 2, tzinfo=UTC)

    sessions = repository.list_sessions(
        SessionFilters(
            therapist_id=THERAPIST_ID,
            statuses=["scheduled", "in_progress"],
            starts_after=after,
            ascending=True,
            limit=5,
        )
    )

    assert len(sessions) == 2
    assert sessions_table.last_filters == [
        ("therapist_id", str(THERAPIST_ID)),
        ("status", ["scheduled", "in_progress"]),
        ("scheduled_at>=", after.isoformat()),
    ]
    assert sessions_table.last_order == ("scheduled_at", False)
    assert sessions_table.last_limit == 5


def test_supabase_session_repository_update_serializes_values() -> None:
    client = FakeSupabaseClient()
    sessions_table = client.table("sessions")
    repository = SupabaseSessionRepository(client)
    session_id = uuid4()
    cancelled_at = datetime(2026, 3, 2, 8, 0, tzinfo=UTC)

    repository.update_session(
        session_id,
        {
            "status": STATUS_CANCELLED,
            "cancelled_by": PATIENT_ID,
            "cancelled_at": cancelled_at,
        },
    )

    payload = sessions_table.last_payload
    assert isinstance(payload, dict)
    assert payload["cancelled_by"] == str(PATIENT_ID)
    assert payload["cancelled_at"] == cancelled_at.isoformat()
    assert "updated_at" in payload
    assert sessions_table.last_filters == [("id", str(session_id))]


def test_supabase_availability_repository_windows_and_overrides() -> None:
    client = FakeSupabaseClient()
    windows_table = client.table("therapist_availability")
    overrides_table = client.table("availability_overrides")
    override_id = str(uuid4())
    windows_table.queue(
        "select",
        [
            {
                "therapist_id": str(THERAPIST_ID),
                "day_of_week": 2,
                "start_time": "09:00:00",
                "end_time": "17:00:00",
                "is_available": True,
            }
        ],
    )
    override_row = {
        "id": override_id,
        "therapist_id": str(THERAPIST_ID),
        "override_date": "2026-03-03",
        "override_type": OVERRIDE_CUSTOM_HOURS,
        "start_time": "10:00:00",
        "end_time": "12:00:00",
        "reason": None,
    }
    overrides_table.queue("insert", [override_row])
    overrides_table.queue("select", [override_row])
    repository = SupabaseAvailabilityRepository(client)

    windows = repository.list_windows(THERAPIST_ID, 2)
    created = repository.create_override(
        THERAPIST_ID, date(2026, 3, 3), OVERRIDE_CUSTOM_HOURS, time(10), time(12), None
    )
    listed = repository.list_overrides(THERAPIST_ID, date(2026, 3, 3))

    assert windows[0].start_time == time(9)
    assert windows[0].end_time == time(17)
    assert created.start_time == time(10)
    assert listed == [created]
    assert ("is_active", True) in overrides_table.last_filters


def test_supabase_availability_repository_deactivate_override() -> None:
    client = FakeSupabaseClient()
    overrides_table = client.table("availability_overrides")
    overrides_table.queue("update", [{"id": "override"}])
    repository = SupabaseAvailabilityRepository(client)

    assert repository.deactivate_override(uuid4()) is True
    assert overrides_table.last_payload == {"is_active": False}
    assert repository.deactivate_override(uuid4()) is False


def test_supabase_note_repository() -> None:
    client = FakeSupabaseClient()
    notes_table = client.table("session_notes")
    session_id = uuid4()
    row = {
        "id": str(uuid4()),
        "session_id": str(session_id),
        "author_id": str(THERAPIST_ID),
        "note_type": "soap",
        "content": "## PLAN\nWeekly",
        "soap_json": {"plan": "Weekly"},
        "created_at": "2026-03-02T08:00:00+00:00",
    }
    notes_table.queue("insert", [row])
    notes_table.queue("select", [row])
    repository = SupabaseSessionNoteRepository(client)

    created = repository.create_note(
        session_id, THERAPIST_ID, "soap", "## PLAN\nWeekly", {"plan": "Weekly"}
    )
    listed = repository.list_notes(session_id)

    assert created.soap == {"plan": "Weekly"}
    assert listed == [created]
    assert notes_table.last_order == ("created_at", True)


def test_supabase_history_repository() -> None:
    client = FakeSupabaseClient()
    history_table = client.table("session_history")
    session_id = uuid4()
    history_table.queue("select", [{"event_type": "cancelled"}])
    repository = SupabaseSessionHistoryRepository(client)

    repository.create_event(
        session_id=session_id,
        actor_id=PATIENT_ID,
        event_type="cancelled",
        reason="Travel",
        before={"status": "scheduled"},
        after={"status": "cancelled"},
    )
    events = repository.list_events(session_id)

    assert isinstance(history_table.last_payload, dict)
    assert history_table.last_payload["before_json"] == {"status": "scheduled"}
    assert events == [{"event_type": "cancelled"}]
    assert history_table.last_order == ("created_at", False)
