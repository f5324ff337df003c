"""Tests for the in-memory record store."""

import asyncio
from datetime import date, datetime, timedelta, timezone

import pytest

from intake_agent.models import (
    AppointmentCreate,
    ChatSessionCreate,
    DoctorCreate,
    MessageSender,
    UserCreate,
)
from intake_agent.services.memory_store import SAMPLE_DOCTORS, MemoryStore


def make_appointment(**overrides):
    fields = {
        "patient_name": "Jane Doe",
        "location": "Brooklyn, NY",
        "urgency": "routine",
    }
    fields.update(overrides)
    return AppointmentCreate(**fields)


async def enter_and_leave(store, session_id):
    async with store.session_lock(session_id):
        pass


class TestLifecycle:
    """Tests for seeding and closing the store."""

    async def test_seed_adds_sample_doctors(self, store):
        """Test that seeding fills the doctor directory."""
        await store.seed()
        doctors = await store.get_doctors()
        assert len(doctors) == len(SAMPLE_DOCTORS)
        assert {d.name for d in doctors} == {d.name for d in SAMPLE_DOCTORS}

    async def test_seed_runs_once(self, store):
        """Test that a second seed does not duplicate doctors."""
        await store.seed()
        await store.seed()
        assert len(await store.get_doctors()) == len(SAMPLE_DOCTORS)

    async def test_close_clears_everything(self, store):
        """Test that closing drops all records."""
        await store.seed()
        session = await store.create_chat_session(ChatSessionCreate())
        await store.create_chat_message(session.id, "hi", MessageSender.USER)
        await store.create_appointment(make_appointment())

        await store.close()

        assert await store.get_doctors() == []
        assert await store.get_appointments() == []
        assert await store.get_chat_session(session.id) is None
        assert await store.get_chat_messages(session.id) == []

    async def test_instances_are_isolated(self):
        """Test that two stores never share records."""
        first, second = MemoryStore(), MemoryStore()
        await first.create_appointment(make_appointment())
        assert await second.get_appointments() == []


class TestIdentifiers:
    """Tests for generated identifiers and timestamps."""

    async def test_ids_are_unique_and_non_empty(self, store):
        """Test that repeated creations yield distinct identifiers."""
        ids = set()
        for _ in range(50):
            appointment = await store.create_appointment(make_appointment())
            session = await store.create_chat_session(ChatSessionCreate())
            message = await store.create_chat_message(session.id, "hello", MessageSender.USER)
            for record_id in (appointment.id, session.id, message.id):
                assert record_id
                ids.add(record_id)
        assert len(ids) == 150

    async def test_created_at_is_server_assigned(self, store):
        """Test that a client-supplied createdAt is ignored."""
        payload = {
            "patientName": "Jane Doe",
            "location": "Queens, NY",
            "urgency": "urgent",
            "createdAt": "1999-01-01T00:00:00",
        }
        before = datetime.now(timezone.utc)
        appointment = await store.create_appointment(AppointmentCreate.model_validate(payload))
        assert appointment.created_at >= before


class TestUsers:
    """Tests for user operations."""

    async def test_create_and_lookup(self, store):
        """Test lookup by id and by username."""
        user = await store.create_user(UserCreate(username="frontdesk", password="pw"))
        assert await store.get_user(user.id) == user
        assert await store.get_user_by_username("frontdesk") == user
        assert await store.get_user_by_username("nobody") is None


class TestDoctors:
    """Tests for doctor operations."""

    @pytest.mark.parametrize("query", ["francisco", "SAN", "San Francisco, CA", "ca"])
    async def test_location_filter_is_case_insensitive_substring(self, store, query):
        """Test that location matching ignores case and matches substrings."""
        await store.seed()
        doctors = await store.get_doctors_by_location(query)
        assert len(doctors) == 3

    async def test_location_filter_excludes_other_cities(self, store):
        """Test that non-matching locations are filtered out."""
        await store.seed()
        await store.create_doctor(DoctorCreate(
            name="Dr. Ana Ruiz", specialty="Neuro-oncology", location="New York, NY"
        ))
        doctors = await store.get_doctors_by_location("new york")
        assert [d.name for d in doctors] == ["Dr. Ana Ruiz"]
        assert await store.get_doctors_by_location("boston") == []

    async def test_doctor_defaults(self, store):
        """Test default rating and review count."""
        doctor = await store.create_doctor(DoctorCreate(
            name="Dr. New", specialty="Spine", location="Newark, NJ"
        ))
        assert doctor.rating == 5
        assert doctor.review_count == 0


class TestAppointments:
    """Tests for appointment operations."""

    async def test_create_defaults_to_pending(self, store):
        """Test that new appointments start pending."""
        appointment = await store.create_appointment(make_appointment())
        assert appointment.status == "pending"
        assert await store.get_appointment(appointment.id) == appointment

    async def test_update_status(self, store):
        """Test that status is replaced in place."""
        appointment = await store.create_appointment(make_appointment())
        updated = await store.update_appointment_status(appointment.id, "confirmed")
        assert updated.status == "confirmed"
        assert (await store.get_appointment(appointment.id)).status == "confirmed"

    async def test_update_status_accepts_any_value(self, store):
        """Test that unrecognised statuses are stored as given."""
        appointment = await store.create_appointment(make_appointment())
        updated = await store.update_appointment_status(appointment.id, "rescheduled")
        assert updated.status == "rescheduled"

    async def test_update_status_missing(self, store):
        """Test that unknown ids return None and leave records alone."""
        appointment = await store.create_appointment(make_appointment())
        assert await store.update_appointment_status("missing", "cancelled") is None
        assert (await store.get_appointment(appointment.id)).status == "pending"

    async def test_filter_by_date_ignores_time_of_day(self, store):
        """Test that every appointment on the day matches regardless of time."""
        morning = await store.create_appointment(make_appointment(
            appointment_date=datetime(2025, 3, 10, 0, 0)
        ))
        evening = await store.create_appointment(make_appointment(
            appointment_date=datetime(2025, 3, 10, 23, 59)
        ))
        await store.create_appointment(make_appointment(appointment_date=datetime(2025, 3, 11, 9, 0)))
        await store.create_appointment(make_appointment())

        found = await store.get_appointments_by_date(date(2025, 3, 10))
        assert {a.id for a in found} == {morning.id, evening.id}

    async def test_filter_by_date_across_boundaries(self, store):
        """Test month and year boundaries do not leak into neighbouring days."""
        new_years_eve = await store.create_appointment(make_appointment(
            appointment_date=datetime(2024, 12, 31, 23, 30)
        ))
        new_years_day = await store.create_appointment(make_appointment(
            appointment_date=datetime(2025, 1, 1, 0, 15)
        ))
        end_of_month = await store.create_appointment(make_appointment(
            appointment_date=datetime(2025, 1, 31, 16, 0)
        ))
        start_of_month = await store.create_appointment(make_appointment(
            appointment_date=datetime(2025, 2, 1, 8, 0)
        ))

        assert [a.id for a in await store.get_appointments_by_date(date(2025, 1, 1))] == [new_years_day.id]
        assert [a.id for a in await store.get_appointments_by_date(date(2024, 12, 31))] == [new_years_eve.id]
        assert [a.id for a in await store.get_appointments_by_date(date(2025, 1, 31))] == [end_of_month.id]
        assert [a.id for a in await store.get_appointments_by_date(date(2025, 2, 1))] == [start_of_month.id]
        assert await store.get_appointments_by_date(date(2026, 1, 1)) == []

    async def test_filter_by_date_accepts_datetime(self, store):
        """Test that a datetime argument is reduced to its calendar day."""
        appointment = await store.create_appointment(make_appointment(
            appointment_date=datetime(2025, 6, 2, 14, 0)
        ))
        found = await store.get_appointments_by_date(datetime(2025, 6, 2, 3, 0))
        assert [a.id for a in found] == [appointment.id]


class TestChat:
    """Tests for chat session and message operations."""

    async def test_session_defaults(self, store):
        """Test that sessions start active with no gathered fields."""
        session = await store.create_chat_session(ChatSessionCreate())
        assert session.status == "active"
        assert session.location is None
        assert session.urgency is None

    async def test_update_session_merges_fields(self, store):
        """Test that only provided fields change."""
        session = await store.create_chat_session(ChatSessionCreate(patient_name="Jane"))
        updated = await store.update_chat_session(session.id, {"location": "Bronx, NY"})
        assert updated.location == "Bronx, NY"
        assert updated.patient_name == "Jane"
        assert (await store.get_chat_session(session.id)).location == "Bronx, NY"

    async def test_update_missing_session(self, store):
        """Test that updating an unknown session returns None."""
        assert await store.update_chat_session("missing", {"status": "completed"}) is None

    async def test_messages_are_scoped_to_session(self, store):
        """Test that each session only lists its own messages."""
        first = await store.create_chat_session(ChatSessionCreate())
        second = await store.create_chat_session(ChatSessionCreate())
        await store.create_chat_message(first.id, "one", MessageSender.USER)
        await store.create_chat_message(second.id, "two", MessageSender.USER)

        messages = await store.get_chat_messages(first.id)
        assert [m.content for m in messages] == ["one"]

    async def test_messages_sorted_by_timestamp(self, store):
        """Test ordering follows timestamps, not insertion order."""
        session = await store.create_chat_session(ChatSessionCreate())
        created = [
            await store.create_chat_message(session.id, text, MessageSender.USER)
            for text in ("first", "second", "third")
        ]
        # Reverse the timestamps so insertion order disagrees with time order
        base = datetime(2025, 1, 1, 12, 0)
        for offset, message in enumerate(reversed(created)):
            store.chat_messages[message.id].timestamp = base + timedelta(seconds=offset)

        messages = await store.get_chat_messages(session.id)
        assert [m.content for m in messages] == ["third", "second", "first"]
        timestamps = [m.timestamp for m in messages]
        assert timestamps == sorted(timestamps)

    async def test_orphan_messages_are_accepted(self, store):
        """Test that messages for unknown sessions are stored as given."""
        message = await store.create_chat_message("no-such-session", "hi", MessageSender.USER)
        assert (await store.get_chat_messages("no-such-session")) == [message]

    async def test_session_lock_serializes_one_session(self, store):
        """Test that a second holder of the same session waits for the first."""
        order = []

        async def hold(name, session_id):
            async with store.session_lock(session_id):
                order.append(f"{name} in")
                await asyncio.sleep(0.01)
                order.append(f"{name} out")

        await asyncio.gather(hold("first", "a"), hold("second", "a"))
        assert order == ["first in", "first out", "second in", "second out"]

    async def test_session_lock_independent_across_sessions(self, store):
        """Test that different sessions do not block each other."""
        async with store.session_lock("a"):
            await asyncio.wait_for(enter_and_leave(store, "b"), timeout=1)

    async def test_session_lock_released_entries_are_dropped(self, store):
        """Test that locks are removed once nobody holds or awaits them."""
        async with store.session_lock("a"):
            assert "a" in store._session_locks
        assert store._session_locks == {}
        assert store._lock_holders == {}

    async def test_session_lock_kept_while_waiters_remain(self, store):
        """Test that the lock survives until the last waiter leaves."""
        first = store.session_lock("a")
        await first.__aenter__()
        waiter = asyncio.create_task(enter_and_leave(store, "a"))
        await asyncio.sleep(0)
        assert store._lock_holders["a"] == 2

        await first.__aexit__(None, None, None)
        assert "a" in store._session_locks
        await waiter
        assert store._session_locks == {}

    async def test_session_lock_dropped_after_error(self, store):
        """Test that an exception inside the block still releases the entry."""
        with pytest.raises(RuntimeError):
            async with store.session_lock("a"):
                raise RuntimeError("boom")
        assert store._session_locks == {}


class TestAdminAggregates:
    """Tests for dashboard statistics and the calendar."""

    async def test_stats(self, store):
        """Test dashboard counters."""
        today = datetime.now(timezone.utc)
        await store.create_chat_session(ChatSessionCreate())
        await store.create_appointment(make_appointment(urgency="emergency", appointment_date=today))
        await store.create_appointment(make_appointment(urgency="urgent"))
        routine = await store.create_appointment(make_appointment(urgency="routine"))
        await store.update_appointment_status(routine.id, "confirmed")

        stats = await store.get_stats(today.date())
        assert stats["totalAppointments"] == 3
        assert stats["todaysChats"] == 1
        assert stats["todaysAppointments"] == 1
        assert stats["urgentCases"] == 2
        assert stats["byStatus"] == {"pending": 2, "confirmed": 1}
        assert stats["byUrgency"] == {"emergency": 1, "urgent": 1, "routine": 1}

    async def test_calendar_groups_by_day(self, store):
        """Test that a month view groups appointments by day in time order."""
        late = await store.create_appointment(make_appointment(appointment_date=datetime(2025, 3, 10, 15, 0)))
        early = await store.create_appointment(make_appointment(appointment_date=datetime(2025, 3, 10, 9, 0)))
        await store.create_appointment(make_appointment(appointment_date=datetime(2025, 4, 1, 9, 0)))
        await store.create_appointment(make_appointment())

        days = await store.get_calendar(2025, 3)
        assert list(days) == ["2025-03-10"]
        assert [entry["id"] for entry in days["2025-03-10"]] == [early.id, late.id]
        assert days["2025-03-10"][0]["patientName"] == "Jane Doe"
