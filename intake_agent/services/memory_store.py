"""In-memory record store for users, doctors, appointments and chat data."""

import asyncio
import logging
import uuid
from collections import Counter
from contextlib import asynccontextmanager
from datetime import date, datetime, timezone
from typing import Optional, List

from ..models import (
    Appointment,
    AppointmentCreate,
    ChatMessage,
    ChatSession,
    ChatSessionCreate,
    Doctor,
    DoctorCreate,
    MessageSender,
    UrgencyLevel,
    User,
    UserCreate,
)

logger = logging.getLogger(__name__)


SAMPLE_DOCTORS = [
    DoctorCreate(
        name="Dr. Sarah Chen",
        specialty="Brain Tumor Surgery",
        rating=5,
        review_count=127,
        location="San Francisco, CA",
    ),
    DoctorCreate(
        name="Dr. Michael Rodriguez",
        specialty="Spinal Surgery",
        rating=5,
        review_count=94,
        location="San Francisco, CA",
    ),
    DoctorCreate(
        name="Dr. Emily Johnson",
        specialty="Pediatric Neurosurgery",
        rating=5,
        review_count=156,
        location="San Francisco, CA",
    ),
]


def _new_id() -> str:
    return str(uuid.uuid4())


class MemoryStore:
    """
    Process-lifetime storage for all intake records.

    Construct once at start-up, call seed(), and close() on shutdown.
    Nothing is persisted across restarts.
    """

    def __init__(self):
        """Initialize empty collections."""
        self.users: dict[str, User] = {}
        self.doctors: dict[str, Doctor] = {}
        self.appointments: dict[str, Appointment] = {}
        self.chat_sessions: dict[str, ChatSession] = {}
        self.chat_messages: dict[str, ChatMessage] = {}
        self._session_locks: dict[str, asyncio.Lock] = {}
        self._lock_holders: dict[str, int] = {}
        self._seeded = False

    async def seed(self, doctors: Optional[List[DoctorCreate]] = None) -> None:
        """Populate the doctor directory. Runs only once per store."""
        if self._seeded:
            return
        for doctor in doctors if doctors is not None else SAMPLE_DOCTORS:
            await self.create_doctor(doctor)
        self._seeded = True
        logger.info(f"Store seeded with {len(self.doctors)} doctors")

    async def close(self) -> None:
        """Drop all records."""
        self.users.clear()
        self.doctors.clear()
        self.appointments.clear()
        self.chat_sessions.clear()
        self.chat_messages.clear()
        self._session_locks.clear()
        self._lock_holders.clear()
        self._seeded = False
        logger.info("Store closed")

    @asynccontextmanager
    async def session_lock(self, session_id: str):
        """
        Serialize every mutation of one chat session.

        The lock lives only while some coroutine holds or awaits it, so
        unknown or finished session ids leave nothing behind.
        """
        lock = self._session_locks.get(session_id)
        if lock is None:
            lock = self._session_locks[session_id] = asyncio.Lock()
        self._lock_holders[session_id] = self._lock_holders.get(session_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            remaining = self._lock_holders.get(session_id, 1) - 1
            if remaining:
                self._lock_holders[session_id] = remaining
            else:
                self._lock_holders.pop(session_id, None)
                self._session_locks.pop(session_id, None)

    # ==================== User Operations ====================

    async def get_user(self, user_id: str) -> Optional[User]:
        """Get user by ID."""
        return self.users.get(user_id)

    async def get_user_by_username(self, username: str) -> Optional[User]:
        """Get user by username."""
        for user in self.users.values():
            if user.username == username:
                return user
        return None

    async def create_user(self, data: UserCreate) -> User:
        """Create a user."""
        user = User(id=_new_id(), **data.model_dump())
        self.users[user.id] = user
        return user

    # ==================== Doctor Operations ====================

    async def get_doctors(self) -> List[Doctor]:
        """Get all doctors."""
        return list(self.doctors.values())

    async def get_doctors_by_location(self, location: str) -> List[Doctor]:
        """Get doctors whose location contains the given text, ignoring case."""
        needle = location.lower()
        return [d for d in self.doctors.values() if needle in d.location.lower()]

    async def create_doctor(self, data: DoctorCreate) -> Doctor:
        """Add a doctor to the directory."""
        doctor = Doctor(id=_new_id(), **data.model_dump())
        self.doctors[doctor.id] = doctor
        return doctor

    # ==================== Appointment Operations ====================

    async def get_appointments(self) -> List[Appointment]:
        """Get all appointments."""
        return list(self.appointments.values())

    async def get_appointment(self, appointment_id: str) -> Optional[Appointment]:
        """Get a specific appointment by ID."""
        return self.appointments.get(appointment_id)

    async def get_appointments_by_date(self, day: date) -> List[Appointment]:
        """Get appointments falling on the given calendar day."""
        if isinstance(day, datetime):
            day = day.date()
        return [
            apt for apt in self.appointments.values()
            if apt.appointment_date is not None and apt.appointment_date.date() == day
        ]

    async def create_appointment(self, data: AppointmentCreate) -> Appointment:
        """Create a new appointment."""
        fields = data.model_dump(exclude={"session_id"})
        appointment = Appointment(id=_new_id(), created_at=datetime.now(timezone.utc), **fields)
        self.appointments[appointment.id] = appointment
        logger.info(f"Created appointment {appointment.id} ({appointment.urgency})")
        return appointment

    async def update_appointment_status(
        self,
        appointment_id: str,
        status: str
    ) -> Optional[Appointment]:
        """Replace an appointment's status. The value is stored as given."""
        appointment = self.appointments.get(appointment_id)
        if appointment is None:
            return None
        appointment.status = status
        return appointment

    # ==================== Chat Session Operations ====================

    async def create_chat_session(self, data: ChatSessionCreate) -> ChatSession:
        """Open a new chat session."""
        session = ChatSession(id=_new_id(), created_at=datetime.now(timezone.utc), **data.model_dump())
        self.chat_sessions[session.id] = session
        logger.info(f"Created chat session {session.id}")
        return session

    async def get_chat_session(self, session_id: str) -> Optional[ChatSession]:
        """Get a chat session by ID."""
        return self.chat_sessions.get(session_id)

    async def list_chat_sessions(self) -> List[ChatSession]:
        """Get all chat sessions."""
        return list(self.chat_sessions.values())

    async def update_chat_session(self, session_id: str, updates: dict) -> Optional[ChatSession]:
        """Merge the given fields into a chat session."""
        session = self.chat_sessions.get(session_id)
        if session is None:
            return None
        updated = session.model_copy(update=updates)
        self.chat_sessions[session_id] = updated
        return updated

    # ==================== Chat Message Operations ====================

    async def get_chat_messages(self, session_id: str) -> List[ChatMessage]:
        """Get a session's messages, oldest first."""
        messages = [m for m in self.chat_messages.values() if m.session_id == session_id]
        return sorted(messages, key=lambda m: m.timestamp)

    async def create_chat_message(
        self,
        session_id: str,
        content: str,
        sender: MessageSender,
    ) -> ChatMessage:
        """Append a message to a session."""
        message = ChatMessage(
            id=_new_id(),
            session_id=session_id,
            content=content,
            sender=sender,
            timestamp=datetime.now(timezone.utc),
        )
        self.chat_messages[message.id] = message
        return message

    # ==================== Admin Operations ====================

    async def get_stats(self, today: Optional[date] = None) -> dict:
        """Counters for the admin dashboard."""
        today = today or datetime.now(timezone.utc).date()
        appointments = list(self.appointments.values())
        urgent_levels = {UrgencyLevel.URGENT.value, UrgencyLevel.EMERGENCY.value}

        return {
            "totalAppointments": len(appointments),
            "todaysChats": sum(
                1 for s in self.chat_sessions.values() if s.created_at.date() == today
            ),
            "todaysAppointments": sum(
                1 for a in appointments
                if a.appointment_date is not None and a.appointment_date.date() == today
            ),
            "urgentCases": sum(1 for a in appointments if a.urgency in urgent_levels),
            "byStatus": dict(Counter(a.status for a in appointments)),
            "byUrgency": dict(Counter(a.urgency for a in appointments)),
        }

    async def get_calendar(self, year: int, month: int) -> dict[str, list]:
        """Appointments in a month grouped by day (YYYY-MM-DD)."""
        days: dict[str, list] = {}
        dated = sorted(
            (a for a in self.appointments.values() if a.appointment_date is not None),
            key=lambda a: a.appointment_date.replace(tzinfo=None),
        )
        for apt in dated:
            when = apt.appointment_date
            if when.year == year and when.month == month:
                days.setdefault(when.date().isoformat(), []).append(apt.to_calendar_entry())
        return days
