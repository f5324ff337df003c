"""Data models package."""

from .appointment import (
    Appointment,
    AppointmentCreate,
    AppointmentStatus,
    Doctor,
    DoctorCreate,
    TimeSlot,
    UrgencyLevel,
)
from .user import User, UserCreate
from .conversation import (
    AssistantReply,
    ChatMessage,
    ChatSession,
    ChatSessionCreate,
    ExtractedInfo,
    IntakeStep,
    MessageSender,
    SessionStatus,
)

__all__ = [
    "Appointment",
    "AppointmentCreate",
    "AppointmentStatus",
    "Doctor",
    "DoctorCreate",
    "TimeSlot",
    "UrgencyLevel",
    "User",
    "UserCreate",
    "AssistantReply",
    "ChatMessage",
    "ChatSession",
    "ChatSessionCreate",
    "ExtractedInfo",
    "IntakeStep",
    "MessageSender",
    "SessionStatus",
]
