"""Appointment and doctor data models."""

from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field, field_validator

from .base import ApiModel


class UrgencyLevel(str, Enum):
    """Triage classification for a session or appointment."""
    EMERGENCY = "emergency"
    URGENT = "urgent"
    ROUTINE = "routine"


def normalize_urgency(value):
    """Lower-case urgency input; blank strings count as absent."""
    if isinstance(value, str):
        value = value.strip().lower()
        return value or None
    return value


class AppointmentStatus(str, Enum):
    """Appointment statuses accepted on creation."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class TimeSlot(BaseModel):
    """Represents an available time slot."""
    date: str = Field(..., description="Date in YYYY-MM-DD format")
    time: str = Field(..., description="Display time, e.g. 10:30 AM")
    duration_minutes: int = Field(default=30, description="Slot duration in minutes")


class DoctorCreate(ApiModel):
    """Fields accepted when adding a doctor to the directory."""
    name: str = Field(..., min_length=1)
    specialty: str = Field(..., min_length=1)
    rating: int = Field(default=5, ge=1, le=5)
    review_count: int = Field(default=0, ge=0)
    location: str = Field(..., min_length=1)


class Doctor(DoctorCreate):
    """A doctor listed in the department directory."""
    id: str

    def to_prompt_line(self) -> str:
        """One-line description used in the assistant instructions."""
        return (
            f"- {self.name}, {self.specialty} ({self.location}), "
            f"rated {self.rating}/5 from {self.review_count} reviews"
        )


class AppointmentCreate(ApiModel):
    """Request body for creating an appointment."""
    patient_name: str = Field(..., min_length=1)
    patient_email: Optional[str] = None
    patient_phone: Optional[str] = None
    location: str = Field(..., min_length=1)
    urgency: UrgencyLevel
    doctor_id: Optional[str] = None
    appointment_date: Optional[datetime] = None
    status: AppointmentStatus = AppointmentStatus.PENDING
    notes: Optional[str] = None
    # Not stored on the appointment; links the chat session that produced it.
    session_id: Optional[str] = None

    @field_validator("urgency", mode="before")
    @classmethod
    def lower_urgency(cls, value):
        return normalize_urgency(value)


class Appointment(ApiModel):
    """Represents a stored appointment."""
    id: str
    patient_name: str
    patient_email: Optional[str] = None
    patient_phone: Optional[str] = None
    location: str
    urgency: UrgencyLevel
    doctor_id: Optional[str] = None
    appointment_date: Optional[datetime] = None
    # Free text: status updates are stored as given.
    status: str = AppointmentStatus.PENDING.value
    notes: Optional[str] = None
    created_at: datetime

    def to_calendar_entry(self) -> dict:
        """Compact form used by the admin calendar."""
        return {
            "id": self.id,
            "patientName": self.patient_name,
            "urgency": self.urgency,
            "status": self.status,
            "appointmentDate": self.appointment_date.isoformat() if self.appointment_date else None,
        }
