"""Chat session, message and assistant reply models."""

from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import Field, field_validator

from .appointment import UrgencyLevel, normalize_urgency
from .base import ApiModel


class MessageSender(str, Enum):
    """Who wrote a chat message."""
    USER = "user"
    ASSISTANT = "assistant"


class IntakeStep(str, Enum):
    """Stages of the intake workflow the assistant may move the session to."""
    GREETING = "greeting"
    LOCATION = "location"
    URGENCY = "urgency"
    SCHEDULING = "scheduling"
    IMAGING = "imaging"
    DOCTOR_INFO = "doctor_info"
    CONTACT = "contact"
    APPOINTMENT = "appointment"
    COMPLETE = "complete"


class SessionStatus(str, Enum):
    """Lifecycle statuses set by the server rather than the assistant."""
    ACTIVE = "active"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


class ChatSessionCreate(ApiModel):
    """Request body for opening a chat session."""
    patient_name: Optional[str] = None
    location: Optional[str] = None
    urgency: Optional[UrgencyLevel] = None
    status: str = SessionStatus.ACTIVE.value
    appointment_id: Optional[str] = None

    @field_validator("urgency", mode="before")
    @classmethod
    def lower_urgency(cls, value):
        return normalize_urgency(value)


class ChatSession(ChatSessionCreate):
    """One visitor's intake conversation and the fields gathered so far."""
    id: str
    created_at: datetime

    @property
    def progress(self) -> int:
        """Intake completion percentage shown next to the chat."""
        progress = 0.0
        if self.location:
            progress += 33.3
        if self.urgency:
            progress += 33.3
        if self.status == SessionStatus.COMPLETED.value:
            progress += 33.4
        return round(progress)

    @property
    def status_text(self) -> str:
        """Human-readable stage of the intake."""
        if self.status == SessionStatus.COMPLETED.value:
            return "Completed"
        if self.urgency:
            return "Scheduling"
        if self.location:
            return "Assessing Urgency"
        return "Information Gathering"

    def to_display_dict(self) -> dict:
        """Session plus progress information for the intake sidebar."""
        data = self.to_api_dict()
        data["progress"] = self.progress
        data["statusText"] = self.status_text
        return data


class ChatMessage(ApiModel):
    """A single stored chat message."""
    id: str
    session_id: str
    content: str
    sender: MessageSender
    timestamp: datetime

    def to_history_entry(self) -> dict:
        """Role/content pair for the language model."""
        role = "user" if self.sender == MessageSender.USER.value else "assistant"
        return {"role": role, "content": self.content}


class ExtractedInfo(ApiModel):
    """Structured fields the assistant inferred from the latest message."""
    wants_appointment: Optional[bool] = None
    location: Optional[str] = None
    urgency: Optional[UrgencyLevel] = None
    patient_name: Optional[str] = None
    patient_email: Optional[str] = None
    patient_phone: Optional[str] = None

    @field_validator("urgency", mode="before")
    @classmethod
    def lower_urgency(cls, value):
        return normalize_urgency(value)

    def session_updates(self) -> dict:
        """Fields that may be merged into the chat session, when present."""
        updates = {}
        if self.location:
            updates["location"] = self.location
        if self.urgency:
            updates["urgency"] = self.urgency
        if self.patient_name:
            updates["patient_name"] = self.patient_name
        return updates


class AssistantReply(ApiModel):
    """Shape the language model must return; anything else is rejected."""
    message: Optional[str] = None
    next_step: Optional[IntakeStep] = None
    extracted_info: ExtractedInfo = Field(default_factory=ExtractedInfo)

    @field_validator("next_step", mode="before")
    @classmethod
    def lower_step(cls, value):
        if isinstance(value, str):
            value = value.strip().lower()
            return value or None
        return value

    @field_validator("extracted_info", mode="before")
    @classmethod
    def default_extracted_info(cls, value):
        return {} if value is None else value
