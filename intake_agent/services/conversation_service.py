"""Conversation delegate: turns intake chat turns into assistant replies."""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import ValidationError

from ..models import AssistantReply, Doctor, ExtractedInfo, IntakeStep, UrgencyLevel
from ..utils import format_datetime, truncate_text
from .llm_service import LLMService
from .slot_generator import SlotGenerator

logger = logging.getLogger(__name__)


DEFAULT_REPLY = "I'm here to help you schedule an appointment. How can I assist you today?"
APOLOGY_REPLY = (
    "I apologize, but I'm experiencing technical difficulties. "
    "Please try again or call our office directly for assistance."
)
SCHEDULING_KEYWORDS = ("schedul", "appointment", "book")


def is_scheduling_request(message: str, current_step: Optional[str] = None) -> bool:
    """Whether the visitor appears to be asking for an appointment time."""
    if current_step == IntakeStep.SCHEDULING.value:
        return True
    text = message.lower()
    return any(keyword in text for keyword in SCHEDULING_KEYWORDS)


def get_intake_prompt(
    current_step: str = IntakeStep.GREETING.value,
    department_name: str = "neurosurgery department",
    doctors: Optional[List[Doctor]] = None,
    available_slots: Optional[str] = None,
    now: Optional[datetime] = None,
) -> str:
    """Generate the system prompt for the intake assistant."""
    now = now or datetime.now(timezone.utc)
    steps = ", ".join(step.value for step in IntakeStep)

    doctor_section = ""
    if doctors:
        doctor_lines = "\n".join(d.to_prompt_line() for d in doctors)
        doctor_section = f"\n## Our Doctors\n{doctor_lines}\n"

    slot_section = ""
    if available_slots:
        slot_section = (
            "\n## Available Appointment Slots (next week)\n"
            f"{available_slots}\n"
            "Offer these times when the patient wants to schedule. Never invent other times.\n"
        )

    return f"""You are an AI intake assistant for a {department_name}. Your role is to:
1. Greet the patient and ask how you can help: scheduling an appointment, getting imaging, learning more about our doctors, or something else
2. Collect their location
3. Assess urgency level (emergency, urgent, routine)
4. Gather basic contact information (name, email, phone) if they want to proceed

If this sounds like an emergency, tell them to call 911 right away.

Current conversation step: {current_step}
Current date: {format_datetime(now)} (UTC)

Be professional, empathetic, and medically appropriate. Only ask one question at a time. For urgency:
- Emergency: Severe symptoms needing immediate attention
- Urgent: Concerning symptoms, within 1-2 weeks
- Routine: General consultation, flexible timing
{doctor_section}{slot_section}
Respond with a single JSON object containing:
- "message": Your response to the user (string)
- "nextStep": The next step in the conversation, one of: {steps}
- "extractedInfo": Any information you extracted from their message, as an object with optional keys
  "wantsAppointment" (boolean), "location", "urgency" (emergency, urgent or routine),
  "patientName", "patientEmail", "patientPhone" (strings)

Keep responses concise and caring."""


@dataclass
class ConversationReply:
    """Outcome of one intake turn."""
    message: str
    next_step: Optional[str] = None
    extracted_info: Optional[ExtractedInfo] = None

    @property
    def extracted_info_dict(self) -> Optional[dict]:
        """Extracted fields with camelCase keys, omitting absent ones."""
        if self.extracted_info is None:
            return None
        return self.extracted_info.model_dump(mode="json", by_alias=True, exclude_none=True)


class ConversationService:
    """Builds intake prompts and interprets the language model's replies."""

    def __init__(
        self,
        llm_service: LLMService,
        slot_generator: SlotGenerator,
        department_name: str = "neurosurgery department",
        max_tokens: int = 1024,
    ):
        """
        Initialize the conversation service.

        Args:
            llm_service: Provider chain used for every reply
            slot_generator: Source of open appointment slots
            department_name: Department named in the instructions
            max_tokens: Maximum tokens per reply
        """
        self.llm = llm_service
        self.slots = slot_generator
        self.department_name = department_name
        self.max_tokens = max_tokens

    def build_system_prompt(
        self,
        message: str,
        current_step: str,
        doctors: Optional[List[Doctor]] = None,
    ) -> str:
        """Instruction text for this turn, with slots when scheduling."""
        available_slots = None
        if is_scheduling_request(message, current_step):
            week_slots = self.slots.generate_week_slots()
            available_slots = self.slots.format_slots_for_prompt(week_slots)

        return get_intake_prompt(
            current_step=current_step,
            department_name=self.department_name,
            doctors=doctors,
            available_slots=available_slots,
        )

    async def process_user_message(
        self,
        message: str,
        conversation_history: List[dict],
        current_step: Optional[str] = None,
        doctors: Optional[List[Doctor]] = None,
    ) -> ConversationReply:
        """
        Produce the assistant's reply to the latest user message.

        Args:
            message: Latest user message
            conversation_history: Earlier turns as role/content pairs, oldest first
            current_step: Session's current step, "greeting" when unknown
            doctors: Doctor directory to describe to the model

        Returns:
            ConversationReply; the fixed apology with no step or fields if the
            model could not be reached or replied with the wrong shape
        """
        current_step = current_step or IntakeStep.GREETING.value
        system_prompt = self.build_system_prompt(message, current_step, doctors)
        messages = list(conversation_history) + [{"role": "user", "content": message}]

        try:
            raw = await self.llm.generate_json(
                messages=messages,
                system_prompt=system_prompt,
                max_tokens=self.max_tokens,
            )
            if not isinstance(raw, dict):
                raise ValueError(f"Expected a JSON object, got {type(raw).__name__}")
            reply = AssistantReply.model_validate(raw)

        except ValidationError as e:
            logger.error(f"Rejected malformed assistant reply: {e.error_count()} invalid field(s)")
            return ConversationReply(message=APOLOGY_REPLY)
        except Exception as e:
            logger.error(f"Conversation reply failed: {e}")
            return ConversationReply(message=APOLOGY_REPLY)

        text = reply.message.strip() if reply.message else ""
        logger.info(
            f"Assistant reply (step {current_step} -> {reply.next_step}): "
            f"{truncate_text(text or DEFAULT_REPLY, 80)}"
        )
        return ConversationReply(
            message=text or DEFAULT_REPLY,
            next_step=reply.next_step,
            extracted_info=reply.extracted_info,
        )

    async def analyze_urgency(self, symptoms: str) -> str:
        """
        Classify free-text symptoms as emergency, urgent or routine.

        Returns "routine" when the model fails or answers with anything else.
        """
        system_prompt = (
            "You are a medical triage assistant. Analyze the described symptoms and classify "
            "urgency as 'emergency', 'urgent', or 'routine'. Respond with JSON: "
            "{\"urgency\": \"emergency\"|\"urgent\"|\"routine\", \"reasoning\": \"brief explanation\"}"
        )
        try:
            raw = await self.llm.generate_json(
                messages=[{"role": "user", "content": f"Symptoms: {symptoms}"}],
                system_prompt=system_prompt,
                max_tokens=200,
            )
            urgency = str(raw.get("urgency", "")).strip().lower()
            return UrgencyLevel(urgency).value
        except Exception as e:
            logger.error(f"Error analyzing urgency: {e}")
            return UrgencyLevel.ROUTINE.value
