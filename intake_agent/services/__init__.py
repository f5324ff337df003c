"""Services package for storage and language-model integrations."""

from .memory_store import MemoryStore
from .llm_service import LLMService, LLMUnavailableError
from .slot_generator import SlotGenerator
from .conversation_service import ConversationService, ConversationReply, get_intake_prompt

__all__ = [
    "MemoryStore",
    "LLMService",
    "LLMUnavailableError",
    "SlotGenerator",
    "ConversationService",
    "ConversationReply",
    "get_intake_prompt",
]
