"""
Main entry point for the patient intake backend.
Wires services together and starts the HTTP API server.
"""

import logging

from aiohttp import web
from dotenv import load_dotenv

from config.settings import Settings, get_settings
from intake_agent.api.routes import create_app
from intake_agent.services.conversation_service import ConversationService
from intake_agent.services.llm_service import LLMService
from intake_agent.services.memory_store import MemoryStore
from intake_agent.services.slot_generator import SlotGenerator

logger = logging.getLogger(__name__)


def build_app(settings: Settings) -> web.Application:
    """Create services from settings and return the configured app."""
    store = MemoryStore()

    llm = LLMService(
        gemini_api_key=settings.gemini_api_key,
        groq_api_key=settings.groq_api_key,
        gemini_model=settings.gemini_model,
        groq_model=settings.groq_model,
        timeout_seconds=settings.llm_timeout_seconds,
    )

    slot_generator = SlotGenerator(
        slot_times=settings.slot_times,
        slot_duration=settings.slot_duration_minutes,
        min_slots_per_day=settings.min_slots_per_day,
        max_slots_per_day=settings.max_slots_per_day,
    )

    conversation = ConversationService(
        llm_service=llm,
        slot_generator=slot_generator,
        department_name=settings.department_name,
        max_tokens=settings.llm_max_tokens,
    )

    return create_app(
        store=store,
        conversation_service=conversation,
        admin_password=settings.admin_password,
        allowed_origin=settings.allowed_origin,
    )


def main():
    """Main entry point."""
    # Load environment variables (override=True ensures .env values take precedence)
    load_dotenv(override=True)
    settings = get_settings()

    # Configure logging
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    logger.info(f"Starting API server ({settings.environment})")
    web.run_app(build_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
