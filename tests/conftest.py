"""Shared pytest fixtures."""

import asyncio
import json
import random

import pytest

from intake_agent.api.routes import create_app
from intake_agent.services.conversation_service import ConversationService
from intake_agent.services.llm_service import LLMService
from intake_agent.services.memory_store import MemoryStore
from intake_agent.services.providers import BaseLLMProvider, LLMResponse, ProviderType
from intake_agent.services.slot_generator import SlotGenerator

ADMIN_PASSWORD = "test-admin"

DEFAULT_STUB_REPLY = {
    "message": "Hello! Are you looking to schedule an appointment?",
    "nextStep": "location",
    "extractedInfo": {},
}


class StubProvider(BaseLLMProvider):
    """Provider returning canned replies instead of calling an API."""

    def __init__(
        self,
        replies=None,
        error=None,
        responder=None,
        delay=0.0,
        provider_type=ProviderType.GEMINI,
        api_key="test-key",
    ):
        super().__init__(api_key, "stub-model")
        self.provider_type = provider_type
        self.replies = list(replies or [DEFAULT_STUB_REPLY])
        self.error = error
        self.responder = responder
        self.delay = delay
        self.calls = []

    def _create_client(self):
        return None

    async def generate_response(self, messages, system_prompt, max_tokens=1024, json_mode=True):
        self.calls.append({"messages": list(messages), "system_prompt": system_prompt})
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error

        if self.responder is not None:
            reply = self.responder(messages, system_prompt)
        elif len(self.replies) > 1:
            reply = self.replies.pop(0)
        else:
            reply = self.replies[0]

        content = reply if isinstance(reply, str) else json.dumps(reply)
        return LLMResponse(content=content, provider=self.provider_type)


@pytest.fixture
def store():
    """Fresh, unseeded store."""
    return MemoryStore()


@pytest.fixture
def stub_provider():
    """Stub language model shared by the conversation service."""
    return StubProvider()


@pytest.fixture
def slot_generator():
    """Slot generator with a fixed random seed."""
    return SlotGenerator(rng=random.Random(7))


@pytest.fixture
def conversation_service(stub_provider, slot_generator):
    """Conversation service backed by the stub provider."""
    llm = LLMService(providers=[stub_provider], timeout_seconds=5)
    return ConversationService(llm_service=llm, slot_generator=slot_generator)


@pytest.fixture
async def client(aiohttp_client, store, conversation_service):
    """Test client for the full application; the store is seeded on start-up."""
    app = create_app(
        store=store,
        conversation_service=conversation_service,
        admin_password=ADMIN_PASSWORD,
    )
    return await aiohttp_client(app)
