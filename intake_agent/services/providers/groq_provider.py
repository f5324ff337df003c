"""Groq LLM provider implementation."""

import logging
from typing import Any

from groq import AsyncGroq

from .base_provider import BaseLLMProvider, LLMResponse, ProviderType
from ..message_converter import convert_messages_to_groq

logger = logging.getLogger(__name__)


class GroqProvider(BaseLLMProvider):
    """Groq LLM provider (OpenAI-compatible API)."""

    provider_type = ProviderType.GROQ

    def __init__(self, api_key: str, model: str = "llama-3.3-70b-versatile"):
        """
        Initialize Groq provider.

        Args:
            api_key: Groq API key (empty disables the provider)
            model: Model name (default: llama-3.3-70b-versatile)
        """
        super().__init__(api_key, model)

    def _create_client(self) -> AsyncGroq:
        return AsyncGroq(api_key=self.api_key)

    async def generate_response(
        self,
        messages: list[dict[str, Any]],
        system_prompt: str,
        max_tokens: int = 1024,
        json_mode: bool = True,
    ) -> LLMResponse:
        """Generate a response using Groq."""
        try:
            # Convert messages to Groq/OpenAI format
            groq_messages = convert_messages_to_groq(messages, system_prompt)

            # Build request parameters
            params = {
                "model": self.model,
                "messages": groq_messages,
                "max_tokens": max_tokens,
                "temperature": 0.7,
            }
            if json_mode:
                params["response_format"] = {"type": "json_object"}

            # Generate response
            response = await self.client.chat.completions.create(**params)

            # Parse response
            return self._parse_response(response)

        except Exception as e:
            logger.error(f"Groq API error: {e}")
            raise

    def _parse_response(self, response: Any) -> LLMResponse:
        """Parse Groq response into standardized format."""
        content = None
        stop_reason = "end_turn"

        if response.choices:
            choice = response.choices[0]

            # Check finish reason
            if choice.finish_reason == "length":
                stop_reason = "max_tokens"

            if choice.message and choice.message.content:
                content = choice.message.content

        return LLMResponse(
            content=content,
            stop_reason=stop_reason,
            provider=ProviderType.GROQ,
            raw_response=response,
        )
