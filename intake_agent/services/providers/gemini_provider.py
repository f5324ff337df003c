"""Google Gemini LLM provider implementation."""

import logging
from typing import Any

from google import genai
from google.genai import types

from .base_provider import BaseLLMProvider, LLMResponse, ProviderType
from ..message_converter import convert_messages_to_gemini

logger = logging.getLogger(__name__)


class GeminiProvider(BaseLLMProvider):
    """Google Gemini LLM provider."""

    provider_type = ProviderType.GEMINI

    def __init__(self, api_key: str, model: str = "gemini-2.5-flash"):
        """
        Initialize Gemini provider.

        Args:
            api_key: Google AI API key (empty disables the provider)
            model: Model name (default: gemini-2.5-flash)
        """
        super().__init__(api_key, model)

    def _create_client(self) -> genai.Client:
        return genai.Client(api_key=self.api_key)

    async def generate_response(
        self,
        messages: list[dict[str, Any]],
        system_prompt: str,
        max_tokens: int = 1024,
        json_mode: bool = True,
    ) -> LLMResponse:
        """Generate a response using Gemini."""
        try:
            # Convert messages to Gemini format
            system_instruction, gemini_messages = convert_messages_to_gemini(
                messages, system_prompt
            )

            # Build generation config
            config = types.GenerateContentConfig(
                system_instruction=system_instruction,
                max_output_tokens=max_tokens,
                temperature=0.7,
            )
            if json_mode:
                config.response_mime_type = "application/json"

            # Generate response
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=gemini_messages,
                config=config,
            )

            # Parse response
            return self._parse_response(response)

        except Exception as e:
            logger.error(f"Gemini API error: {e}")
            raise

    def _parse_response(self, response: Any) -> LLMResponse:
        """Parse Gemini response into standardized format."""
        content = None
        stop_reason = "end_turn"

        if response.candidates:
            candidate = response.candidates[0]

            # Check finish reason
            if candidate.finish_reason:
                finish_reason = str(candidate.finish_reason)
                if "STOP" in finish_reason:
                    stop_reason = "end_turn"
                elif "MAX_TOKENS" in finish_reason:
                    stop_reason = "max_tokens"
                elif "SAFETY" in finish_reason:
                    stop_reason = "safety"

            # Join text parts
            if candidate.content and candidate.content.parts:
                texts = [part.text for part in candidate.content.parts if getattr(part, "text", None)]
                if texts:
                    content = "".join(texts)

        return LLMResponse(
            content=content,
            stop_reason=stop_reason,
            provider=ProviderType.GEMINI,
            raw_response=response,
        )
