"""LLM Service with Gemini (primary) and Groq (fallback) support."""

import asyncio
import logging
from typing import Any, Optional

from .providers import BaseLLMProvider, GeminiProvider, GroqProvider, LLMResponse, ProviderType
from ..utils import extract_json_object

logger = logging.getLogger(__name__)


class LLMUnavailableError(RuntimeError):
    """Raised when no provider produced a response."""


class LLMService:
    """LLM Service with Gemini (primary) and Groq (fallback)."""

    def __init__(
        self,
        gemini_api_key: str = "",
        groq_api_key: str = "",
        gemini_model: str = "gemini-2.5-flash",
        groq_model: str = "llama-3.3-70b-versatile",
        timeout_seconds: Optional[float] = 30.0,
        providers: Optional[list[BaseLLMProvider]] = None,
    ):
        """
        Initialize LLM service.

        Args:
            gemini_api_key: Google Gemini API key
            groq_api_key: Groq API key
            gemini_model: Gemini model name
            groq_model: Groq model name
            timeout_seconds: Per-provider request timeout; None waits forever
            providers: Explicit provider chain, overriding the keys above
        """
        if providers is None:
            providers = [
                GeminiProvider(gemini_api_key, gemini_model),
                GroqProvider(groq_api_key, groq_model),
            ]
        self.providers = providers
        self.timeout_seconds = timeout_seconds
        self._last_provider: Optional[ProviderType] = None

        configured = [p.provider_type.value for p in self.providers if p.is_configured]
        if configured:
            logger.info(f"LLM service initialized with providers: {', '.join(configured)}")
        else:
            logger.warning("LLM service has no configured provider; chat replies will fall back")

    @property
    def last_provider(self) -> Optional[ProviderType]:
        """Get the provider used for the last request."""
        return self._last_provider

    async def generate_response(
        self,
        messages: list[dict],
        system_prompt: str,
        max_tokens: int = 1024,
        json_mode: bool = True,
    ) -> LLMResponse:
        """
        Generate a response, trying each configured provider in order.

        Args:
            messages: Conversation history
            system_prompt: System prompt
            max_tokens: Maximum tokens in response
            json_mode: Ask for a single JSON object

        Returns:
            The first successful LLMResponse

        Raises:
            LLMUnavailableError: If every provider failed or none is configured
        """
        errors = []
        for provider in self.providers:
            name = provider.provider_type.value
            if not provider.is_configured:
                errors.append(f"{name}: not configured")
                continue

            try:
                logger.debug(f"Attempting {name} request...")
                response = await asyncio.wait_for(
                    provider.generate_response(
                        messages=messages,
                        system_prompt=system_prompt,
                        max_tokens=max_tokens,
                        json_mode=json_mode,
                    ),
                    timeout=self.timeout_seconds,
                )
                self._last_provider = provider.provider_type
                logger.debug(f"{name} response: stop_reason={response.stop_reason}")
                return response

            except asyncio.TimeoutError:
                logger.warning(f"{name} timed out after {self.timeout_seconds}s")
                errors.append(f"{name}: timeout")
            except Exception as e:
                logger.warning(f"{name} failed: {e}")
                errors.append(f"{name}: {e}")

        raise LLMUnavailableError(f"All LLM providers failed. {'; '.join(errors)}")

    async def generate_json(
        self,
        messages: list[dict],
        system_prompt: str,
        max_tokens: int = 1024,
    ) -> Any:
        """
        Generate a response and decode it as JSON.

        Raises:
            LLMUnavailableError: If no provider responded
            ValueError: If the response is not valid JSON
        """
        response = await self.generate_response(
            messages=messages,
            system_prompt=system_prompt,
            max_tokens=max_tokens,
            json_mode=True,
        )
        return extract_json_object(response.text)
