"""Base LLM provider abstract class."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class ProviderType(Enum):
    """Supported LLM provider types."""
    GEMINI = "gemini"
    GROQ = "groq"


class ProviderNotConfiguredError(RuntimeError):
    """Raised when a provider is used without an API key."""


@dataclass
class LLMResponse:
    """Standardized response from any LLM provider."""
    content: Optional[str] = None
    stop_reason: str = "end_turn"
    provider: ProviderType = ProviderType.GEMINI
    raw_response: Any = None

    @property
    def text(self) -> str:
        """Get text content or empty string."""
        return self.content or ""


class BaseLLMProvider(ABC):
    """Abstract base class for LLM providers."""

    provider_type: ProviderType

    def __init__(self, api_key: str, model: str):
        self.api_key = api_key
        self.model = model
        self._client = None

    @property
    def is_configured(self) -> bool:
        """Whether an API key was supplied."""
        return bool(self.api_key)

    @property
    def client(self):
        """SDK client, created on first use."""
        if not self.is_configured:
            raise ProviderNotConfiguredError(f"{self.provider_type.value} API key is not set")
        if self._client is None:
            self._client = self._create_client()
        return self._client

    @abstractmethod
    def _create_client(self) -> Any:
        """Build the SDK client."""
        pass

    @abstractmethod
    async def generate_response(
        self,
        messages: list[dict[str, Any]],
        system_prompt: str,
        max_tokens: int = 1024,
        json_mode: bool = True,
    ) -> LLMResponse:
        """
        Generate a response from the LLM.

        Args:
            messages: Conversation history as role/content pairs
            system_prompt: System instructions
            max_tokens: Maximum tokens in response
            json_mode: Ask the model for a single JSON object

        Returns:
            Standardized LLMResponse
        """
        pass
