"""LLM Provider implementations."""

from .base_provider import BaseLLMProvider, LLMResponse, ProviderNotConfiguredError, ProviderType
from .gemini_provider import GeminiProvider
from .groq_provider import GroqProvider

__all__ = [
    "BaseLLMProvider",
    "LLMResponse",
    "ProviderNotConfiguredError",
    "ProviderType",
    "GeminiProvider",
    "GroqProvider",
]
