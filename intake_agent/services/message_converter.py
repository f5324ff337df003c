"""Conversation format converters for different LLM providers."""

from typing import Any


def convert_messages_to_gemini(
    messages: list[dict[str, Any]],
    system_prompt: str,
) -> tuple[str, list[dict[str, Any]]]:
    """
    Convert role/content messages to Gemini format.

    Standard format:
    [
        {"role": "user", "content": "..."},
        {"role": "assistant", "content": "..."},
    ]

    Gemini format:
    [
        {"role": "user", "parts": [{"text": "..."}]},
        {"role": "model", "parts": [{"text": "..."}]},
    ]

    Returns:
        Tuple of (system_instruction, converted_messages)
    """
    gemini_messages = []

    for msg in messages:
        role = msg.get("role", "user")
        content = msg.get("content", "")

        # Map roles
        gemini_role = "model" if role == "assistant" else "user"

        gemini_messages.append({
            "role": gemini_role,
            "parts": [{"text": content if isinstance(content, str) else str(content)}],
        })

    return system_prompt, gemini_messages


def convert_messages_to_groq(
    messages: list[dict[str, Any]],
    system_prompt: str,
) -> list[dict[str, Any]]:
    """
    Convert role/content messages to Groq/OpenAI format.

    The system prompt becomes the leading "system" message; unknown roles
    are sent as "user".
    """
    groq_messages = []

    # Add system message first
    if system_prompt:
        groq_messages.append({
            "role": "system",
            "content": system_prompt,
        })

    for msg in messages:
        role = msg.get("role", "user")
        content = msg.get("content", "")

        groq_messages.append({
            "role": role if role in ("user", "assistant") else "user",
            "content": content if isinstance(content, str) else str(content),
        })

    return groq_messages
