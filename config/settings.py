"""
Configuration settings for the patient intake backend.
Loads from environment variables with validation.
"""

from typing import Literal
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Environment
    environment: Literal["development", "production"] = "development"
    debug: bool = False
    log_level: str = "INFO"

    # HTTP server
    host: str = "0.0.0.0"
    port: int = 5000
    allowed_origin: str = Field(
        default="*",
        description="Origin echoed in CORS headers when the request has none"
    )

    # LLM Configuration (Gemini primary, Groq fallback).
    # An empty key disables that provider; with no provider the chat degrades
    # to the built-in apology instead of failing start-up.
    gemini_api_key: str = Field(default="", description="Google Gemini API key")
    gemini_model: str = Field(
        default="gemini-2.5-flash",
        description="Gemini model to use"
    )
    groq_api_key: str = Field(default="", description="Groq API key")
    groq_model: str = Field(
        default="llama-3.3-70b-versatile",
        description="Groq model to use"
    )
    llm_timeout_seconds: float = 30.0
    llm_max_tokens: int = 1024

    # Intake Configuration
    department_name: str = "neurosurgery department"
    slot_times: list[str] = ["9:00 AM", "10:30 AM", "1:00 PM", "2:30 PM", "4:00 PM"]
    slot_duration_minutes: int = 30
    min_slots_per_day: int = 1
    max_slots_per_day: int = 3

    # Admin Configuration
    admin_password: str = Field(default="admin123", description="Admin panel password")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


def get_settings() -> Settings:
    """Get settings instance."""
    return Settings()
