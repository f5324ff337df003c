"""Helper utility functions."""

import json
from datetime import date, datetime
from typing import Any, Optional
from dateutil import parser as date_parser


def format_datetime(dt: datetime) -> str:
    """Format datetime for display, e.g. "Wednesday, March 5 at 9:00 AM"."""
    return dt.strftime("%A, %B %d at %I:%M %p").replace(" 0", " ")


def parse_calendar_date(text: str) -> Optional[date]:
    """
    Parse a date path parameter such as "2025-03-10" or "March 10, 2025".

    Args:
        text: Raw date text

    Returns:
        The calendar date, or None if the text is not a date
    """
    if not text or not text.strip():
        return None
    try:
        return date_parser.parse(text.strip()).date()
    except (ValueError, OverflowError):
        return None


def extract_json_object(text: str) -> Any:
    """
    Decode a JSON reply from a language model.

    Handles replies wrapped in markdown code fences.

    Raises:
        ValueError: If the text holds no valid JSON
    """
    if "```json" in text:
        text = text.split("```json")[1].split("```")[0]
    elif "```" in text:
        text = text.split("```")[1].split("```")[0]

    return json.loads(text.strip())


def truncate_text(text: str, max_length: int = 100, suffix: str = "...") -> str:
    """Truncate text to max length with suffix."""
    if len(text) <= max_length:
        return text
    return text[:max_length - len(suffix)] + suffix
