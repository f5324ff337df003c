"""Utility functions package."""

from .helpers import extract_json_object, format_datetime, parse_calendar_date, truncate_text

__all__ = ["extract_json_object", "format_datetime", "parse_calendar_date", "truncate_text"]
