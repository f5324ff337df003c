"""User data models."""

from pydantic import Field

from .base import ApiModel


class UserCreate(ApiModel):
    """Fields required to register a staff user."""
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class User(UserCreate):
    """A staff user account."""
    id: str
