"""Shared base model for API-facing records."""

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Model serialized with camelCase keys; accepts either casing on input."""

    def to_api_dict(self) -> dict:
        """Convert to a JSON-ready dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        use_enum_values = True
