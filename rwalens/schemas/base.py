"""Shared Pydantic base model and time helper."""

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every store persists."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class CamelModel(BaseModel):
    """camelCase on the wire, snake_case in Python. Accepts either on input."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )
