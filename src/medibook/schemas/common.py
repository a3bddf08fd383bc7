"""Shared schema plumbing and the error envelope."""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base schema speaking camelCase on the wire and snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Store every timestamp as naive UTC."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class ValidationIssue(BaseModel):
    """One itemised validation failure."""

    path: list[Any]
    message: str
    code: str


class ErrorResponse(BaseModel):
    """Body returned for every non-2xx response."""

    message: str
    errors: Optional[list[ValidationIssue]] = None
