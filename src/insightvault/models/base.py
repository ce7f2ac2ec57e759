"""Shared helpers for API-facing models."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Request model that reads camelCase JSON keys into snake_case fields."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


def isoformat(value: Optional[datetime]) -> Optional[str]:
    """Render a timestamp for JSON output."""
    return value.isoformat() if value else None


def strip_optional(value: Optional[str]) -> Optional[str]:
    return value.strip() if value is not None else value
