"""Shared base fields for all models."""

import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime | None) -> datetime | None:
    """Columns hold naive UTC; convert aware inputs before storing."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def new_uuid() -> uuid.UUID:
    return uuid.uuid4()


class TimestampMixin(SQLModel):
    """Created / updated timestamps injected into every table."""

    created_at: datetime = Field(default_factory=utcnow, nullable=False)
    updated_at: datetime = Field(default_factory=utcnow, nullable=False)


class SoftDeleteMixin(SQLModel):
    """Rows with a non-null ``deleted_at`` are hidden from every default read."""

    deleted_at: datetime | None = Field(default=None, nullable=True, index=True)
    deleted_by: uuid.UUID | None = Field(default=None, nullable=True)


class ApiSchema(BaseModel):
    """Wire schema: camelCase on the way out, camelCase or snake_case on the way in."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )
