"""Tenant model: top-level isolation boundary, one per enterprise signup."""

import uuid

from sqlmodel import Field, SQLModel

from photohub.models.base import ApiSchema, TimestampMixin, new_uuid


class Tenant(TimestampMixin, SQLModel, table=True):
    __tablename__ = "tenants"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    name: str = Field(max_length=255, nullable=False)
    slug: str = Field(max_length=120, unique=True, nullable=False, index=True)
    created_by: uuid.UUID | None = Field(default=None, nullable=True)


# ── Pydantic schemas ─────────────────────────────────────────

class TenantRead(ApiSchema):
    id: uuid.UUID
    name: str
    slug: str
