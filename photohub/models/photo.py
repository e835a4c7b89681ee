"""Photo model: one stored image inside an album."""

import uuid
from datetime import datetime

from sqlmodel import Field, SQLModel

from photohub.models.base import ApiSchema, SoftDeleteMixin, TimestampMixin, new_uuid


class Photo(TimestampMixin, SoftDeleteMixin, SQLModel, table=True):
    __tablename__ = "photos"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    album_id: uuid.UUID = Field(foreign_key="albums.id", nullable=False, index=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    filename: str = Field(max_length=255, nullable=False)
    storage_key: str = Field(max_length=1024, nullable=False, unique=True)
    url: str = Field(max_length=2048, nullable=False)
    file_size: int = Field(nullable=False)
    mime_type: str = Field(max_length=100, nullable=False)
    width: int | None = Field(default=None, nullable=True)
    height: int | None = Field(default=None, nullable=True)
    created_by: uuid.UUID = Field(foreign_key="user_profiles.id", nullable=False)


# ── Pydantic schemas ─────────────────────────────────────────

class PhotoRead(ApiSchema):
    id: uuid.UUID
    album_id: uuid.UUID
    tenant_id: uuid.UUID
    filename: str
    url: str
    file_size: int
    mime_type: str
    width: int | None = None
    height: int | None = None
    created_by: uuid.UUID
    created_at: datetime


class SignedUrlRead(ApiSchema):
    url: str
    expires_in: int
