"""Album model: a titled group of photos inside one project."""

import uuid
from datetime import datetime

from pydantic import Field as PydanticField
from pydantic import field_validator
from sqlalchemy import Text
from sqlmodel import Column, Field, SQLModel

from photohub.models.base import ApiSchema, SoftDeleteMixin, TimestampMixin, new_uuid
from photohub.models.photo import PhotoRead


class Album(TimestampMixin, SoftDeleteMixin, SQLModel, table=True):
    __tablename__ = "albums"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    project_id: uuid.UUID = Field(foreign_key="projects.id", nullable=False, index=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    title: str = Field(max_length=200, nullable=False)
    description: str | None = Field(default=None, sa_column=Column(Text))
    cover_image: str | None = Field(default=None, max_length=2048)
    created_by: uuid.UUID = Field(foreign_key="user_profiles.id", nullable=False)
    updated_by: uuid.UUID | None = Field(default=None, nullable=True)


# ── Pydantic schemas ─────────────────────────────────────────

class AlbumCreate(ApiSchema):
    project_id: uuid.UUID
    title: str = PydanticField(min_length=1, max_length=200)
    description: str | None = PydanticField(default=None, max_length=1000)
    cover_image: str | None = PydanticField(default=None, max_length=2048)


class AlbumUpdate(ApiSchema):
    title: str | None = PydanticField(default=None, min_length=1, max_length=200)
    description: str | None = PydanticField(default=None, max_length=1000)
    cover_image: str | None = PydanticField(default=None, max_length=2048)

    @field_validator("title", mode="before")
    @classmethod
    def _reject_null(cls, value):
        if value is None:
            raise ValueError("may not be null")
        return value


class AlbumBatchEntry(ApiSchema):
    """One upsert: with ``album_id`` it updates that album, without it creates one."""

    album_id: uuid.UUID | None = None
    title: str = PydanticField(min_length=1, max_length=200)
    description: str | None = PydanticField(default=None, max_length=1000)


class AlbumBatch(ApiSchema):
    project_id: uuid.UUID
    albums: list[AlbumBatchEntry] = PydanticField(min_length=1)


class AlbumRead(ApiSchema):
    id: uuid.UUID
    project_id: uuid.UUID
    tenant_id: uuid.UUID
    title: str
    description: str | None = None
    cover_image: str | None = None
    created_by: uuid.UUID
    created_at: datetime
    updated_at: datetime
    photo_count: int = 0


class AlbumDetail(AlbumRead):
    photos: list[PhotoRead] = []
