"""Project model and the per-project access grant."""

import uuid
from datetime import datetime
from enum import StrEnum

from pydantic import Field as PydanticField
from pydantic import field_validator
from sqlalchemy import Text, UniqueConstraint
from sqlmodel import Column, Field, SQLModel

from photohub.models.base import ApiSchema, SoftDeleteMixin, TimestampMixin, new_uuid


class ProjectStatus(StrEnum):
    DRAFT = "DRAFT"
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    ARCHIVED = "ARCHIVED"


class Accessibility(StrEnum):
    """Grant levels, ordered VIEW_ONLY < EDIT < ADMIN."""

    VIEW_ONLY = "VIEW_ONLY"
    EDIT = "EDIT"
    ADMIN = "ADMIN"

    @property
    def rank(self) -> int:
        return _ACCESS_RANK[self]

    def satisfies(self, required: "Accessibility") -> bool:
        return self.rank >= required.rank


_ACCESS_RANK = {
    Accessibility.VIEW_ONLY: 0,
    Accessibility.EDIT: 1,
    Accessibility.ADMIN: 2,
}


class Project(TimestampMixin, SoftDeleteMixin, SQLModel, table=True):
    __tablename__ = "projects"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    project_uuid: str = Field(
        default_factory=lambda: str(new_uuid()), max_length=36, unique=True, nullable=False,
    )
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    title: str = Field(max_length=200, nullable=False)
    description: str | None = Field(default=None, sa_column=Column(Text))
    event_date: datetime | None = Field(default=None, nullable=True)
    status: ProjectStatus = Field(default=ProjectStatus.ACTIVE)
    is_active: bool = Field(default=True)
    created_by: uuid.UUID = Field(foreign_key="user_profiles.id", nullable=False)
    updated_by: uuid.UUID | None = Field(default=None, nullable=True)


class ProjectUserProfile(TimestampMixin, SQLModel, table=True):
    """Access grant: one profile's accessibility level on one project."""

    __tablename__ = "project_user_profiles"
    __table_args__ = (
        UniqueConstraint("project_id", "user_profile_id", name="uq_project_user_profile"),
    )

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    project_id: uuid.UUID = Field(foreign_key="projects.id", nullable=False, index=True)
    user_profile_id: uuid.UUID = Field(foreign_key="user_profiles.id", nullable=False, index=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    accessibility: Accessibility = Field(nullable=False)
    created_by: uuid.UUID | None = Field(default=None, nullable=True)


# ── Pydantic schemas ─────────────────────────────────────────

class ProjectCreate(ApiSchema):
    title: str = PydanticField(min_length=1, max_length=200)
    description: str | None = PydanticField(default=None, max_length=1000)
    event_date: datetime | None = None


class ProjectUpdate(ApiSchema):
    title: str | None = PydanticField(default=None, min_length=1, max_length=200)
    description: str | None = PydanticField(default=None, max_length=1000)
    event_date: datetime | None = None
    status: ProjectStatus | None = None
    is_active: bool | None = None

    @field_validator("title", "status", "is_active", mode="before")
    @classmethod
    def _reject_null(cls, value):
        # Omit a field to leave it unchanged; null would clear a required column
        if value is None:
            raise ValueError("may not be null")
        return value


class CollaboratorCreate(ApiSchema):
    user_profile_id: uuid.UUID
    accessibility: Accessibility


class CollaboratorRead(ApiSchema):
    user_profile_id: uuid.UUID
    name: str
    role: str
    accessibility: Accessibility


class ProjectRead(ApiSchema):
    id: uuid.UUID
    project_uuid: str
    tenant_id: uuid.UUID
    title: str
    description: str | None = None
    event_date: datetime | None = None
    status: ProjectStatus
    is_active: bool
    created_by: uuid.UUID
    created_at: datetime
    updated_at: datetime
    collaborators: list[CollaboratorRead] = []


class AlbumPreview(ApiSchema):
    id: uuid.UUID
    title: str
    description: str | None = None
    cover_image: str | None = None
    photo_count: int = 0


class ProjectDetail(ProjectRead):
    albums: list[AlbumPreview] = []
