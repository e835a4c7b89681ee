"""User and UserProfile models.

A user owns one or more role-scoped profiles. A profile's tenant is fixed
when the profile is created.
"""

import uuid
from datetime import datetime
from enum import StrEnum

from sqlmodel import Field, SQLModel

from photohub.models.base import ApiSchema, TimestampMixin, new_uuid
from photohub.models.tenant import TenantRead


class UserRole(StrEnum):
    ENTERPRISE = "ENTERPRISE"
    CLIENT = "CLIENT"


class User(TimestampMixin, SQLModel, table=True):
    __tablename__ = "users"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    email: str = Field(max_length=320, unique=True, nullable=False, index=True)
    name: str = Field(default="", max_length=255)
    phone_number: str | None = Field(default=None, max_length=50)
    password_hash: str | None = Field(default=None, nullable=True)
    is_verified: bool = Field(default=False)


class UserProfile(TimestampMixin, SQLModel, table=True):
    __tablename__ = "user_profiles"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="users.id", nullable=False, index=True)
    role: UserRole = Field(nullable=False)
    name: str = Field(default="", max_length=255)
    tenant_id: uuid.UUID | None = Field(
        default=None, foreign_key="tenants.id", nullable=True, index=True,
    )


# ── Pydantic schemas ─────────────────────────────────────────

class UserRead(ApiSchema):
    id: uuid.UUID
    email: str
    name: str
    phone_number: str | None = None
    is_verified: bool
    created_at: datetime


class UserProfileRead(ApiSchema):
    id: uuid.UUID
    user_id: uuid.UUID
    role: UserRole
    name: str
    tenant_id: uuid.UUID | None = None


class AuthPayload(ApiSchema):
    """Identity plus a fresh token pair, returned by every sign-in path."""

    user: UserRead
    user_profile: UserProfileRead
    tenant: TenantRead | None = None
    access_token: str
    refresh_token: str
