"""EmailInvite model: a time-limited, single-use project invitation."""

import json
import uuid
from datetime import datetime
from enum import StrEnum

from pydantic import EmailStr
from pydantic import Field as PydanticField
from sqlalchemy import Text
from sqlmodel import Column, Field, SQLModel

from photohub.models.base import ApiSchema, TimestampMixin, new_uuid, utcnow
from photohub.models.project import Accessibility
from photohub.models.user import AuthPayload


class EmailInviteType(StrEnum):
    PROJECT_INVITE = "PROJECT_INVITE"
    PROJECT_INVITE_AND_REGISTER = "PROJECT_INVITE_AND_REGISTER"


class EmailInviteStatus(StrEnum):
    # EXPIRED is never stored; it is derived from expires_at on every read.
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"


class EmailInvite(TimestampMixin, SQLModel, table=True):
    __tablename__ = "email_invites"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    email: str = Field(max_length=320, nullable=False, index=True)
    project_id: uuid.UUID = Field(foreign_key="projects.id", nullable=False, index=True)
    token: str = Field(max_length=128, unique=True, nullable=False, index=True)
    type: EmailInviteType = Field(nullable=False)
    status: EmailInviteStatus = Field(default=EmailInviteStatus.PENDING)
    expires_at: datetime = Field(nullable=False)

    # {"accessLevel": "VIEW_ONLY", "existingUserId": "..."} stored as JSON text
    details: str = Field(default="{}", sa_column=Column(Text, nullable=False, server_default="{}"))

    invite_link: str = Field(max_length=2048, nullable=False)
    created_by: uuid.UUID | None = Field(default=None, nullable=True)

    @property
    def is_expired(self) -> bool:
        return utcnow() > self.expires_at

    @property
    def access_level(self) -> Accessibility:
        return Accessibility(json.loads(self.details)["accessLevel"])

    @property
    def existing_user_id(self) -> uuid.UUID | None:
        raw = json.loads(self.details).get("existingUserId")
        return uuid.UUID(raw) if raw else None


# ── Pydantic schemas ─────────────────────────────────────────

class InviteCreate(ApiSchema):
    project_id: uuid.UUID
    email: EmailStr
    accessibility: Accessibility = Accessibility.VIEW_ONLY


class InviteAccept(ApiSchema):
    token: str = PydanticField(min_length=1)


class InviteRegister(ApiSchema):
    token: str = PydanticField(min_length=1)
    name: str = PydanticField(min_length=2, max_length=100)
    password: str | None = PydanticField(default=None, min_length=6, max_length=128)


class InviteRead(ApiSchema):
    id: uuid.UUID
    email: str
    project_id: uuid.UUID
    type: EmailInviteType
    status: EmailInviteStatus
    accessibility: Accessibility
    expires_at: datetime
    is_expired: bool
    created_at: datetime


class InviteIssued(InviteRead):
    email_delivered: bool


class InviteValidation(ApiSchema):
    valid: bool = True
    invite: InviteRead
    project_title: str
    requires_registration: bool


class InviteAccepted(ApiSchema):
    project_id: uuid.UUID
    user_profile_id: uuid.UUID
    accessibility: Accessibility
    # Set when the grant went to a profile other than the caller's current one
    auth: AuthPayload | None = None
