"""RefreshToken model: server-side record of an issued refresh token."""

import uuid
from datetime import datetime

from sqlmodel import Field, SQLModel

from photohub.models.base import TimestampMixin, new_uuid


class RefreshToken(TimestampMixin, SQLModel, table=True):
    __tablename__ = "refresh_tokens"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    token_hash: str = Field(max_length=64, unique=True, nullable=False, index=True)
    user_id: uuid.UUID = Field(foreign_key="users.id", nullable=False, index=True)
    user_profile_id: uuid.UUID = Field(foreign_key="user_profiles.id", nullable=False)
    expires_at: datetime = Field(nullable=False)
