"""Single-use invite redemption across concurrent sessions."""

import json
from datetime import timedelta

import pytest
import pytest_asyncio
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel, select

from photohub.core.errors import ValidationError
from photohub.core.security import generate_token
from photohub.models.base import utcnow
from photohub.models.invite import EmailInvite, EmailInviteStatus, EmailInviteType
from photohub.models.project import Project, ProjectUserProfile
from photohub.models.user import UserRole
from photohub.services.auth import create_user
from photohub.services.invites import accept_user_invite, claim_invite


@pytest_asyncio.fixture
async def file_factory(tmp_path):
    """Two sessions must see each other's commits, so use a file database."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'invites.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


async def _seed(factory) -> EmailInvite:
    async with factory() as session:
        owner = await create_user(
            session, "owner@studio.com", "Olivia Owner", UserRole.ENTERPRISE, password="ownerpass1",
        )
        project = Project(
            tenant_id=owner.tenant.id, title="Smith Wedding", created_by=owner.profile.id,
        )
        session.add(project)
        await session.flush()
        invite = EmailInvite(
            email="guest@example.com",
            project_id=project.id,
            token=generate_token(),
            type=EmailInviteType.PROJECT_INVITE_AND_REGISTER,
            expires_at=utcnow() + timedelta(days=7),
            details=json.dumps({"accessLevel": "VIEW_ONLY", "existingUserId": None}),
            invite_link="http://app.test/register",
            created_by=owner.profile.id,
        )
        session.add(invite)
        await session.commit()
        return invite


@pytest.mark.asyncio
async def test_claim_succeeds_once(file_factory):
    invite = await _seed(file_factory)

    async with file_factory() as session:
        assert await claim_invite(session, invite.id) is True
        await session.commit()
    async with file_factory() as session:
        assert await claim_invite(session, invite.id) is False


@pytest.mark.asyncio
async def test_claim_ignores_expired_invite(file_factory):
    invite = await _seed(file_factory)
    async with file_factory() as session:
        stored = await session.get(EmailInvite, invite.id)
        stored.expires_at = utcnow() - timedelta(seconds=1)
        session.add(stored)
        await session.commit()

        assert await claim_invite(session, invite.id) is False


@pytest.mark.asyncio
async def test_second_redemption_loses_even_with_stale_read(file_factory):
    """B reads PENDING before A commits; B's claim still fails and one grant exists."""
    invite = await _seed(file_factory)

    async with file_factory() as session_a, file_factory() as session_b:
        stale = await session_b.get(EmailInvite, invite.id)
        assert stale.status == EmailInviteStatus.PENDING

        payload = await accept_user_invite(session_a, invite.token, "Guest One", "guestpass1")
        assert payload.user.email == "guest@example.com"

        with pytest.raises(ValidationError, match="already accepted"):
            await accept_user_invite(session_b, invite.token, "Guest Two", "guestpass2")

    async with file_factory() as session:
        grants = (
            await session.execute(
                select(func.count()).select_from(ProjectUserProfile).where(
                    ProjectUserProfile.project_id == invite.project_id,
                )
            )
        ).scalar_one()
        assert grants == 1
        stored = await session.get(EmailInvite, invite.id)
        assert stored.status == EmailInviteStatus.ACCEPTED
