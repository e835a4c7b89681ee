"""Invite lifecycle: issue, validate, accept, list, resend.

Stored states are PENDING and ACCEPTED. EXPIRED is never written; it is
derived from ``expires_at`` on every read and every accept. The
PENDING -> ACCEPTED transition is a conditional UPDATE checked by row count,
run in the same transaction as the grant insert, so a token is redeemed at
most once even under concurrent requests.
"""

import json
import logging
import uuid
from datetime import timedelta

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from photohub.core.config import get_settings
from photohub.core.database import atomic
from photohub.core.errors import (
    ConflictError,
    ErrorContext,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from photohub.core.security import generate_token, hash_password, verify_password
from photohub.models.base import utcnow
from photohub.models.invite import (
    EmailInvite,
    EmailInviteStatus,
    EmailInviteType,
    InviteAccepted,
    InviteIssued,
    InviteRead,
    InviteValidation,
)
from photohub.models.project import Accessibility, Project, ProjectUserProfile
from photohub.models.user import AuthPayload, User, UserProfile, UserRole
from photohub.services.access import (
    Principal,
    authorize_project,
    ensure_same_tenant,
    get_grant,
)
from photohub.services.auth import find_user_by_email, issue_tokens, load_identity, normalize_email
from photohub.services.email import (
    EmailDeliveryError,
    EmailService,
    ExistingUserInvite,
    InviteEmail,
    NewUserInvite,
)

logger = logging.getLogger(__name__)
settings = get_settings()

INVITE_TYPES = (EmailInviteType.PROJECT_INVITE, EmailInviteType.PROJECT_INVITE_AND_REGISTER)


def to_read(invite: EmailInvite) -> InviteRead:
    return InviteRead(
        id=invite.id,
        email=invite.email,
        project_id=invite.project_id,
        type=invite.type,
        status=invite.status,
        accessibility=invite.access_level,
        expires_at=invite.expires_at,
        is_expired=invite.is_expired,
        created_at=invite.created_at,
    )


def _invite_email(invite: EmailInvite, project_title: str, sender_name: str) -> InviteEmail:
    variant = ExistingUserInvite if invite.type == EmailInviteType.PROJECT_INVITE else NewUserInvite
    return variant(
        email=invite.email,
        project_title=project_title,
        sender_name=sender_name,
        token=invite.token,
    )


async def _deliver(email_service: EmailService, message: InviteEmail) -> bool:
    try:
        await email_service.send(message)
    except EmailDeliveryError:
        logger.warning("Invite email to %s was not delivered", message.email, exc_info=True)
        return False
    return True


async def _sender_name(session: AsyncSession, project: Project) -> str:
    """Invites are signed by the project's creator, whoever sends them."""
    profile = await session.get(UserProfile, project.created_by)
    return profile.name if profile and profile.name else "Project Owner"


# ── Token checks ─────────────────────────────────────────────

async def _load_by_token(session: AsyncSession, token: str) -> EmailInvite:
    result = await session.execute(
        select(EmailInvite).where(
            EmailInvite.token == token,
            EmailInvite.type.in_(INVITE_TYPES),  # type: ignore[attr-defined]
        )
    )
    invite = result.scalar_one_or_none()
    if invite is None:
        raise NotFoundError("Invalid invite token")
    return invite


def _check_usable(invite: EmailInvite) -> None:
    if invite.status != EmailInviteStatus.PENDING:
        raise ValidationError("Invite already accepted or expired")
    if invite.is_expired:
        raise ValidationError(
            "Invite expired",
            ErrorContext(suggestion="Ask the project owner to send a new invite"),
        )


async def _live_project(session: AsyncSession, project_id: uuid.UUID) -> Project:
    project = await session.get(Project, project_id)
    if project is None or project.deleted_at is not None:
        raise NotFoundError("Project not found")
    return project


async def claim_invite(session: AsyncSession, invite_id: uuid.UUID) -> bool:
    """Atomically move a live PENDING invite to ACCEPTED. False if another request won."""
    result = await session.execute(
        update(EmailInvite)
        .where(
            EmailInvite.id == invite_id,
            EmailInvite.status == EmailInviteStatus.PENDING,
            EmailInvite.expires_at > utcnow(),
        )
        .values(status=EmailInviteStatus.ACCEPTED, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


# ── Grants ───────────────────────────────────────────────────

async def _profile_for_project(
    session: AsyncSession,
    user: User,
    project: Project,
    name: str,
    preferred_profile_id: uuid.UUID | None = None,
) -> UserProfile:
    """A profile of ``user`` bound to the project's tenant, created as CLIENT if missing."""
    result = await session.execute(
        select(UserProfile)
        .where(UserProfile.user_id == user.id, UserProfile.tenant_id == project.tenant_id)
        .order_by(UserProfile.created_at.asc())  # type: ignore[union-attr]
    )
    profiles = list(result.scalars().all())
    for profile in profiles:
        if profile.id == preferred_profile_id:
            return profile
    if profiles:
        return profiles[0]

    profile = UserProfile(
        user_id=user.id,
        role=UserRole.CLIENT,
        name=name or user.name or user.email.split("@")[0],
        tenant_id=project.tenant_id,
    )
    session.add(profile)
    await session.flush()
    return profile


async def _grant(
    session: AsyncSession, invite: EmailInvite, project: Project, profile: UserProfile,
) -> ProjectUserProfile:
    ensure_same_tenant(project.tenant_id, profile.tenant_id)
    if await get_grant(session, project.id, profile.id) is not None:
        raise ConflictError("You already have access to this project")
    grant = ProjectUserProfile(
        project_id=project.id,
        user_profile_id=profile.id,
        tenant_id=project.tenant_id,
        accessibility=invite.access_level,
        created_by=invite.created_by,
    )
    session.add(grant)
    await session.flush()
    return grant


# ── Operations ───────────────────────────────────────────────

async def issue_invite(
    session: AsyncSession,
    principal: Principal,
    email_service: EmailService,
    project_id: uuid.UUID,
    email: str,
    accessibility: Accessibility,
) -> InviteIssued:
    """Persist a new PENDING invite, then try to deliver it.

    Delivery failure does not undo the invite; it is reported as
    ``email_delivered=False`` and can be retried with ``resend_invite``.
    """
    project = await authorize_project(session, principal, project_id, Accessibility.ADMIN)
    email = normalize_email(email)

    result = await session.execute(
        select(EmailInvite).where(
            EmailInvite.project_id == project.id,
            EmailInvite.email == email,
            EmailInvite.type.in_(INVITE_TYPES),  # type: ignore[attr-defined]
        )
    )
    for existing in result.scalars().all():
        if existing.status == EmailInviteStatus.ACCEPTED:
            raise ValidationError(
                "User has already accepted this invite", ErrorContext(field="email"),
            )
        if not existing.is_expired:
            raise ValidationError(
                "Invite already pending for this email",
                ErrorContext(field="email", suggestion="Resend the existing invite instead"),
            )

    existing_user = await find_user_by_email(session, email)
    invite_type = (
        EmailInviteType.PROJECT_INVITE if existing_user else EmailInviteType.PROJECT_INVITE_AND_REGISTER
    )
    token = generate_token()
    variant_cls = ExistingUserInvite if existing_user else NewUserInvite
    sender_name = await _sender_name(session, project)
    message = variant_cls(
        email=email, project_title=project.title, sender_name=sender_name, token=token,
    )

    invite = EmailInvite(
        email=email,
        project_id=project.id,
        token=token,
        type=invite_type,
        expires_at=utcnow() + timedelta(days=settings.invite_expiry_days),
        details=json.dumps(
            {
                "accessLevel": str(accessibility),
                "existingUserId": str(existing_user.id) if existing_user else None,
            }
        ),
        invite_link=message.link(email_service.frontend_url),
        created_by=principal.user_profile_id,
    )
    session.add(invite)
    await session.commit()
    logger.info("Issued %s invite %s for project %s", invite_type, invite.id, project.id)

    delivered = await _deliver(email_service, message)
    return InviteIssued(**to_read(invite).model_dump(), email_delivered=delivered)


async def resend_invite(
    session: AsyncSession,
    principal: Principal,
    email_service: EmailService,
    invite_id: uuid.UUID,
) -> InviteIssued:
    invite = await session.get(EmailInvite, invite_id)
    if invite is None:
        raise NotFoundError("Invite not found")
    project = await authorize_project(session, principal, invite.project_id, Accessibility.ADMIN)
    _check_usable(invite)

    message = _invite_email(invite, project.title, await _sender_name(session, project))
    delivered = await _deliver(email_service, message)
    return InviteIssued(**to_read(invite).model_dump(), email_delivered=delivered)


async def validate_invite(session: AsyncSession, token: str) -> InviteValidation:
    """Read-only usability check for a token; never changes state."""
    invite = await _load_by_token(session, token)
    _check_usable(invite)
    project = await _live_project(session, invite.project_id)
    user = await find_user_by_email(session, invite.email)
    return InviteValidation(
        invite=to_read(invite),
        project_title=project.title,
        requires_registration=user is None or user.password_hash is None,
    )


async def list_invites(
    session: AsyncSession, principal: Principal, project_id: uuid.UUID,
) -> list[InviteRead]:
    await authorize_project(session, principal, project_id, Accessibility.ADMIN)
    result = await session.execute(
        select(EmailInvite)
        .where(
            EmailInvite.project_id == project_id,
            EmailInvite.type.in_(INVITE_TYPES),  # type: ignore[attr-defined]
        )
        .order_by(EmailInvite.created_at.desc())  # type: ignore[union-attr]
    )
    return [to_read(invite) for invite in result.scalars().all()]


async def accept_invite_for_existing_user(
    session: AsyncSession, principal: Principal, token: str,
) -> InviteAccepted:
    invite = await _load_by_token(session, token)
    _check_usable(invite)

    user = await session.get(User, principal.user_id)
    if user is None or user.email != invite.email:
        raise ValidationError(
            "This invite was not sent to your email. Please login with the correct account.",
            ErrorContext(field="email"),
        )
    project = await _live_project(session, invite.project_id)

    async with atomic(session):
        if not await claim_invite(session, invite.id):
            raise ValidationError("Invite already accepted or expired")
        invite.status = EmailInviteStatus.ACCEPTED
        profile = await _profile_for_project(
            session, user, project, user.name, preferred_profile_id=principal.user_profile_id,
        )
        grant = await _grant(session, invite, project, profile)

    logger.info("Invite %s accepted by user %s", invite.id, user.id)
    auth = None
    if profile.id != principal.user_profile_id:
        # The caller's tokens carry another profile; hand out a pair for the granted one
        auth = await issue_tokens(session, await load_identity(session, user, profile))
    return InviteAccepted(
        project_id=project.id,
        user_profile_id=profile.id,
        accessibility=grant.accessibility,
        auth=auth,
    )


async def accept_user_invite(
    session: AsyncSession, token: str, name: str, password: str | None,
) -> AuthPayload:
    """Accept without a session: complete or create the account, grant access, sign in."""
    invite = await _load_by_token(session, token)
    _check_usable(invite)
    project = await _live_project(session, invite.project_id)
    user = await find_user_by_email(session, invite.email)

    if user is None and not password:
        raise ValidationError(
            "Password required to create an account",
            ErrorContext(field="password"),
        )

    async with atomic(session):
        if not await claim_invite(session, invite.id):
            raise ValidationError("Invite already accepted or expired")
        invite.status = EmailInviteStatus.ACCEPTED

        if user is None:
            user = User(
                email=invite.email,
                name=name,
                password_hash=hash_password(password),
                is_verified=True,
            )
            session.add(user)
            await session.flush()
        elif user.password_hash is not None:
            if not password or not verify_password(password, user.password_hash):
                raise UnauthorizedError("Invalid credentials")
        else:
            if password:
                user.password_hash = hash_password(password)
            user.name = name
            user.is_verified = True
            session.add(user)

        profile = await _profile_for_project(session, user, project, name)
        await _grant(session, invite, project, profile)

    logger.info("Invite %s accepted by user %s", invite.id, user.id)
    return await issue_tokens(session, await load_identity(session, user, profile))
