"""Identity and token issuance: signup, login, refresh, logout, principal resolution."""

import logging
import re
import uuid
from dataclasses import dataclass
from datetime import timedelta

from jose import ExpiredSignatureError, JWTError
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from photohub.core.config import get_settings
from photohub.core.errors import (
    ConflictError,
    ErrorContext,
    InvalidTokenError,
    NotFoundError,
    TokenExpiredError,
    UnauthorizedError,
    ValidationError,
)
from photohub.core.security import (
    EMAIL_VERIFICATION,
    create_access_token,
    create_purpose_token,
    create_refresh_token,
    decode_access_token,
    decode_purpose_token,
    decode_refresh_token,
    hash_password,
    hash_token,
    verify_password,
)
from photohub.models.base import new_uuid, utcnow
from photohub.models.refresh_token import RefreshToken
from photohub.models.tenant import Tenant, TenantRead
from photohub.models.user import (
    AuthPayload,
    User,
    UserProfile,
    UserProfileRead,
    UserRead,
    UserRole,
)
from photohub.services.access import Principal
from photohub.services.email import EmailDeliveryError, EmailService, VerificationEmail, WelcomeEmail

logger = logging.getLogger(__name__)
settings = get_settings()


@dataclass
class Identity:
    user: User
    profile: UserProfile
    tenant: Tenant | None = None


def normalize_email(email: str) -> str:
    return email.strip().lower()


def tenant_slug(name: str) -> str:
    """Kebab-case name plus a short random suffix, e.g. ``jane-doe-1a2b3c4d``."""
    base = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-") or "tenant"
    return f"{base[:100]}-{new_uuid().hex[:8]}"


def decode_or_raise(decode, token: str, *args) -> dict:
    """Run a jose decoder and map its failures onto the error taxonomy."""
    try:
        return decode(token, *args)
    except ExpiredSignatureError as exc:
        raise TokenExpiredError() from exc
    except JWTError as exc:
        raise InvalidTokenError() from exc


# ── Lookups ──────────────────────────────────────────────────

async def find_user_by_email(session: AsyncSession, email: str) -> User | None:
    result = await session.execute(select(User).where(User.email == normalize_email(email)))
    return result.scalar_one_or_none()


async def select_profile(
    session: AsyncSession, user: User, user_profile_id: uuid.UUID | None = None,
) -> UserProfile:
    """The requested profile, or the user's earliest profile when none is named."""
    stmt = select(UserProfile).where(UserProfile.user_id == user.id)
    if user_profile_id is not None:
        stmt = stmt.where(UserProfile.id == user_profile_id)
    stmt = stmt.order_by(UserProfile.created_at.asc()).limit(1)  # type: ignore[union-attr]
    result = await session.execute(stmt)
    profile = result.scalar_one_or_none()
    if profile is None:
        raise NotFoundError("User profile not found")
    return profile


async def load_identity(session: AsyncSession, user: User, profile: UserProfile) -> Identity:
    tenant = await session.get(Tenant, profile.tenant_id) if profile.tenant_id else None
    return Identity(user=user, profile=profile, tenant=tenant)


async def resolve_principal(session: AsyncSession, access_token: str) -> Principal:
    """Verify an access token and confirm its user and profile still exist."""
    payload = decode_or_raise(decode_access_token, access_token)
    try:
        user_id = uuid.UUID(payload["userId"])
        profile_id = uuid.UUID(payload["userProfileId"])
    except (KeyError, TypeError, ValueError) as exc:
        raise InvalidTokenError("Malformed token payload") from exc

    user = await session.get(User, user_id)
    if user is None:
        raise UnauthorizedError("User no longer exists")
    profile = await session.get(UserProfile, profile_id)
    if profile is None or profile.user_id != user.id:
        raise UnauthorizedError("User profile no longer exists")

    return Principal(
        user_id=user.id,
        user_profile_id=profile.id,
        role=str(profile.role),
        tenant_id=profile.tenant_id,
        email=user.email,
    )


# ── Creation ─────────────────────────────────────────────────

async def create_user(
    session: AsyncSession,
    email: str,
    name: str,
    role: UserRole,
    password: str | None = None,
    verified: bool = True,
) -> Identity:
    """Add user, tenant (enterprise only) and profile to the session.

    The caller owns the transaction; nothing is committed here.
    """
    user = User(
        email=normalize_email(email),
        name=name,
        password_hash=hash_password(password) if password else None,
        is_verified=verified,
    )
    session.add(user)
    await session.flush()

    tenant = None
    if role == UserRole.ENTERPRISE:
        tenant = Tenant(name=f"{name}'s Organization", slug=tenant_slug(name), created_by=user.id)
        session.add(tenant)
        await session.flush()

    profile = UserProfile(
        user_id=user.id,
        role=role,
        name=name,
        tenant_id=tenant.id if tenant else None,
    )
    session.add(profile)
    await session.flush()
    return Identity(user=user, profile=profile, tenant=tenant)


# ── Tokens ───────────────────────────────────────────────────

async def issue_tokens(session: AsyncSession, identity: Identity) -> AuthPayload:
    """Mint an access/refresh pair, persist the refresh hash, and commit."""
    user, profile = identity.user, identity.profile
    access_token = create_access_token(
        user_id=user.id,
        user_profile_id=profile.id,
        role=profile.role,
        tenant_id=profile.tenant_id,
        email=user.email,
    )
    refresh_token = create_refresh_token(user.id)
    session.add(
        RefreshToken(
            token_hash=hash_token(refresh_token),
            user_id=user.id,
            user_profile_id=profile.id,
            expires_at=utcnow() + timedelta(days=settings.refresh_token_expire_days),
        )
    )
    await session.commit()

    return AuthPayload(
        user=UserRead.model_validate(user),
        user_profile=UserProfileRead.model_validate(profile),
        tenant=TenantRead.model_validate(identity.tenant) if identity.tenant else None,
        access_token=access_token,
        refresh_token=refresh_token,
    )


async def refresh_access_token(session: AsyncSession, refresh_token: str) -> str:
    payload = decode_or_raise(decode_refresh_token, refresh_token)
    result = await session.execute(
        select(RefreshToken).where(RefreshToken.token_hash == hash_token(refresh_token))
    )
    record = result.scalar_one_or_none()
    if record is None or str(record.user_id) != payload.get("userId"):
        raise InvalidTokenError("Invalid or revoked refresh token")
    if record.expires_at < utcnow():
        raise TokenExpiredError("Refresh token expired")

    user = await session.get(User, record.user_id)
    profile = await session.get(UserProfile, record.user_profile_id)
    if user is None or profile is None:
        raise UnauthorizedError("User profile not found")

    return create_access_token(
        user_id=user.id,
        user_profile_id=profile.id,
        role=profile.role,
        tenant_id=profile.tenant_id,
        email=user.email,
    )


async def logout(session: AsyncSession, refresh_token: str) -> None:
    """Revoke a refresh token. Outstanding access tokens stay valid until they expire."""
    await session.execute(
        delete(RefreshToken).where(RefreshToken.token_hash == hash_token(refresh_token))
    )
    await session.commit()


# ── Sign-in flows ────────────────────────────────────────────

async def check_email(session: AsyncSession, email_service: EmailService, email: str) -> dict:
    user = await find_user_by_email(session, email)
    if user is not None:
        return {
            "userExists": True,
            "requiresPassword": user.password_hash is not None,
            "user": {"email": user.email, "name": user.name, "isVerified": user.is_verified},
        }

    token = create_purpose_token(
        EMAIL_VERIFICATION,
        {"email": normalize_email(email)},
        timedelta(hours=settings.email_verification_expire_hours),
    )
    delivered = True
    try:
        await email_service.send(VerificationEmail(email=normalize_email(email), token=token))
    except EmailDeliveryError:
        logger.warning("Verification email to %s was not delivered", email, exc_info=True)
        delivered = False
    return {"userExists": False, "requiresVerification": True, "emailDelivered": delivered}


async def login(
    session: AsyncSession,
    email: str,
    password: str | None,
    user_profile_id: uuid.UUID | None = None,
) -> AuthPayload:
    user = await find_user_by_email(session, email)
    if user is None:
        raise NotFoundError(f"User with email {normalize_email(email)} does not exist")
    if not user.is_verified:
        raise ValidationError(f"User with email {user.email} is not verified")
    if not password:
        raise ValidationError(
            "Password required",
            ErrorContext(field="password", suggestion="Provide the account password"),
        )
    if user.password_hash is None or not verify_password(password, user.password_hash):
        raise UnauthorizedError("Invalid credentials")

    profile = await select_profile(session, user, user_profile_id)
    return await issue_tokens(session, await load_identity(session, user, profile))


async def verify_email_and_create_user(
    session: AsyncSession,
    email_service: EmailService,
    email: str,
    name: str,
    role: UserRole,
    verification_token: str,
    password: str | None = None,
) -> AuthPayload:
    claims = decode_or_raise(decode_purpose_token, verification_token, EMAIL_VERIFICATION)
    email = normalize_email(email)
    if claims.get("email") != email:
        raise ValidationError(
            "Verification token does not match this email",
            ErrorContext(field="email"),
        )
    if await find_user_by_email(session, email) is not None:
        raise ConflictError("An account with this email already exists")

    identity = await create_user(session, email, name, role, password=password, verified=True)
    payload = await issue_tokens(session, identity)

    try:
        await email_service.send(
            WelcomeEmail(
                email=email,
                name=name,
                role=str(role),
                tenant_name=identity.tenant.name if identity.tenant else None,
            )
        )
    except EmailDeliveryError:
        logger.warning("Welcome email to %s was not delivered", email, exc_info=True)
    return payload


async def google_sign_in(
    session: AsyncSession,
    email: str,
    name: str,
    role: UserRole | None = None,
) -> tuple[AuthPayload, bool] | None:
    """Sign in or sign up a Google-verified email.

    Returns ``(payload, is_new_user)``, or None when the email is unknown and
    no role was chosen yet.
    """
    user = await find_user_by_email(session, email)
    if user is not None:
        if not user.is_verified:
            user.is_verified = True
            session.add(user)
        profile = await select_profile(session, user)
        return await issue_tokens(session, await load_identity(session, user, profile)), False

    if role is None:
        return None

    identity = await create_user(session, email, name, role, verified=True)
    return await issue_tokens(session, identity), True
