"""Authentication endpoints: email check, login, signup, Google OAuth, token refresh."""

import uuid
from datetime import timedelta
from urllib.parse import urlencode

from fastapi import APIRouter, Request
from fastapi.responses import RedirectResponse
from pydantic import EmailStr
from pydantic import Field as PydanticField

from photohub.api.deps import Auth, Email, Session
from photohub.api.responses import Envelope, ok
from photohub.core.config import get_settings
from photohub.core.errors import NotFoundError, ValidationError
from photohub.core.rate_limit import limiter
from photohub.core.security import GOOGLE_SIGNUP, create_purpose_token, decode_purpose_token
from photohub.models.base import ApiSchema
from photohub.models.tenant import Tenant, TenantRead
from photohub.models.user import (
    AuthPayload,
    User,
    UserProfile,
    UserProfileRead,
    UserRead,
    UserRole,
)
from photohub.services import auth as auth_service
from photohub.services import google_oauth

router = APIRouter(prefix="/auth", tags=["auth"])
settings = get_settings()


# ── Schemas ──────────────────────────────────────────────────

class CheckEmailRequest(ApiSchema):
    email: EmailStr


class LoginRequest(ApiSchema):
    email: EmailStr
    password: str | None = PydanticField(default=None, min_length=6, max_length=128)
    user_profile_id: uuid.UUID | None = None


class VerifyEmailRequest(ApiSchema):
    email: EmailStr
    name: str = PydanticField(min_length=2, max_length=100)
    role: UserRole
    verification_token: str = PydanticField(min_length=1)
    password: str | None = PydanticField(default=None, min_length=6, max_length=128)


class RoleSelectionRequest(ApiSchema):
    signup_token: str = PydanticField(min_length=1)
    role: UserRole


class RefreshRequest(ApiSchema):
    refresh_token: str = PydanticField(min_length=1)


class LogoutRequest(ApiSchema):
    refresh_token: str | None = None


class AccessTokenRead(ApiSchema):
    access_token: str


class ProfileRead(ApiSchema):
    user: UserRead
    user_profile: UserProfileRead
    tenant: TenantRead | None = None


# ── Routes ───────────────────────────────────────────────────

@router.post("/check-email", response_model=Envelope[dict])
@limiter.limit("20/minute")
async def check_email(
    request: Request, body: CheckEmailRequest, session: Session, email_service: Email,
) -> Envelope:
    """First step of sign-in: tell the client whether to ask for a password or a verification code."""
    data = await auth_service.check_email(session, email_service, body.email)
    message = (
        "User found. Password required for login."
        if data["userExists"]
        else "Verification email sent. Please check your inbox."
    )
    return ok(data, message)


@router.post("/login", response_model=Envelope[AuthPayload])
@limiter.limit("10/minute")
async def login(request: Request, body: LoginRequest, session: Session) -> Envelope:
    payload = await auth_service.login(session, body.email, body.password, body.user_profile_id)
    return ok(payload, "Login successful")


@router.post("/verify-email", response_model=Envelope[AuthPayload])
@limiter.limit("10/minute")
async def verify_email(
    request: Request, body: VerifyEmailRequest, session: Session, email_service: Email,
) -> Envelope:
    payload = await auth_service.verify_email_and_create_user(
        session,
        email_service,
        email=body.email,
        name=body.name,
        role=body.role,
        verification_token=body.verification_token,
        password=body.password,
    )
    return ok(payload, "Email verified and account created")


@router.get("/google")
async def google_login(role: UserRole | None = None) -> RedirectResponse:
    return RedirectResponse(google_oauth.authorization_url(role))


@router.get("/google/callback")
async def google_callback(code: str, state: str, session: Session) -> RedirectResponse:
    """Finish the OAuth dance and hand the result to the frontend via redirect."""
    claims = google_oauth.verify_state(state)
    profile = await google_oauth.fetch_profile(code)
    role = UserRole(claims["role"]) if claims.get("role") else None

    result = await auth_service.google_sign_in(session, profile.email, profile.name, role)
    if result is None:
        signup_token = create_purpose_token(
            GOOGLE_SIGNUP,
            {"email": profile.email, "name": profile.name},
            timedelta(minutes=30),
        )
        query = urlencode({"email": profile.email, "name": profile.name, "signupToken": signup_token})
        return RedirectResponse(f"{settings.frontend_url}/select-role?{query}")

    payload, is_new_user = result
    query = urlencode(
        {
            "token": payload.access_token,
            "refresh": payload.refresh_token,
            "newUser": str(is_new_user).lower(),
        }
    )
    return RedirectResponse(f"{settings.frontend_url}/auth/callback?{query}")


@router.post("/google/role-selection", response_model=Envelope[AuthPayload])
async def google_role_selection(body: RoleSelectionRequest, session: Session) -> Envelope:
    claims = auth_service.decode_or_raise(decode_purpose_token, body.signup_token, GOOGLE_SIGNUP)
    result = await auth_service.google_sign_in(session, claims["email"], claims["name"], body.role)
    if result is None:
        raise ValidationError("Role selection failed")
    payload, _ = result
    return ok(payload, "Account created successfully")


@router.post("/refresh", response_model=Envelope[AccessTokenRead])
async def refresh(body: RefreshRequest, session: Session) -> Envelope:
    access_token = await auth_service.refresh_access_token(session, body.refresh_token)
    return ok(AccessTokenRead(access_token=access_token), "Token refreshed")


@router.post("/logout", response_model=Envelope[None])
async def logout(body: LogoutRequest, session: Session) -> Envelope:
    if body.refresh_token:
        await auth_service.logout(session, body.refresh_token)
    return ok(None, "Logged out successfully")


async def current_profile(auth: Auth, session: Session) -> ProfileRead:
    user = await session.get(User, auth.user_id)
    profile = await session.get(UserProfile, auth.user_profile_id)
    if user is None or profile is None:
        raise NotFoundError("User profile not found")
    tenant = await session.get(Tenant, profile.tenant_id) if profile.tenant_id else None
    return ProfileRead(
        user=UserRead.model_validate(user),
        user_profile=UserProfileRead.model_validate(profile),
        tenant=TenantRead.model_validate(tenant) if tenant else None,
    )


@router.get("/profile", response_model=Envelope[ProfileRead])
async def get_profile(auth: Auth, session: Session) -> Envelope:
    return ok(await current_profile(auth, session))
