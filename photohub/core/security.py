"""Security utilities: password hashing, opaque tokens, and JWT helpers."""

import hashlib
import secrets
import uuid
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from passlib.context import CryptContext

from photohub.core.config import get_settings

settings = get_settings()

ACCESS = "access"
REFRESH = "refresh"
EMAIL_VERIFICATION = "email_verification"
OAUTH_STATE = "oauth_state"
GOOGLE_SIGNUP = "google_signup"

# ── Password hashing (Argon2) ────────────────────────────────

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


# ── Opaque tokens (SHA-256, deterministic for lookups) ───────

def hash_token(raw_token: str) -> str:
    """One-way SHA-256 hash for token storage.

    Refresh tokens are looked up by hash on every refresh/logout, so the hash
    must be deterministic. The raw tokens carry enough entropy that a fast
    hash is fine.
    """
    return hashlib.sha256(raw_token.encode()).hexdigest()


def generate_token() -> str:
    """Generate a cryptographically secure 256-bit URL-safe token."""
    return secrets.token_urlsafe(32)


# ── JWT ───────────────────────────────────────────────────────

def _encode(payload: dict, secret: str, expires_delta: timedelta) -> str:
    now = datetime.now(timezone.utc)
    payload = {**payload, "iat": now, "exp": now + expires_delta}
    return jwt.encode(payload, secret, algorithm=settings.jwt_algorithm)


def _decode(token: str, secret: str, token_type: str) -> dict:
    """Decode, verify signature/expiry, and check the ``type`` claim.

    Raises ``jose.ExpiredSignatureError`` / ``jose.JWTError`` on failure.
    """
    payload = jwt.decode(token, secret, algorithms=[settings.jwt_algorithm])
    if payload.get("type") != token_type:
        raise JWTError(f"Expected a {token_type} token")
    return payload


def create_access_token(
    user_id: uuid.UUID,
    user_profile_id: uuid.UUID,
    role: str,
    tenant_id: uuid.UUID | None,
    email: str,
    expires_delta: timedelta | None = None,
) -> str:
    payload = {
        "userId": str(user_id),
        "userProfileId": str(user_profile_id),
        "role": str(role),
        "tenantId": str(tenant_id) if tenant_id else None,
        "email": email,
        "type": ACCESS,
    }
    return _encode(
        payload,
        settings.jwt_secret_key,
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes),
    )


def decode_access_token(token: str) -> dict:
    return _decode(token, settings.jwt_secret_key, ACCESS)


def create_refresh_token(user_id: uuid.UUID) -> str:
    # jti keeps two tokens issued in the same second distinct
    payload = {"userId": str(user_id), "type": REFRESH, "jti": generate_token()}
    return _encode(
        payload,
        settings.jwt_refresh_secret_key,
        timedelta(days=settings.refresh_token_expire_days),
    )


def decode_refresh_token(token: str) -> dict:
    return _decode(token, settings.jwt_refresh_secret_key, REFRESH)


def create_purpose_token(token_type: str, claims: dict, expires_delta: timedelta) -> str:
    """Short-lived signed token for email verification, OAuth state, signup hand-off."""
    return _encode({**claims, "type": token_type}, settings.jwt_secret_key, expires_delta)


def decode_purpose_token(token: str, token_type: str) -> dict:
    return _decode(token, settings.jwt_secret_key, token_type)
