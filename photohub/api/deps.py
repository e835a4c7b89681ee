"""FastAPI dependencies: caller identity, DB session, and injected collaborators."""

from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from photohub.core.database import get_session
from photohub.core.errors import ErrorContext, UnauthorizedError
from photohub.services.access import Principal
from photohub.services.auth import resolve_principal
from photohub.services.email import EmailService
from photohub.services.storage import Storage

bearer_scheme = HTTPBearer(auto_error=False)


async def get_principal(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> Principal:
    """Resolve the bearer access token, re-checking that its user and profile still exist."""
    if credentials is None:
        raise UnauthorizedError(
            "Authentication required",
            ErrorContext(suggestion="Send an 'Authorization: Bearer <accessToken>' header"),
        )
    return await resolve_principal(session, credentials.credentials)


def get_email_service(request: Request) -> EmailService:
    return request.app.state.email_service


def get_storage(request: Request) -> Storage:
    return request.app.state.storage


# Typed shorthand for use in route signatures
Auth = Annotated[Principal, Depends(get_principal)]
Session = Annotated[AsyncSession, Depends(get_session)]
Email = Annotated[EmailService, Depends(get_email_service)]
BlobStorage = Annotated[Storage, Depends(get_storage)]
