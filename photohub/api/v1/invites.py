"""Project invite endpoints.

``validate`` and ``add-project-customer-and-register`` are public: the
invite token is the credential. Everything else needs a bearer token.
"""

import uuid
from typing import Annotated

from fastapi import APIRouter, Query, Request, status

from photohub.api.deps import Auth, Email, Session
from photohub.api.responses import Envelope, ok
from photohub.core.rate_limit import limiter
from photohub.models.invite import (
    InviteAccept,
    InviteAccepted,
    InviteCreate,
    InviteIssued,
    InviteRead,
    InviteRegister,
    InviteValidation,
)
from photohub.models.user import AuthPayload
from photohub.services import invites as invite_service

router = APIRouter(prefix="/invites", tags=["invites"])


@router.get("/validate/{token}", response_model=Envelope[InviteValidation])
@limiter.limit("30/minute")
async def validate_invite(request: Request, token: str, session: Session) -> Envelope:
    return ok(await invite_service.validate_invite(session, token))


@router.post("/add-project-customer-and-register", response_model=Envelope[AuthPayload])
@limiter.limit("10/minute")
async def accept_and_register(request: Request, body: InviteRegister, session: Session) -> Envelope:
    """Accept an invite without a session; creates or completes the account and signs in."""
    payload = await invite_service.accept_user_invite(session, body.token, body.name, body.password)
    return ok(payload, "Invite accepted successfully")


@router.get("", response_model=Envelope[list[InviteRead]])
async def list_invites(
    project_id: Annotated[uuid.UUID, Query(alias="projectId")], auth: Auth, session: Session,
) -> Envelope:
    return ok(await invite_service.list_invites(session, auth, project_id))


@router.post(
    "/add-project-customer",
    response_model=Envelope[InviteIssued],
    status_code=status.HTTP_201_CREATED,
)
async def add_project_customer(
    body: InviteCreate, auth: Auth, session: Session, email_service: Email,
) -> Envelope:
    issued = await invite_service.issue_invite(
        session, auth, email_service, body.project_id, body.email, body.accessibility,
    )
    message = (
        "Invite sent successfully"
        if issued.email_delivered
        else "Invite created, but the email could not be delivered. Try resending it."
    )
    return ok(issued, message)


@router.post("/accept-project-invite", response_model=Envelope[InviteAccepted])
async def accept_project_invite(body: InviteAccept, auth: Auth, session: Session) -> Envelope:
    accepted = await invite_service.accept_invite_for_existing_user(session, auth, body.token)
    return ok(accepted, "Project invite accepted successfully")


@router.post("/{invite_id}/resend", response_model=Envelope[InviteIssued])
async def resend_invite(
    invite_id: uuid.UUID, auth: Auth, session: Session, email_service: Email,
) -> Envelope:
    issued = await invite_service.resend_invite(session, auth, email_service, invite_id)
    message = "Invite resent successfully" if issued.email_delivered else "Invite email could not be delivered"
    return ok(issued, message)
