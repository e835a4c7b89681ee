"""Current-user alias kept for older clients."""

from fastapi import APIRouter

from photohub.api.deps import Auth, Session
from photohub.api.responses import Envelope, ok
from photohub.api.v1.auth import ProfileRead, current_profile

router = APIRouter(prefix="/user", tags=["user"])


@router.get("/get-me", response_model=Envelope[ProfileRead])
async def get_me(auth: Auth, session: Session) -> Envelope:
    return ok(await current_profile(auth, session))
