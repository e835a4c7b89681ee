"""V1 API router aggregation."""

from fastapi import APIRouter

from photohub.api.v1.albums import router as albums_router
from photohub.api.v1.auth import router as auth_router
from photohub.api.v1.email import router as email_router
from photohub.api.v1.invites import router as invites_router
from photohub.api.v1.photos import router as photos_router
from photohub.api.v1.projects import router as projects_router
from photohub.api.v1.user import router as user_router

v1_router = APIRouter(prefix="/v1")
v1_router.include_router(auth_router)
v1_router.include_router(user_router)
v1_router.include_router(projects_router)
v1_router.include_router(albums_router)
v1_router.include_router(photos_router)
v1_router.include_router(invites_router)
v1_router.include_router(email_router)
