"""Access control evaluator.

Every resource operation passes the caller's principal through these checks
before touching persisted state. Tenant mismatches surface as not-found so
cross-tenant existence never leaks; missing or insufficient project grants
surface as forbidden.
"""

import logging
import uuid

from sqlalchemy import ColumnElement, and_, exists
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from photohub.core.errors import ErrorContext, ForbiddenError, NotFoundError
from photohub.models.album import Album
from photohub.models.photo import Photo
from photohub.models.project import Accessibility, Project, ProjectUserProfile

logger = logging.getLogger(__name__)


class Principal:
    """Resolved caller identity carried through a request."""

    __slots__ = ("user_id", "user_profile_id", "role", "tenant_id", "email")

    def __init__(
        self,
        user_id: uuid.UUID,
        user_profile_id: uuid.UUID,
        role: str,
        tenant_id: uuid.UUID | None,
        email: str,
    ) -> None:
        self.user_id = user_id
        self.user_profile_id = user_profile_id
        self.role = role
        self.tenant_id = tenant_id
        self.email = email


def require_tenant(principal: Principal) -> uuid.UUID:
    if principal.tenant_id is None:
        raise ForbiddenError(
            "Tenant access required",
            ErrorContext(suggestion="Sign in with a profile that belongs to a tenant"),
        )
    return principal.tenant_id


def require_resource_owner_tenant(
    principal: Principal, resource_tenant_id: uuid.UUID | None, resource: str = "Resource",
) -> None:
    """Guard for rows loaded by primary key; another tenant's row reads as missing."""
    if principal.tenant_id is None or principal.tenant_id != resource_tenant_id:
        raise NotFoundError(f"{resource} not found")


def ensure_same_tenant(parent_tenant_id: uuid.UUID, child_tenant_id: uuid.UUID | None) -> None:
    """Write-time isolation: a child row must carry its parent project's tenant."""
    if child_tenant_id != parent_tenant_id:
        logger.warning(
            "Rejected cross-tenant write: parent tenant %s, child tenant %s",
            parent_tenant_id, child_tenant_id,
        )
        raise ForbiddenError(
            "Cross-tenant write rejected",
            ErrorContext(field="tenantId", constraint="must match the parent project's tenant"),
        )


async def get_grant(
    session: AsyncSession, project_id: uuid.UUID, user_profile_id: uuid.UUID,
) -> ProjectUserProfile | None:
    stmt = select(ProjectUserProfile).where(
        ProjectUserProfile.project_id == project_id,
        ProjectUserProfile.user_profile_id == user_profile_id,
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def require_project_access(
    session: AsyncSession,
    principal: Principal,
    project_id: uuid.UUID,
    min_level: Accessibility = Accessibility.VIEW_ONLY,
) -> ProjectUserProfile:
    grant = await get_grant(session, project_id, principal.user_profile_id)
    if grant is None:
        raise ForbiddenError("You do not have access to this project")
    if not Accessibility(grant.accessibility).satisfies(min_level):
        raise ForbiddenError(
            f"{min_level} access required for this operation",
            ErrorContext(
                constraint=f"accessibility >= {min_level}",
                current=str(grant.accessibility),
            ),
        )
    return grant


def accessible_projects(principal: Principal) -> ColumnElement[bool]:
    """Predicate for live projects in the caller's tenant that the caller holds a grant on."""
    has_grant = exists().where(
        ProjectUserProfile.project_id == Project.id,
        ProjectUserProfile.user_profile_id == principal.user_profile_id,
    )
    return and_(
        Project.tenant_id == principal.tenant_id,
        Project.deleted_at.is_(None),  # type: ignore[union-attr]
        has_grant,
    )


# ── Tenant-scoped, soft-delete-aware lookups ─────────────────

async def get_project_or_404(
    session: AsyncSession, principal: Principal, project_id: uuid.UUID,
) -> Project:
    tenant_id = require_tenant(principal)
    stmt = select(Project).where(
        Project.id == project_id,
        Project.tenant_id == tenant_id,
        Project.deleted_at.is_(None),  # type: ignore[union-attr]
    )
    result = await session.execute(stmt)
    project = result.scalar_one_or_none()
    if project is None:
        raise NotFoundError("Project not found")
    return project


async def get_album_or_404(
    session: AsyncSession, principal: Principal, album_id: uuid.UUID,
) -> Album:
    tenant_id = require_tenant(principal)
    stmt = (
        select(Album)
        .join(Project, Project.id == Album.project_id)
        .where(
            Album.id == album_id,
            Album.tenant_id == tenant_id,
            Album.deleted_at.is_(None),  # type: ignore[union-attr]
            Project.deleted_at.is_(None),  # type: ignore[union-attr]
        )
    )
    result = await session.execute(stmt)
    album = result.scalar_one_or_none()
    if album is None:
        raise NotFoundError("Album not found")
    return album


async def get_photo_or_404(
    session: AsyncSession, principal: Principal, photo_id: uuid.UUID,
) -> tuple[Photo, Album]:
    """Return the photo together with its album (the album carries the project id)."""
    tenant_id = require_tenant(principal)
    stmt = (
        select(Photo, Album)
        .join(Album, Album.id == Photo.album_id)
        .join(Project, Project.id == Album.project_id)
        .where(
            Photo.id == photo_id,
            Photo.tenant_id == tenant_id,
            Photo.deleted_at.is_(None),  # type: ignore[union-attr]
            Album.deleted_at.is_(None),  # type: ignore[union-attr]
            Project.deleted_at.is_(None),  # type: ignore[union-attr]
        )
    )
    result = await session.execute(stmt)
    row = result.one_or_none()
    if row is None:
        raise NotFoundError("Photo not found")
    return row[0], row[1]


# ── Composite checks used by the resource routers ────────────

async def authorize_project(
    session: AsyncSession,
    principal: Principal,
    project_id: uuid.UUID,
    min_level: Accessibility,
) -> Project:
    project = await get_project_or_404(session, principal, project_id)
    await require_project_access(session, principal, project.id, min_level)
    return project


async def authorize_album(
    session: AsyncSession,
    principal: Principal,
    album_id: uuid.UUID,
    min_level: Accessibility,
) -> Album:
    album = await get_album_or_404(session, principal, album_id)
    await require_project_access(session, principal, album.project_id, min_level)
    return album


async def authorize_photo(
    session: AsyncSession,
    principal: Principal,
    photo_id: uuid.UUID,
    min_level: Accessibility,
) -> Photo:
    photo, album = await get_photo_or_404(session, principal, photo_id)
    await require_project_access(session, principal, album.project_id, min_level)
    return photo
