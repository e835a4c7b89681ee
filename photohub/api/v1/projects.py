"""Project CRUD and collaborators, tenant-scoped and grant-checked."""

import uuid

from fastapi import APIRouter, status
from sqlalchemy import func, or_, update
from sqlmodel import select

from photohub.api.deps import Auth, Session
from photohub.api.responses import Envelope, Page, ok
from photohub.core.database import atomic
from photohub.core.errors import ConflictError, NotFoundError
from photohub.models.album import Album
from photohub.models.base import to_naive_utc, utcnow
from photohub.models.photo import Photo
from photohub.models.project import (
    Accessibility,
    AlbumPreview,
    CollaboratorCreate,
    CollaboratorRead,
    Project,
    ProjectCreate,
    ProjectDetail,
    ProjectRead,
    ProjectUpdate,
    ProjectUserProfile,
)
from photohub.models.user import UserProfile
from photohub.services.access import (
    accessible_projects,
    authorize_project,
    ensure_same_tenant,
    get_grant,
    require_resource_owner_tenant,
    require_tenant,
)

router = APIRouter(prefix="/projects", tags=["projects"])


# ── Helpers ───────────────────────────────────────────────────

async def _collaborators(
    session, project_ids: list[uuid.UUID],
) -> dict[uuid.UUID, list[CollaboratorRead]]:
    if not project_ids:
        return {}
    stmt = (
        select(ProjectUserProfile, UserProfile)
        .join(UserProfile, UserProfile.id == ProjectUserProfile.user_profile_id)
        .where(ProjectUserProfile.project_id.in_(project_ids))  # type: ignore[attr-defined]
        .order_by(ProjectUserProfile.created_at.asc())  # type: ignore[union-attr]
    )
    result = await session.execute(stmt)
    grouped: dict[uuid.UUID, list[CollaboratorRead]] = {pid: [] for pid in project_ids}
    for grant, profile in result.all():
        grouped[grant.project_id].append(
            CollaboratorRead(
                user_profile_id=profile.id,
                name=profile.name,
                role=str(profile.role),
                accessibility=grant.accessibility,
            )
        )
    return grouped


def _to_read(project: Project, collaborators: list[CollaboratorRead]) -> ProjectRead:
    read = ProjectRead.model_validate(project)
    read.collaborators = collaborators
    return read


# ── Endpoints ─────────────────────────────────────────────────

@router.post("", response_model=Envelope[ProjectRead], status_code=status.HTTP_201_CREATED)
async def create_project(body: ProjectCreate, auth: Auth, session: Session) -> Envelope:
    """Create a project; the creator is granted ADMIN in the same transaction."""
    tenant_id = require_tenant(auth)

    async with atomic(session):
        project = Project(
            tenant_id=tenant_id,
            title=body.title,
            description=body.description,
            event_date=to_naive_utc(body.event_date),
            created_by=auth.user_profile_id,
        )
        session.add(project)
        await session.flush()

        grant = ProjectUserProfile(
            project_id=project.id,
            user_profile_id=auth.user_profile_id,
            tenant_id=tenant_id,
            accessibility=Accessibility.ADMIN,
            created_by=auth.user_profile_id,
        )
        ensure_same_tenant(project.tenant_id, grant.tenant_id)
        session.add(grant)

    collaborators = await _collaborators(session, [project.id])
    return ok(_to_read(project, collaborators[project.id]), "Project created successfully")


@router.get("", response_model=Envelope[list[ProjectRead]])
async def list_projects(auth: Auth, session: Session, page: Page) -> Envelope:
    """Projects in the caller's tenant that the caller holds a grant on, newest first."""
    require_tenant(auth)
    conditions = [accessible_projects(auth)]
    if page.search:
        pattern = f"%{page.search}%"
        conditions.append(
            or_(
                Project.title.ilike(pattern),  # type: ignore[attr-defined]
                Project.description.ilike(pattern),  # type: ignore[union-attr]
            )
        )

    total = (
        await session.execute(select(func.count()).select_from(Project).where(*conditions))
    ).scalar_one()
    stmt = (
        select(Project)
        .where(*conditions)
        .order_by(Project.created_at.desc())  # type: ignore[union-attr]
        .offset(page.offset)
        .limit(page.limit)
    )
    projects = list((await session.execute(stmt)).scalars().all())
    collaborators = await _collaborators(session, [p.id for p in projects])
    return ok(
        [_to_read(p, collaborators[p.id]) for p in projects],
        pagination=page.pagination(total),
    )


@router.get("/{project_id}", response_model=Envelope[ProjectDetail])
async def get_project(project_id: uuid.UUID, auth: Auth, session: Session) -> Envelope:
    project = await authorize_project(session, auth, project_id, Accessibility.VIEW_ONLY)

    photo_count = (
        select(func.count())
        .select_from(Photo)
        .where(Photo.album_id == Album.id, Photo.deleted_at.is_(None))  # type: ignore[union-attr]
        .scalar_subquery()
    )
    stmt = (
        select(Album, photo_count)
        .where(Album.project_id == project.id, Album.deleted_at.is_(None))  # type: ignore[union-attr]
        .order_by(Album.created_at.asc())  # type: ignore[union-attr]
    )
    albums = [
        AlbumPreview(
            id=album.id,
            title=album.title,
            description=album.description,
            cover_image=album.cover_image,
            photo_count=count,
        )
        for album, count in (await session.execute(stmt)).all()
    ]
    collaborators = await _collaborators(session, [project.id])
    detail = ProjectDetail.model_validate(project)
    detail.collaborators = collaborators[project.id]
    detail.albums = albums
    return ok(detail)


@router.put("/{project_id}", response_model=Envelope[ProjectRead])
async def update_project(
    project_id: uuid.UUID, body: ProjectUpdate, auth: Auth, session: Session,
) -> Envelope:
    project = await authorize_project(session, auth, project_id, Accessibility.EDIT)

    updates = body.model_dump(exclude_unset=True)
    if "event_date" in updates:
        updates["event_date"] = to_naive_utc(updates["event_date"])
    for key, value in updates.items():
        setattr(project, key, value)
    project.updated_by = auth.user_profile_id
    project.updated_at = utcnow()

    session.add(project)
    await session.commit()
    await session.refresh(project)
    collaborators = await _collaborators(session, [project.id])
    return ok(_to_read(project, collaborators[project.id]), "Project updated successfully")


@router.delete("/{project_id}", response_model=Envelope[None])
async def delete_project(project_id: uuid.UUID, auth: Auth, session: Session) -> Envelope:
    """Soft-delete a project together with its live albums and photos."""
    project = await authorize_project(session, auth, project_id, Accessibility.ADMIN)
    now = utcnow()
    tombstone = {"deleted_at": now, "deleted_by": auth.user_profile_id, "updated_at": now}

    async with atomic(session):
        live_albums = select(Album.id).where(
            Album.project_id == project.id,
            Album.deleted_at.is_(None),  # type: ignore[union-attr]
        )
        await session.execute(
            update(Photo)
            .where(Photo.album_id.in_(live_albums), Photo.deleted_at.is_(None))  # type: ignore[attr-defined,union-attr]
            .values(**tombstone)
            .execution_options(synchronize_session=False)
        )
        await session.execute(
            update(Album)
            .where(Album.project_id == project.id, Album.deleted_at.is_(None))  # type: ignore[union-attr]
            .values(**tombstone)
            .execution_options(synchronize_session=False)
        )
        project.deleted_at = now
        project.deleted_by = auth.user_profile_id
        project.is_active = False
        project.updated_at = now
        session.add(project)

    return ok(None, "Project deleted successfully")


@router.post(
    "/{project_id}/collaborators",
    response_model=Envelope[CollaboratorRead],
    status_code=status.HTTP_201_CREATED,
)
async def add_collaborator(
    project_id: uuid.UUID, body: CollaboratorCreate, auth: Auth, session: Session,
) -> Envelope:
    project = await authorize_project(session, auth, project_id, Accessibility.ADMIN)

    profile = await session.get(UserProfile, body.user_profile_id)
    if profile is None:
        raise NotFoundError("User profile not found")
    require_resource_owner_tenant(auth, profile.tenant_id, "User profile")
    if await get_grant(session, project.id, profile.id) is not None:
        raise ConflictError("User is already a collaborator on this project")

    ensure_same_tenant(project.tenant_id, profile.tenant_id)
    session.add(
        ProjectUserProfile(
            project_id=project.id,
            user_profile_id=profile.id,
            tenant_id=project.tenant_id,
            accessibility=body.accessibility,
            created_by=auth.user_profile_id,
        )
    )
    await session.commit()
    return ok(
        CollaboratorRead(
            user_profile_id=profile.id,
            name=profile.name,
            role=str(profile.role),
            accessibility=body.accessibility,
        ),
        "Collaborator added successfully",
    )
