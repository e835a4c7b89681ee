"""Album CRUD and batch upsert. Every call checks the parent project's grant."""

import uuid

from fastapi import APIRouter, status
from sqlalchemy import func, or_, update
from sqlmodel import select

from photohub.api.deps import Auth, Session
from photohub.api.responses import Envelope, Page, ok
from photohub.core.database import atomic
from photohub.core.errors import NotFoundError
from photohub.models.album import (
    Album,
    AlbumBatch,
    AlbumCreate,
    AlbumDetail,
    AlbumRead,
    AlbumUpdate,
)
from photohub.models.base import utcnow
from photohub.models.photo import Photo, PhotoRead
from photohub.models.project import Accessibility
from photohub.services.access import authorize_album, authorize_project, ensure_same_tenant

router = APIRouter(prefix="/albums", tags=["albums"])


# ── Helpers ───────────────────────────────────────────────────

async def _photo_counts(session, album_ids: list[uuid.UUID]) -> dict[uuid.UUID, int]:
    if not album_ids:
        return {}
    stmt = (
        select(Photo.album_id, func.count())
        .where(
            Photo.album_id.in_(album_ids),  # type: ignore[attr-defined]
            Photo.deleted_at.is_(None),  # type: ignore[union-attr]
        )
        .group_by(Photo.album_id)
    )
    result = await session.execute(stmt)
    return dict(result.all())


def _to_read(album: Album, photo_count: int = 0) -> AlbumRead:
    read = AlbumRead.model_validate(album)
    read.photo_count = photo_count
    return read


# ── Endpoints ─────────────────────────────────────────────────

@router.post("", response_model=Envelope[AlbumRead], status_code=status.HTTP_201_CREATED)
async def create_album(body: AlbumCreate, auth: Auth, session: Session) -> Envelope:
    """Any grant on the project is enough to add an album."""
    project = await authorize_project(session, auth, body.project_id, Accessibility.VIEW_ONLY)

    album = Album(
        project_id=project.id,
        tenant_id=project.tenant_id,
        title=body.title,
        description=body.description,
        cover_image=body.cover_image,
        created_by=auth.user_profile_id,
    )
    ensure_same_tenant(project.tenant_id, album.tenant_id)
    session.add(album)
    await session.commit()
    return ok(_to_read(album), "Album created successfully")


@router.put("/batch", response_model=Envelope[list[AlbumRead]])
async def batch_upsert_albums(body: AlbumBatch, auth: Auth, session: Session) -> Envelope:
    """Create or update several albums of one project, all or nothing.

    Entries with an ``albumId`` update that album and need EDIT; entries
    without one create a new album.
    """
    needs_edit = any(entry.album_id is not None for entry in body.albums)
    project = await authorize_project(
        session,
        auth,
        body.project_id,
        Accessibility.EDIT if needs_edit else Accessibility.VIEW_ONLY,
    )
    now = utcnow()
    albums: list[Album] = []

    async with atomic(session):
        for entry in body.albums:
            if entry.album_id is None:
                album = Album(
                    project_id=project.id,
                    tenant_id=project.tenant_id,
                    title=entry.title,
                    description=entry.description,
                    created_by=auth.user_profile_id,
                )
                ensure_same_tenant(project.tenant_id, album.tenant_id)
            else:
                result = await session.execute(
                    select(Album).where(
                        Album.id == entry.album_id,
                        Album.project_id == project.id,
                        Album.tenant_id == project.tenant_id,
                        Album.deleted_at.is_(None),  # type: ignore[union-attr]
                    )
                )
                album = result.scalar_one_or_none()
                if album is None:
                    raise NotFoundError(f"Album {entry.album_id} not found in this project")
                album.title = entry.title
                if entry.description is not None:
                    album.description = entry.description
                album.updated_by = auth.user_profile_id
                album.updated_at = now
            session.add(album)
            albums.append(album)
        await session.flush()

    counts = await _photo_counts(session, [a.id for a in albums])
    return ok(
        [_to_read(a, counts.get(a.id, 0)) for a in albums],
        f"{len(albums)} albums saved",
    )


@router.get("/project/{project_id}", response_model=Envelope[list[AlbumRead]])
async def list_project_albums(
    project_id: uuid.UUID, auth: Auth, session: Session, page: Page,
) -> Envelope:
    project = await authorize_project(session, auth, project_id, Accessibility.VIEW_ONLY)
    conditions = [
        Album.project_id == project.id,
        Album.deleted_at.is_(None),  # type: ignore[union-attr]
    ]
    if page.search:
        pattern = f"%{page.search}%"
        conditions.append(
            or_(
                Album.title.ilike(pattern),  # type: ignore[attr-defined]
                Album.description.ilike(pattern),  # type: ignore[union-attr]
            )
        )

    total = (
        await session.execute(select(func.count()).select_from(Album).where(*conditions))
    ).scalar_one()
    stmt = (
        select(Album)
        .where(*conditions)
        .order_by(Album.created_at.desc())  # type: ignore[union-attr]
        .offset(page.offset)
        .limit(page.limit)
    )
    albums = list((await session.execute(stmt)).scalars().all())
    counts = await _photo_counts(session, [a.id for a in albums])
    return ok(
        [_to_read(a, counts.get(a.id, 0)) for a in albums],
        pagination=page.pagination(total),
    )


@router.get("/{album_id}", response_model=Envelope[AlbumDetail])
async def get_album(album_id: uuid.UUID, auth: Auth, session: Session) -> Envelope:
    """Album with its live photos, newest first."""
    album = await authorize_album(session, auth, album_id, Accessibility.VIEW_ONLY)
    stmt = (
        select(Photo)
        .where(Photo.album_id == album.id, Photo.deleted_at.is_(None))  # type: ignore[union-attr]
        .order_by(Photo.created_at.desc(), Photo.id.desc())  # type: ignore[union-attr,attr-defined]
    )
    photos = [PhotoRead.model_validate(p) for p in (await session.execute(stmt)).scalars().all()]

    detail = AlbumDetail.model_validate(album)
    detail.photos = photos
    detail.photo_count = len(photos)
    return ok(detail)


@router.put("/{album_id}", response_model=Envelope[AlbumRead])
async def update_album(
    album_id: uuid.UUID, body: AlbumUpdate, auth: Auth, session: Session,
) -> Envelope:
    album = await authorize_album(session, auth, album_id, Accessibility.EDIT)

    for key, value in body.model_dump(exclude_unset=True).items():
        setattr(album, key, value)
    album.updated_by = auth.user_profile_id
    album.updated_at = utcnow()

    session.add(album)
    await session.commit()
    await session.refresh(album)
    counts = await _photo_counts(session, [album.id])
    return ok(_to_read(album, counts.get(album.id, 0)), "Album updated successfully")


@router.delete("/{album_id}", response_model=Envelope[None])
async def delete_album(album_id: uuid.UUID, auth: Auth, session: Session) -> Envelope:
    """Soft-delete an album and its live photos."""
    album = await authorize_album(session, auth, album_id, Accessibility.ADMIN)
    now = utcnow()

    async with atomic(session):
        await session.execute(
            update(Photo)
            .where(Photo.album_id == album.id, Photo.deleted_at.is_(None))  # type: ignore[union-attr]
            .values(deleted_at=now, deleted_by=auth.user_profile_id, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        album.deleted_at = now
        album.deleted_by = auth.user_profile_id
        album.updated_at = now
        session.add(album)

    return ok(None, "Album deleted successfully")
