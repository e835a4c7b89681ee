"""Photo upload, listing, signed URLs and deletion."""

import logging
import uuid
from typing import Annotated

from fastapi import APIRouter, File, Query, UploadFile, status
from sqlalchemy import func
from sqlmodel import select

from photohub.api.deps import Auth, BlobStorage, Session
from photohub.api.responses import Envelope, Page, ok
from photohub.core.config import get_settings
from photohub.core.database import atomic
from photohub.core.errors import ErrorContext, ValidationError
from photohub.models.album import Album
from photohub.models.base import utcnow
from photohub.models.photo import Photo, PhotoRead, SignedUrlRead
from photohub.models.project import Accessibility
from photohub.services.access import (
    Principal,
    authorize_album,
    authorize_photo,
    ensure_same_tenant,
)
from photohub.services.storage import Storage, build_photo_key, sanitize_filename

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(prefix="/photos", tags=["photos"])


# ── Helpers ───────────────────────────────────────────────────

async def _read_image(upload: UploadFile) -> bytes:
    content_type = upload.content_type or ""
    if not content_type.startswith("image/"):
        raise ValidationError(
            f"Only image files are allowed: {upload.filename}",
            ErrorContext(field="photo", constraint="image/*", value=content_type),
        )
    limit = settings.max_upload_size
    if upload.size is not None and upload.size > limit:
        data, size = b"", upload.size
    else:
        # Buffer at most one byte past the limit
        data = await upload.read(limit + 1)
        size = len(data)
    if size > limit:
        raise ValidationError(
            f"File too large: {upload.filename}",
            ErrorContext(
                field="photo",
                constraint=f"max {limit // (1024 * 1024)}MB",
                value=size,
            ),
        )
    if not data:
        raise ValidationError(f"File is empty: {upload.filename}", ErrorContext(field="photo"))
    return data


async def _discard_blobs(storage: Storage, keys: list[str]) -> None:
    for key in keys:
        try:
            await storage.delete(key)
        except Exception:
            logger.warning("Could not remove orphaned blob %s", key, exc_info=True)


async def _store_photos(
    session,
    storage: Storage,
    principal: Principal,
    album: Album,
    uploads: list[UploadFile],
) -> list[Photo]:
    """Store every blob first, then insert all rows in one transaction.

    If the insert fails the stored blobs are removed again.
    """
    payloads = [(upload, await _read_image(upload)) for upload in uploads]

    stored_keys: list[str] = []
    photos: list[Photo] = []
    try:
        for upload, data in payloads:
            filename = sanitize_filename(upload.filename or "photo")
            photo_id = uuid.uuid4()
            key = build_photo_key(album.id, photo_id, filename)
            url = await storage.put(key, data, upload.content_type or "application/octet-stream")
            stored_keys.append(key)
            photo = Photo(
                id=photo_id,
                album_id=album.id,
                tenant_id=album.tenant_id,
                filename=filename,
                storage_key=key,
                url=url,
                file_size=len(data),
                mime_type=upload.content_type or "application/octet-stream",
                created_by=principal.user_profile_id,
            )
            ensure_same_tenant(album.tenant_id, photo.tenant_id)
            photos.append(photo)

        async with atomic(session):
            session.add_all(photos)
    except Exception:
        await _discard_blobs(storage, stored_keys)
        raise

    logger.info("Stored %d photo(s) in album %s", len(photos), album.id)
    return photos


# ── Endpoints ─────────────────────────────────────────────────

@router.post(
    "/upload/{album_id}",
    response_model=Envelope[PhotoRead],
    status_code=status.HTTP_201_CREATED,
)
async def upload_photo(
    album_id: uuid.UUID,
    photo: Annotated[UploadFile, File()],
    auth: Auth,
    session: Session,
    storage: BlobStorage,
) -> Envelope:
    album = await authorize_album(session, auth, album_id, Accessibility.VIEW_ONLY)
    photos = await _store_photos(session, storage, auth, album, [photo])
    return ok(PhotoRead.model_validate(photos[0]), "Photo uploaded successfully")


@router.post(
    "/bulk-upload/{album_id}",
    response_model=Envelope[list[PhotoRead]],
    status_code=status.HTTP_201_CREATED,
)
async def bulk_upload_photos(
    album_id: uuid.UUID,
    photos: Annotated[list[UploadFile], File()],
    auth: Auth,
    session: Session,
    storage: BlobStorage,
) -> Envelope:
    if len(photos) > settings.max_bulk_upload_files:
        raise ValidationError(
            f"At most {settings.max_bulk_upload_files} files per upload",
            ErrorContext(field="photos", constraint=f"max {settings.max_bulk_upload_files} files"),
        )
    album = await authorize_album(session, auth, album_id, Accessibility.VIEW_ONLY)
    stored = await _store_photos(session, storage, auth, album, photos)
    return ok(
        [PhotoRead.model_validate(p) for p in stored],
        f"{len(stored)} photos uploaded successfully",
    )


@router.get("/album/{album_id}", response_model=Envelope[list[PhotoRead]])
async def list_album_photos(
    album_id: uuid.UUID, auth: Auth, session: Session, page: Page,
) -> Envelope:
    album = await authorize_album(session, auth, album_id, Accessibility.VIEW_ONLY)
    conditions = [
        Photo.album_id == album.id,
        Photo.deleted_at.is_(None),  # type: ignore[union-attr]
    ]
    if page.search:
        conditions.append(Photo.filename.ilike(f"%{page.search}%"))  # type: ignore[attr-defined]

    total = (
        await session.execute(select(func.count()).select_from(Photo).where(*conditions))
    ).scalar_one()
    stmt = (
        select(Photo)
        .where(*conditions)
        .order_by(Photo.created_at.desc(), Photo.id.desc())  # type: ignore[union-attr,attr-defined]
        .offset(page.offset)
        .limit(page.limit)
    )
    photos = (await session.execute(stmt)).scalars().all()
    return ok([PhotoRead.model_validate(p) for p in photos], pagination=page.pagination(total))


@router.get("/{photo_id}", response_model=Envelope[PhotoRead])
async def get_photo(photo_id: uuid.UUID, auth: Auth, session: Session) -> Envelope:
    photo = await authorize_photo(session, auth, photo_id, Accessibility.VIEW_ONLY)
    return ok(PhotoRead.model_validate(photo))


@router.get("/{photo_id}/signed-url", response_model=Envelope[SignedUrlRead])
async def get_signed_url(
    photo_id: uuid.UUID,
    auth: Auth,
    session: Session,
    storage: BlobStorage,
    expires_in: Annotated[int | None, Query(alias="expiresIn", ge=1, le=7 * 24 * 3600)] = None,
) -> Envelope:
    photo = await authorize_photo(session, auth, photo_id, Accessibility.VIEW_ONLY)
    expires_in = expires_in or settings.signed_url_default_expiry
    url = await storage.signed_url(photo.storage_key, expires_in)
    return ok(SignedUrlRead(url=url, expires_in=expires_in))


@router.delete("/{photo_id}", response_model=Envelope[None])
async def delete_photo(
    photo_id: uuid.UUID, auth: Auth, session: Session, storage: BlobStorage,
) -> Envelope:
    """Soft-delete the row, then remove the blob. A failed blob removal is only logged."""
    photo = await authorize_photo(session, auth, photo_id, Accessibility.EDIT)
    now = utcnow()
    photo.deleted_at = now
    photo.deleted_by = auth.user_profile_id
    photo.updated_at = now
    session.add(photo)
    await session.commit()

    try:
        await storage.delete(photo.storage_key)
    except Exception:
        logger.warning("Blob removal failed for photo %s (%s)", photo.id, photo.storage_key, exc_info=True)

    return ok(None, "Photo deleted successfully")
