"""Blob storage for uploaded photos: S3 in production, local disk in development."""

import asyncio
import logging
import os
import re
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from urllib.parse import quote

import aiofiles
import boto3
from botocore.exceptions import BotoCoreError, ClientError

from photohub.core.config import Settings
from photohub.core.errors import ServiceUnavailableError

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def sanitize_filename(filename: str) -> str:
    name = os.path.basename(filename or "").strip() or "upload"
    return _UNSAFE_CHARS.sub("_", name)


def build_photo_key(album_id: uuid.UUID, photo_id: uuid.UUID, filename: str) -> str:
    """``photos/{albumId}/{timestamp}-{photoId}-{filename}``, timestamp in epoch milliseconds.

    The photo id keeps keys distinct for same-named files stored in the same millisecond.
    """
    timestamp = int(datetime.now(timezone.utc).timestamp() * 1000)
    return f"photos/{album_id}/{timestamp}-{photo_id.hex}-{sanitize_filename(filename)}"


class Storage(ABC):
    @abstractmethod
    async def put(self, key: str, data: bytes, content_type: str) -> str:
        """Store ``data`` under ``key`` and return its URL."""

    @abstractmethod
    async def delete(self, key: str) -> None: ...

    @abstractmethod
    async def signed_url(self, key: str, expires_in: int) -> str:
        """Time-limited download URL."""


class S3Storage(Storage):
    """Private-ACL S3 bucket; clients read through presigned URLs."""

    def __init__(
        self,
        bucket: str,
        region: str,
        access_key: str = "",
        secret_key: str = "",
    ) -> None:
        self.bucket = bucket
        self.region = region
        if access_key and secret_key:
            self.client = boto3.client(
                "s3",
                region_name=region,
                aws_access_key_id=access_key,
                aws_secret_access_key=secret_key,
            )
        else:
            # Default credential chain (IAM role, env vars)
            self.client = boto3.client("s3", region_name=region)

    def _url(self, key: str) -> str:
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{quote(key)}"

    async def put(self, key: str, data: bytes, content_type: str) -> str:
        try:
            await asyncio.to_thread(
                self.client.put_object,
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as exc:
            logger.error("S3 upload failed for %s: %s", key, exc)
            raise ServiceUnavailableError("File storage is unavailable") from exc
        logger.info("Uploaded %s to S3 (%d bytes)", key, len(data))
        return self._url(key)

    async def delete(self, key: str) -> None:
        try:
            await asyncio.to_thread(self.client.delete_object, Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as exc:
            raise ServiceUnavailableError("File storage is unavailable") from exc
        logger.info("Deleted %s from S3", key)

    async def signed_url(self, key: str, expires_in: int) -> str:
        try:
            return await asyncio.to_thread(
                self.client.generate_presigned_url,
                "get_object",
                Params={"Bucket": self.bucket, "Key": key},
                ExpiresIn=expires_in,
            )
        except (BotoCoreError, ClientError) as exc:
            raise ServiceUnavailableError("File storage is unavailable") from exc


class LocalStorage(Storage):
    """Writes under ``base_path``; URLs point at ``public_url`` (served by a static mount)."""

    def __init__(self, base_path: str, public_url: str) -> None:
        self.base_path = Path(base_path)
        self.public_url = public_url.rstrip("/")

    def _path(self, key: str) -> Path:
        path = (self.base_path / key).resolve()
        if self.base_path.resolve() not in path.parents:
            raise ValueError(f"Storage key escapes the storage root: {key}")
        return path

    async def put(self, key: str, data: bytes, content_type: str) -> str:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        async with aiofiles.open(path, "wb") as f:
            await f.write(data)
        logger.info("Saved %s to local storage (%d bytes)", key, len(data))
        return f"{self.public_url}/{quote(key)}"

    async def delete(self, key: str) -> None:
        path = self._path(key)
        if path.exists():
            path.unlink()
            logger.info("Deleted %s from local storage", key)
        else:
            logger.warning("Local object not found for deletion: %s", key)

    async def signed_url(self, key: str, expires_in: int) -> str:
        # No signing locally; the URL is public for its whole lifetime.
        return f"{self.public_url}/{quote(key)}"


def build_storage(settings: Settings) -> Storage:
    if settings.storage_backend == "s3":
        return S3Storage(
            bucket=settings.s3_bucket,
            region=settings.s3_region,
            access_key=settings.s3_access_key,
            secret_key=settings.s3_secret_key,
        )
    return LocalStorage(settings.local_storage_path, settings.public_media_url)
