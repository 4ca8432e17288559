"""Object storage for uploaded product images."""

from __future__ import annotations

import asyncio
from pathlib import Path, PurePosixPath
from typing import Protocol

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from app.core.config import StorageSettings


class ImageStorageError(RuntimeError):
    """Raised when the object store cannot complete an operation."""


class ImageStorage(Protocol):
    async def upload(self, *, path: str, data: bytes, content_type: str) -> str:
        ...

    async def delete(self, *, path: str) -> None:
        ...

    def public_url(self, path: str) -> str:
        ...


def _safe_key(path: str) -> PurePosixPath:
    key = PurePosixPath(path)
    if key.is_absolute() or ".." in key.parts:
        raise ImageStorageError(f"Refusing to store object outside the bucket: {path}")
    return key


class LocalImageStorage:
    """Filesystem-backed bucket used for development and tests."""

    def __init__(self, root: str, bucket: str, public_base_url: str | None = None) -> None:
        self._root = Path(root) / bucket
        self._public_base_url = (public_base_url or f"/static/images/{bucket}").rstrip("/")

    async def upload(self, *, path: str, data: bytes, content_type: str) -> str:
        target = self._root / _safe_key(path)

        def _write() -> None:
            if target.exists():
                raise ImageStorageError(f"Object already exists: {path}")
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)

        try:
            await asyncio.to_thread(_write)
        except (OSError, ValueError) as exc:
            raise ImageStorageError(f"Upload failed: {exc}") from exc
        return self.public_url(path)

    async def delete(self, *, path: str) -> None:
        target = self._root / _safe_key(path)
        try:
            await asyncio.to_thread(target.unlink, missing_ok=True)
        except (OSError, ValueError) as exc:
            raise ImageStorageError(f"Delete failed: {exc}") from exc

    def public_url(self, path: str) -> str:
        return f"{self._public_base_url}/{_safe_key(path)}"


class S3ImageStorage:
    """Store images in an S3 bucket and hand out public object URLs."""

    def __init__(self, settings: StorageSettings) -> None:
        self._bucket = settings.bucket_name
        self._client = boto3.client("s3", region_name=settings.region_name)
        default_base = f"https://{self._bucket}.s3.{settings.region_name}.amazonaws.com"
        self._public_base_url = (settings.public_base_url or default_base).rstrip("/")

    async def upload(self, *, path: str, data: bytes, content_type: str) -> str:
        key = str(_safe_key(path))

        def _put() -> None:
            self._client.put_object(
                Bucket=self._bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
                CacheControl="max-age=3600",
            )

        try:
            await asyncio.to_thread(_put)
        except (BotoCoreError, ClientError) as exc:  # pragma: no cover - network path
            raise ImageStorageError(f"Upload failed: {exc}") from exc
        return self.public_url(key)

    async def delete(self, *, path: str) -> None:
        key = str(_safe_key(path))
        try:
            await asyncio.to_thread(
                self._client.delete_object, Bucket=self._bucket, Key=key
            )
        except (BotoCoreError, ClientError) as exc:  # pragma: no cover - network path
            raise ImageStorageError(f"Delete failed: {exc}") from exc

    def public_url(self, path: str) -> str:
        return f"{self._public_base_url}/{_safe_key(path)}"


def build_image_storage(settings: StorageSettings) -> ImageStorage:
    """Instantiate the backend selected by ``STORAGE_BACKEND``."""
    if settings.backend == "s3":
        return S3ImageStorage(settings)
    return LocalImageStorage(
        root=settings.local_directory,
        bucket=settings.bucket_name,
        public_base_url=settings.public_base_url,
    )


__all__ = [
    "ImageStorage",
    "ImageStorageError",
    "LocalImageStorage",
    "S3ImageStorage",
    "build_image_storage",
]
