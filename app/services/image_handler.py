"""
Validation and storage of product images attached to analyses.
"""

from __future__ import annotations

import base64
import binascii
import logging
import time
from dataclasses import dataclass
from typing import Optional

from app.clients.image_storage import ImageStorage, ImageStorageError
from app.schemas import ProductImage

logger = logging.getLogger(__name__)

_EXTENSIONS = {"image/jpeg": "jpg", "image/png": "png"}


@dataclass(slots=True)
class ImageValidation:
    is_valid: bool
    error: Optional[str] = None


@dataclass(slots=True)
class ImageUploadResult:
    success: bool
    image_path: Optional[str] = None
    image_url: Optional[str] = None
    error: Optional[str] = None


class ImageHandler:
    """Validate, upload and delete product images."""

    _ALLOWED_MIME_TYPES = ("image/jpeg", "image/png")
    _MAX_IMAGE_BYTES = 10 * 1024 * 1024  # 10 MB

    def __init__(self, storage: ImageStorage) -> None:
        self._storage = storage

    def validate(self, image: ProductImage) -> ImageValidation:
        if image.mime_type not in self._ALLOWED_MIME_TYPES:
            return ImageValidation(False, "Only JPG and PNG images are allowed")
        try:
            payload = _decode(image)
        except (ValueError, binascii.Error):
            return ImageValidation(False, f"Image {image.filename} is not valid base64.")
        if len(payload) > self._MAX_IMAGE_BYTES:
            return ImageValidation(
                False,
                f"File size must be less than {self._MAX_IMAGE_BYTES // (1024 * 1024)}MB",
            )
        return ImageValidation(True)

    async def upload(
        self, image: ProductImage, *, user_id: str, analysis_id: str
    ) -> ImageUploadResult:
        """Store the image under ``{user}/{analysis}/{analysis}-{millis}.{ext}``."""
        validation = self.validate(image)
        if not validation.is_valid:
            return ImageUploadResult(success=False, error=validation.error)

        path = self.build_path(image, user_id=user_id, analysis_id=analysis_id)
        try:
            url = await self._storage.upload(
                path=path, data=_decode(image), content_type=image.mime_type
            )
        except ImageStorageError as exc:
            logger.warning("Image upload failed", extra={"analysis_id": analysis_id})
            return ImageUploadResult(success=False, error=str(exc))
        return ImageUploadResult(success=True, image_path=path, image_url=url)

    async def delete(self, image_path: str) -> bool:
        try:
            await self._storage.delete(path=image_path)
        except ImageStorageError:
            logger.exception("Failed to delete image %s", image_path)
            return False
        return True

    @staticmethod
    def to_transfer_encoding(image: ProductImage) -> str:
        """Return the bare base64 payload without any data-URL prefix."""
        payload = image.file_b64
        if payload.startswith("data:") and "," in payload:
            payload = payload.split(",", 1)[1]
        return payload.strip()

    @staticmethod
    def build_path(image: ProductImage, *, user_id: str, analysis_id: str) -> str:
        extension = image.filename.rsplit(".", 1)[-1].lower() if "." in image.filename else ""
        if not extension.isalnum():
            extension = _EXTENSIONS.get(image.mime_type, "bin")
        file_name = f"{analysis_id}-{int(time.time() * 1000)}.{extension}"
        return f"{user_id}/{analysis_id}/{file_name}"


def _decode(image: ProductImage) -> bytes:
    return base64.b64decode(ImageHandler.to_transfer_encoding(image), validate=True)


__all__ = ["ImageHandler", "ImageUploadResult", "ImageValidation"]
