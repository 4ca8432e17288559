try:
    from . import _bootstrap  # noqa: F401
except ImportError:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import base64
import re

import pytest

from app.clients.image_storage import ImageStorageError, LocalImageStorage
from app.schemas import ProductImage
from app.services.image_handler import ImageHandler


class RecordingStorage:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.uploads: list[tuple[str, bytes, str]] = []
        self.deleted: list[str] = []

    async def upload(self, *, path: str, data: bytes, content_type: str) -> str:
        if self.fail:
            raise ImageStorageError("Upload failed: bucket unavailable")
        self.uploads.append((path, data, content_type))
        return f"https://cdn.example.com/{path}"

    async def delete(self, *, path: str) -> None:
        self.deleted.append(path)

    def public_url(self, path: str) -> str:
        return f"https://cdn.example.com/{path}"


def _image(data: bytes = b"\x89PNG-bytes", mime_type: str = "image/png") -> ProductImage:
    return ProductImage(
        filename="strip.png",
        mime_type=mime_type,
        file_b64=base64.b64encode(data).decode("utf-8"),
    )


def test_validate_rejects_unsupported_type() -> None:
    validation = ImageHandler(RecordingStorage()).validate(_image(mime_type="image/gif"))

    assert not validation.is_valid
    assert "JPG and PNG" in validation.error


def test_validate_rejects_oversized_image(monkeypatch) -> None:
    monkeypatch.setattr(ImageHandler, "_MAX_IMAGE_BYTES", 8)

    validation = ImageHandler(RecordingStorage()).validate(_image(b"0123456789"))

    assert not validation.is_valid


def test_validate_rejects_bad_base64() -> None:
    image = ProductImage(filename="x.png", mime_type="image/png", file_b64="!!not-base64!!")

    assert not ImageHandler(RecordingStorage()).validate(image).is_valid


@pytest.mark.asyncio
async def test_upload_uses_namespaced_timestamped_path() -> None:
    storage = RecordingStorage()

    result = await ImageHandler(storage).upload(
        _image(), user_id="user-1", analysis_id="an-9"
    )

    assert result.success
    assert re.fullmatch(r"user-1/an-9/an-9-\d+\.png", result.image_path)
    assert result.image_url == f"https://cdn.example.com/{result.image_path}"
    assert storage.uploads[0][1] == b"\x89PNG-bytes"
    assert storage.uploads[0][2] == "image/png"


@pytest.mark.asyncio
async def test_upload_never_reaches_storage_for_invalid_image() -> None:
    storage = RecordingStorage()

    result = await ImageHandler(storage).upload(
        _image(mime_type="application/pdf"), user_id="user-1", analysis_id="an-9"
    )

    assert not result.success
    assert storage.uploads == []


@pytest.mark.asyncio
async def test_upload_reports_storage_failure() -> None:
    result = await ImageHandler(RecordingStorage(fail=True)).upload(
        _image(), user_id="user-1", analysis_id="an-9"
    )

    assert not result.success
    assert "bucket unavailable" in result.error


@pytest.mark.asyncio
async def test_local_storage_round_trip(tmp_path) -> None:
    storage = LocalImageStorage(str(tmp_path), "compliance-images")
    handler = ImageHandler(storage)

    result = await handler.upload(_image(), user_id="user-1", analysis_id="an-1")

    stored = tmp_path / "compliance-images" / result.image_path
    assert stored.read_bytes() == b"\x89PNG-bytes"
    assert result.image_url.startswith("/static/images/compliance-images/user-1/an-1/")
    assert await handler.delete(result.image_path)
    assert not stored.exists()


def test_transfer_encoding_strips_data_url_prefix() -> None:
    image = ProductImage(
        filename="a.jpg", mime_type="image/jpeg", file_b64="data:image/jpeg;base64,QUJD"
    )

    assert ImageHandler.to_transfer_encoding(image) == "QUJD"
