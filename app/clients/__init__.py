"""Expose constructed client wrappers."""

from .image_storage import (
    ImageStorage,
    ImageStorageError,
    LocalImageStorage,
    S3ImageStorage,
    build_image_storage,
)
from .inference import InferenceClient, InferenceError
from .sqlite_store import SQLiteStore, StoreError

__all__ = [
    "ImageStorage",
    "ImageStorageError",
    "InferenceClient",
    "InferenceError",
    "LocalImageStorage",
    "S3ImageStorage",
    "SQLiteStore",
    "StoreError",
    "build_image_storage",
]
