"""
Application configuration models and helpers.

Centralizes settings management so the FastAPI app, the analysis pipeline and
the command-line tools share a consistent configuration surface.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

import os

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _load_env_file(path: str = ".env") -> None:
    """Best-effort load key=value pairs from a .env file into the environment."""
    env_path = Path(path)
    if not env_path.exists():
        return
    for raw_line in env_path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        if not key or key in os.environ:
            continue
        cleaned = value.strip().strip('"').strip("'")
        os.environ[key] = cleaned


_load_env_file()


class InferenceSettings(BaseSettings):
    """Configuration for the hosted chat-completion endpoint."""

    api_url: str = Field(
        "https://api.deepseek.com/v1/chat/completions",
        validation_alias="INFERENCE_API_URL",
    )
    api_key: Optional[str] = Field(
        None,
        validation_alias="INFERENCE_API_KEY",
        description="Bearer token sent with every completion request.",
    )
    model_name: str = Field("deepseek-chat", validation_alias="INFERENCE_MODEL")
    timeout_seconds: float = Field(60.0, validation_alias="INFERENCE_TIMEOUT_SECONDS")
    retry_attempts: int = Field(3, validation_alias="INFERENCE_RETRY_ATTEMPTS")
    retry_backoff_seconds: float = Field(
        1.0,
        validation_alias="INFERENCE_RETRY_BACKOFF_SECONDS",
        description="Base delay for exponential backoff when retries are enabled.",
    )

    @field_validator("retry_attempts")
    @classmethod
    def _at_least_one_attempt(cls, value: int) -> int:
        return max(1, value)


class StorageSettings(BaseSettings):
    """Where uploaded product images are kept."""

    backend: Literal["local", "s3"] = Field("local", validation_alias="STORAGE_BACKEND")
    bucket_name: str = Field("compliance-images", validation_alias="IMAGE_BUCKET")
    local_directory: str = Field(
        "./data/images",
        validation_alias="IMAGE_STORAGE_DIR",
        description="Root directory used by the local storage backend.",
    )
    public_base_url: Optional[str] = Field(
        None,
        validation_alias="IMAGE_PUBLIC_BASE_URL",
        description=(
            "Prefix for public image URLs. Defaults to the bucket's S3 URL or the "
            "application's /static/images mount."
        ),
    )
    region_name: str = Field("us-east-1", validation_alias="AWS_REGION")


class AppSettings(BaseSettings):
    """Root settings object for the FastAPI application."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: str = Field("development", validation_alias="APP_ENV")
    log_level: str = Field("INFO", validation_alias="APP_LOG_LEVEL")
    database_path: str = Field(
        "./data/compliance.db",
        validation_alias="COMPLIANCE_DB_PATH",
        description="SQLite file holding analyses and AI configurations.",
    )
    honor_fallback_behavior: bool = Field(
        False,
        validation_alias="ANALYSIS_HONOR_FALLBACK_BEHAVIOR",
        description=(
            "When true the pipeline applies the active configuration's fallback "
            "behaviour (retry/simplify/error) to the inference call."
        ),
    )
    inference: InferenceSettings = Field(default_factory=InferenceSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()  # type: ignore[call-arg]


__all__ = [
    "AppSettings",
    "InferenceSettings",
    "StorageSettings",
    "get_settings",
]
