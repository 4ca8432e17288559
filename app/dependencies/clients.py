"""
Factory functions to provide shared clients and services as FastAPI dependencies.
"""

from functools import lru_cache

from app.clients import ImageStorage, InferenceClient, SQLiteStore, build_image_storage
from app.core.config import get_settings
from app.services import (
    AIConfigService,
    ComplianceAnalysisService,
    ImageHandler,
    PromptBuilder,
    ResponseParser,
)


@lru_cache()
def _settings():
    """Internal helper to cache settings for client factories."""
    return get_settings()


@lru_cache()
def get_sqlite_store() -> SQLiteStore:
    """Provide the shared SQLite record store."""
    return SQLiteStore(_settings().database_path)


@lru_cache()
def get_image_storage() -> ImageStorage:
    """Provide the configured image object store."""
    return build_image_storage(_settings().storage)


@lru_cache()
def get_inference_client() -> InferenceClient:
    """Provide the chat-completion client."""
    return InferenceClient(_settings().inference)


def get_ai_config_service() -> AIConfigService:
    """Build the configuration resolver/admin service."""
    return AIConfigService(get_sqlite_store())


def get_image_handler() -> ImageHandler:
    """Build an image handler over the configured storage backend."""
    return ImageHandler(get_image_storage())


def get_compliance_analysis_service() -> ComplianceAnalysisService:
    """Build the analysis orchestrator from shared clients."""
    return ComplianceAnalysisService(
        store=get_sqlite_store(),
        config_service=get_ai_config_service(),
        inference_client=get_inference_client(),
        image_handler=get_image_handler(),
        prompt_builder=PromptBuilder(),
        response_parser=ResponseParser(),
        honor_fallback_behavior=_settings().honor_fallback_behavior,
    )


__all__ = [
    "get_ai_config_service",
    "get_compliance_analysis_service",
    "get_image_handler",
    "get_image_storage",
    "get_inference_client",
    "get_sqlite_store",
]
