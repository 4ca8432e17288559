"""Expose dependency helpers for FastAPI routers."""

from .clients import (
    get_ai_config_service,
    get_compliance_analysis_service,
    get_image_handler,
    get_image_storage,
    get_inference_client,
    get_sqlite_store,
)

__all__ = [
    "get_ai_config_service",
    "get_compliance_analysis_service",
    "get_image_handler",
    "get_image_storage",
    "get_inference_client",
    "get_sqlite_store",
]
