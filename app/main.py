"""
FastAPI application entrypoint for the compliance analysis service.
"""

from __future__ import annotations

from pathlib import Path

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from app.api.routes import router as api_router
from app.core.config import get_settings
from app.core.logging import configure_logging


def create_app() -> FastAPI:
    """Factory for the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Cross-Border Compliance Analysis",
        version="0.1.0",
        description=(
            "REST API for AI-assisted tariff classification and import "
            "compliance assessments."
        ),
    )
    app.include_router(api_router, prefix="/api")

    storage = settings.storage
    if storage.backend == "local" and not storage.public_base_url:
        # Serve locally stored images under the URLs LocalImageStorage hands out.
        image_root = Path(storage.local_directory)
        image_root.mkdir(parents=True, exist_ok=True)
        app.mount("/static/images", StaticFiles(directory=image_root), name="images")
    return app


app = create_app()

__all__ = ["app", "create_app"]
