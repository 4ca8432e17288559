"""Pytest configuration shared across the suite."""

try:
    from . import _bootstrap  # noqa: F401
except ImportError:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import pytest

from app.clients.sqlite_store import SQLiteStore
from app.schemas import AnalysisRequest


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO-powered tests to run against asyncio backend only."""
    return "asyncio"


@pytest.fixture
def store(tmp_path) -> SQLiteStore:
    """Fresh SQLite database per test."""
    return SQLiteStore(str(tmp_path / "compliance.db"))


@pytest.fixture
def led_strip_request() -> AnalysisRequest:
    return AnalysisRequest(
        product_name="LED Strip",
        product_description="5m flexible RGB LED strip with 12V adapter",
        product_category="Electronics",
        origin_country="China",
        destination_country="Canada",
    )
