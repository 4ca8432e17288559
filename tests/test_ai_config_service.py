try:
    from . import _bootstrap  # noqa: F401
except ImportError:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import sqlite3

import pytest
from fastapi import HTTPException

from app.clients.sqlite_store import StoreError
from app.schemas import AnalysisConfigurationPayload, FallbackBehavior
from app.services.ai_config import (
    DEFAULT_FOCUS_AREAS,
    AIConfigService,
    ConfigurationNotFoundError,
)


class BrokenStore:
    def get_active_configuration(self):
        raise StoreError("database is locked")


@pytest.mark.asyncio
async def test_resolve_active_returns_default_when_none_active(store) -> None:
    config = await AIConfigService(store).resolve_active()

    assert config.is_default
    assert config.temperature == 0.3
    assert config.max_tokens == 2000
    assert config.focus_areas == list(DEFAULT_FOCUS_AREAS)
    assert len(config.focus_areas) == 6
    assert config.fallback_behavior is FallbackBehavior.RETRY
    assert "Other" in config.category_instructions


@pytest.mark.asyncio
async def test_resolve_active_degrades_to_default_on_store_failure() -> None:
    config = await AIConfigService(BrokenStore()).resolve_active()

    assert config.is_default


@pytest.mark.asyncio
async def test_created_configuration_is_inactive_until_activated(store) -> None:
    service = AIConfigService(store)

    created = await service.create_configuration(
        AnalysisConfigurationPayload(name="Expert", temperature=0.2),
        created_by="admin-1",
    )

    assert not created.is_active
    assert created.created_by == "admin-1"
    assert (await service.resolve_active()).is_default

    await service.set_active(created.id)
    active = await service.resolve_active()
    assert active.id == created.id
    assert active.temperature == 0.2


@pytest.mark.asyncio
async def test_set_active_switches_the_single_active_configuration(store) -> None:
    service = AIConfigService(store)
    first = await service.create_configuration(
        AnalysisConfigurationPayload(name="First", is_active=True)
    )
    second = await service.create_configuration(
        AnalysisConfigurationPayload(name="Second", is_active=True)
    )

    configs = await service.list_configurations()

    assert {config.id: config.is_active for config in configs} == {
        first.id: False,
        second.id: True,
    }


@pytest.mark.asyncio
async def test_update_can_deactivate_configuration(store) -> None:
    service = AIConfigService(store)
    config = await service.create_configuration(
        AnalysisConfigurationPayload(name="Temp", is_active=True)
    )

    updated = await service.update_configuration(
        config.id,
        AnalysisConfigurationPayload(is_active=False, custom_instructions="Be brief."),
    )

    assert not updated.is_active
    assert updated.custom_instructions == "Be brief."
    assert (await service.resolve_active()).is_default


@pytest.mark.asyncio
async def test_unknown_configuration_ids_raise(store) -> None:
    service = AIConfigService(store)

    with pytest.raises(ConfigurationNotFoundError):
        await service.set_active("missing")
    with pytest.raises(ConfigurationNotFoundError):
        await service.delete_configuration("missing")
    with pytest.raises(ConfigurationNotFoundError):
        await service.update_configuration(
            "missing", AnalysisConfigurationPayload(name="x")
        )


@pytest.mark.asyncio
async def test_corrupt_configuration_rows_report_store_unavailable(store, tmp_path) -> None:
    service = AIConfigService(store)
    config = await service.create_configuration(
        AnalysisConfigurationPayload(name="Broken", is_active=True)
    )
    with sqlite3.connect(tmp_path / "compliance.db") as conn:
        conn.execute(
            "UPDATE ai_configurations SET validation_rules = ? WHERE id = ?",
            ("[unterminated", config.id),
        )

    with pytest.raises(HTTPException) as excinfo:
        await service.list_configurations()

    assert excinfo.value.status_code == 503
    assert (await service.resolve_active()).is_default
