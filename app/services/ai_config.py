"""
Resolution and administration of AI analysis configurations.
"""

from __future__ import annotations

import asyncio
import logging
from typing import List

from fastapi import HTTPException, status

from app.clients.sqlite_store import SQLiteStore, StoreError
from app.schemas import (
    AnalysisConfiguration,
    AnalysisConfigurationPayload,
    AnalysisDepth,
    FallbackBehavior,
    ResponseFormat,
)

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_ROLE = (
    "You are an expert Canadian customs compliance analyst with 15+ years of "
    "experience in international trade, customs regulations, and HS code "
    "classification."
)

DEFAULT_CATEGORY_INSTRUCTIONS: dict[str, str] = {
    "Electronics": (
        "Focus on electronic components, safety certifications (CSA, FCC), and "
        "potential ITAR restrictions."
    ),
    "Textiles & Apparel": (
        "Consider textile quotas, labeling requirements, and country of origin marking."
    ),
    "Machinery & Equipment": (
        "Check for safety standards, electrical certifications, and potential "
        "dual-use restrictions."
    ),
    "Chemicals": (
        "Emphasize chemical safety data sheets, environmental regulations, and "
        "controlled substances."
    ),
    "Food & Beverages": (
        "Focus on food safety regulations, labeling requirements, and import permits."
    ),
    "Automotive": (
        "Consider automotive safety standards, emissions requirements, and recall "
        "information."
    ),
    "Pharmaceuticals": (
        "Emphasize Health Canada approvals, controlled substances, and prescription "
        "requirements."
    ),
    "Construction Materials": (
        "Check building codes, safety standards, and environmental impact."
    ),
    "Agricultural Products": (
        "Consider plant health certificates, organic certifications, and seasonal "
        "restrictions."
    ),
    "Other": "Apply general customs principles and recommend specific research areas.",
}

DEFAULT_FOCUS_AREAS: tuple[str, ...] = (
    "Canadian customs regulations and procedures",
    "HS code classification accuracy",
    "Tariff optimization opportunities",
    "Documentation requirements",
    "Potential compliance risks",
    "Cost-saving recommendations",
)

DEFAULT_VALIDATION_RULES: tuple[str, ...] = (
    "HS code must be 6-10 digits",
    "Tariff rate must be between 0-100%",
    "Confidence must be between 0-1",
    "All required fields must be present",
)


class ConfigurationNotFoundError(LookupError):
    """Raised when an AI configuration id does not exist."""


def default_configuration() -> AnalysisConfiguration:
    """Built-in configuration used when no admin configuration is active."""
    return AnalysisConfiguration(
        name="Built-in default",
        description="Used when no configuration is active.",
        system_role=DEFAULT_SYSTEM_ROLE,
        analysis_depth=AnalysisDepth.DETAILED,
        temperature=0.3,
        max_tokens=2000,
        category_instructions=dict(DEFAULT_CATEGORY_INSTRUCTIONS),
        focus_areas=list(DEFAULT_FOCUS_AREAS),
        response_format=ResponseFormat.JSON,
        validation_rules=list(DEFAULT_VALIDATION_RULES),
        fallback_behavior=FallbackBehavior.RETRY,
    )


class AIConfigService:
    """Read the active configuration and manage the admin-owned catalogue."""

    def __init__(self, store: SQLiteStore) -> None:
        self._store = store

    async def resolve_active(self) -> AnalysisConfiguration:
        """Return the active configuration, degrading to the default on any failure."""
        try:
            config = await asyncio.to_thread(self._store.get_active_configuration)
        except Exception:
            logger.warning(
                "Failed to fetch active AI configuration; using default settings.",
                exc_info=True,
            )
            return default_configuration()
        if config is None:
            logger.info("No active AI configuration found; using default settings.")
            return default_configuration()
        return config

    async def list_configurations(self) -> List[AnalysisConfiguration]:
        return await self._call(self._store.list_configurations)

    async def get_configuration(self, config_id: str) -> AnalysisConfiguration:
        config = await self._call(self._store.get_configuration, config_id)
        if config is None:
            raise ConfigurationNotFoundError(config_id)
        return config

    async def create_configuration(
        self,
        payload: AnalysisConfigurationPayload,
        *,
        created_by: str | None = None,
    ) -> AnalysisConfiguration:
        """Create a configuration, inactive unless ``is_active`` is requested."""
        if not payload.name:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="Configuration name is required.",
            )
        fields = self._payload_fields(payload)
        if created_by:
            fields["created_by"] = created_by
        config = await self._call(self._store.insert_configuration, fields)
        if payload.is_active:
            return await self.set_active(config.id)
        return config

    async def update_configuration(
        self, config_id: str, payload: AnalysisConfigurationPayload
    ) -> AnalysisConfiguration:
        config = await self._call(
            self._store.update_configuration, config_id, self._payload_fields(payload)
        )
        if config is None:
            raise ConfigurationNotFoundError(config_id)
        if payload.is_active is True and not config.is_active:
            return await self.set_active(config_id)
        if payload.is_active is False and config.is_active:
            await self._call(self._store.deactivate_configuration, config_id)
            return await self.get_configuration(config_id)
        return config

    async def set_active(self, config_id: str) -> AnalysisConfiguration:
        """Activate ``config_id`` and deactivate every other configuration atomically."""
        activated = await self._call(self._store.activate_configuration, config_id)
        if not activated:
            raise ConfigurationNotFoundError(config_id)
        logger.info("Activated AI configuration", extra={"config_id": config_id})
        return await self.get_configuration(config_id)

    async def delete_configuration(self, config_id: str) -> None:
        deleted = await self._call(self._store.delete_configuration, config_id)
        if not deleted:
            raise ConfigurationNotFoundError(config_id)

    @staticmethod
    def _payload_fields(payload: AnalysisConfigurationPayload) -> dict:
        return payload.model_dump(exclude_none=True, exclude={"is_active"})

    @staticmethod
    async def _call(func, *args):
        try:
            return await asyncio.to_thread(func, *args)
        except StoreError as exc:
            logger.error("AI configuration store error: %s", exc)
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Configuration store unavailable.",
            ) from exc


__all__ = [
    "AIConfigService",
    "ConfigurationNotFoundError",
    "DEFAULT_CATEGORY_INSTRUCTIONS",
    "DEFAULT_FOCUS_AREAS",
    "DEFAULT_SYSTEM_ROLE",
    "default_configuration",
]
