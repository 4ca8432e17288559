"""
FastAPI routes for the compliance analysis service.
"""

from __future__ import annotations

from http import HTTPStatus
from typing import Annotated, Any, List

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from app.dependencies import get_ai_config_service, get_compliance_analysis_service
from app.schemas import (
    AnalysisConfiguration,
    AnalysisConfigurationPayload,
    AnalysisRecord,
    AnalysisRequest,
    SubmissionOutcome,
)
from app.services.ai_config import ConfigurationNotFoundError

router = APIRouter()

UserIdQuery = Annotated[
    str, Query(min_length=1, description="Identifier of the requesting user.")
]


def _configuration_not_found(exc: ConfigurationNotFoundError) -> HTTPException:
    return HTTPException(
        status_code=HTTPStatus.NOT_FOUND,
        detail=f"AI configuration {exc.args[0]} not found.",
    )


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck() -> dict:
    """Simple health endpoint for monitoring."""
    return {"status": "ok"}


@router.post(
    "/analyses", response_model=SubmissionOutcome, status_code=HTTPStatus.CREATED
)
async def submit_analysis(
    payload: AnalysisRequest,
    user_id: UserIdQuery,
    service: Annotated[Any, Depends(get_compliance_analysis_service)],
) -> SubmissionOutcome:
    """Run a compliance analysis and return the completed record."""
    return await service.submit(user_id=user_id, request=payload)


@router.get("/analyses", response_model=List[AnalysisRecord])
async def list_analyses(
    user_id: UserIdQuery,
    service: Annotated[Any, Depends(get_compliance_analysis_service)],
) -> List[AnalysisRecord]:
    """Return the user's analyses, newest first."""
    return await service.list_analyses(user_id=user_id)


@router.get("/analyses/{analysis_id}", response_model=AnalysisRecord)
async def get_analysis(
    analysis_id: str,
    user_id: UserIdQuery,
    service: Annotated[Any, Depends(get_compliance_analysis_service)],
) -> AnalysisRecord:
    return await service.get_analysis(user_id=user_id, analysis_id=analysis_id)


@router.delete("/analyses/{analysis_id}", status_code=HTTPStatus.NO_CONTENT)
async def delete_analysis(
    analysis_id: str,
    user_id: UserIdQuery,
    service: Annotated[Any, Depends(get_compliance_analysis_service)],
) -> Response:
    """Delete an analysis together with its stored image."""
    await service.delete_analysis(user_id=user_id, analysis_id=analysis_id)
    return Response(status_code=HTTPStatus.NO_CONTENT)


@router.get("/admin/ai-configurations", response_model=List[AnalysisConfiguration])
async def list_ai_configurations(
    service: Annotated[Any, Depends(get_ai_config_service)],
) -> List[AnalysisConfiguration]:
    return await service.list_configurations()


@router.get("/admin/ai-configurations/active", response_model=AnalysisConfiguration)
async def get_active_ai_configuration(
    service: Annotated[Any, Depends(get_ai_config_service)],
) -> AnalysisConfiguration:
    """Return the configuration analyses currently run with (possibly the default)."""
    return await service.resolve_active()


@router.post(
    "/admin/ai-configurations",
    response_model=AnalysisConfiguration,
    status_code=HTTPStatus.CREATED,
)
async def create_ai_configuration(
    payload: AnalysisConfigurationPayload,
    service: Annotated[Any, Depends(get_ai_config_service)],
    created_by: str | None = Query(
        default=None, description="Administrator creating the configuration."
    ),
) -> AnalysisConfiguration:
    return await service.create_configuration(payload, created_by=created_by)


@router.get(
    "/admin/ai-configurations/{config_id}", response_model=AnalysisConfiguration
)
async def get_ai_configuration(
    config_id: str,
    service: Annotated[Any, Depends(get_ai_config_service)],
) -> AnalysisConfiguration:
    try:
        return await service.get_configuration(config_id)
    except ConfigurationNotFoundError as exc:
        raise _configuration_not_found(exc) from exc


@router.patch(
    "/admin/ai-configurations/{config_id}", response_model=AnalysisConfiguration
)
async def update_ai_configuration(
    config_id: str,
    payload: AnalysisConfigurationPayload,
    service: Annotated[Any, Depends(get_ai_config_service)],
) -> AnalysisConfiguration:
    try:
        return await service.update_configuration(config_id, payload)
    except ConfigurationNotFoundError as exc:
        raise _configuration_not_found(exc) from exc


@router.post(
    "/admin/ai-configurations/{config_id}/activate",
    response_model=AnalysisConfiguration,
)
async def activate_ai_configuration(
    config_id: str,
    service: Annotated[Any, Depends(get_ai_config_service)],
) -> AnalysisConfiguration:
    """Make this configuration the only active one."""
    try:
        return await service.set_active(config_id)
    except ConfigurationNotFoundError as exc:
        raise _configuration_not_found(exc) from exc


@router.delete(
    "/admin/ai-configurations/{config_id}", status_code=HTTPStatus.NO_CONTENT
)
async def delete_ai_configuration(
    config_id: str,
    service: Annotated[Any, Depends(get_ai_config_service)],
) -> Response:
    try:
        await service.delete_configuration(config_id)
    except ConfigurationNotFoundError as exc:
        raise _configuration_not_found(exc) from exc
    return Response(status_code=HTTPStatus.NO_CONTENT)


__all__ = ["router"]
