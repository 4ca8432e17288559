"""
Orchestration of compliance analyses from submission to terminal status.

Each submission owns one analysis record and walks it through
``pending -> processing -> completed | failed``. Image handling is a side
branch whose failure never aborts the analysis, and an unparseable reply still
completes the record with the manual-review placeholder. Only a failure to
obtain a reply (or an unexpected error while building, calling or parsing)
marks the record failed.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional

from fastapi import HTTPException, status

from app.clients.inference import InferenceClient
from app.clients.sqlite_store import SQLiteStore, StoreError
from app.schemas import (
    AnalysisRecord,
    AnalysisRequest,
    AnalysisStatus,
    ComplianceResult,
    FallbackBehavior,
    SubmissionOutcome,
)
from app.services.ai_config import AIConfigService
from app.services.image_handler import ImageHandler
from app.services.prompt_builder import PromptBuilder
from app.services.response_parser import ResponseParser

logger = logging.getLogger(__name__)

_OPEN_STATUSES = (AnalysisStatus.PENDING, AnalysisStatus.PROCESSING)


class ComplianceAnalysisService:
    """Create, run, read and delete compliance analyses."""

    def __init__(
        self,
        *,
        store: SQLiteStore,
        config_service: AIConfigService,
        inference_client: InferenceClient,
        image_handler: ImageHandler,
        prompt_builder: PromptBuilder | None = None,
        response_parser: ResponseParser | None = None,
        honor_fallback_behavior: bool = False,
    ) -> None:
        self._store = store
        self._configs = config_service
        self._inference = inference_client
        self._images = image_handler
        self._prompts = prompt_builder or PromptBuilder()
        self._parser = response_parser or ResponseParser()
        self._honor_fallback = honor_fallback_behavior

    async def submit(self, *, user_id: str, request: AnalysisRequest) -> SubmissionOutcome:
        """Run one submission to a terminal status and return the stored record."""
        try:
            record = await asyncio.to_thread(
                self._store.insert_analysis, user_id=user_id, request=request
            )
        except StoreError as exc:
            logger.error("Failed to create analysis record: %s", exc)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to create analysis: {exc}",
            ) from exc

        analysis_id = record.id
        log_extra = {"analysis_id": analysis_id, "user_id": user_id}
        logger.info("Created analysis", extra=log_extra)

        image_error: Optional[str] = None
        image_attached = False
        if request.product_image is not None:
            image_attached = bool(self._images.to_transfer_encoding(request.product_image))
            try:
                image_error = await self._store_image(
                    request, user_id=user_id, analysis_id=analysis_id
                )
            except Exception as exc:
                logger.exception("Unexpected error while storing product image", extra=log_extra)
                image_error = f"Image upload failed: {exc}"

        await self._best_effort(
            "mark analysis processing",
            analysis_id,
            self._store.transition_analysis,
            analysis_id,
            to_status=AnalysisStatus.PROCESSING,
            from_statuses=(AnalysisStatus.PENDING,),
        )

        try:
            result = await self._run_inference(request, image_attached=image_attached)
        except Exception as exc:
            logger.exception("Compliance analysis failed", extra=log_extra)
            message = f"Analysis failed: {exc}"
            await self._mark_failed(analysis_id, message)
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail={"analysis_id": analysis_id, "message": message},
            ) from exc

        completed = await self._mark_completed(analysis_id, result)
        logger.info("Completed analysis", extra=log_extra)
        return SubmissionOutcome(analysis=completed, image_error=image_error)

    async def get_analysis(self, *, user_id: str, analysis_id: str) -> AnalysisRecord:
        """Return one analysis owned by ``user_id`` or raise 404."""
        record = await self._read(self._store.get_analysis, analysis_id)
        if record is None or record.user_id != user_id:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Analysis not found."
            )
        return record

    async def list_analyses(self, *, user_id: str) -> List[AnalysisRecord]:
        """Return the user's analyses, newest first."""
        return await self._read(self._store.list_analyses, user_id)

    async def delete_analysis(self, *, user_id: str, analysis_id: str) -> None:
        """Delete the record and, when present, its stored image."""
        record = await self.get_analysis(user_id=user_id, analysis_id=analysis_id)
        if record.product_image_path:
            await self._images.delete(record.product_image_path)
        deleted = await self._read(self._store.delete_analysis, analysis_id)
        if not deleted:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Analysis not found."
            )

    async def _run_inference(
        self, request: AnalysisRequest, *, image_attached: bool
    ) -> ComplianceResult:
        configuration = await self._configs.resolve_active()
        messages = self._prompts.build(request, configuration, image_attached=image_attached)

        fallback = FallbackBehavior.ERROR
        if self._honor_fallback:
            fallback = configuration.fallback_behavior
        simplified = None
        if fallback is FallbackBehavior.SIMPLIFY:
            simplified = self._prompts.build_simplified(request)

        raw = await self._inference.complete(
            messages,
            temperature=configuration.temperature,
            max_tokens=configuration.max_tokens,
            fallback=fallback,
            simplified_messages=simplified,
        )
        return self._parser.parse(raw)

    async def _store_image(
        self, request: AnalysisRequest, *, user_id: str, analysis_id: str
    ) -> Optional[str]:
        image = request.product_image
        validation = self._images.validate(image)
        if not validation.is_valid:
            logger.info(
                "Rejected product image: %s", validation.error, extra={"analysis_id": analysis_id}
            )
            return validation.error

        upload = await self._images.upload(image, user_id=user_id, analysis_id=analysis_id)
        if not upload.success:
            return upload.error

        await self._best_effort(
            "link product image",
            analysis_id,
            self._store.attach_image,
            analysis_id,
            path=upload.image_path,
            url=upload.image_url,
        )
        return None

    async def _mark_completed(
        self, analysis_id: str, result: ComplianceResult
    ) -> AnalysisRecord:
        fields = {
            "hs_code": result.hs_code,
            "tariff_rate": result.tariff_rate,
            "requirements": result.requirements,
            "restrictions": result.restrictions,
            "documentation": result.documentation,
            "estimated_processing_time": result.estimated_processing_time,
            "confidence_score": result.confidence,
            "analysis_text": result.analysis,
            "completed_at": datetime.now(timezone.utc).isoformat(),
        }
        try:
            updated = await asyncio.to_thread(
                self._store.transition_analysis,
                analysis_id,
                to_status=AnalysisStatus.COMPLETED,
                from_statuses=_OPEN_STATUSES,
                fields=fields,
            )
            record = await asyncio.to_thread(self._store.get_analysis, analysis_id)
        except StoreError as exc:
            logger.error("Failed to persist analysis result: %s", exc)
            await self._mark_failed(analysis_id, f"Failed to persist analysis result: {exc}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail={"analysis_id": analysis_id, "message": "Failed to persist analysis result."},
            ) from exc

        if not updated or record is None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Analysis was removed or finalized while it was running.",
            )
        return record

    async def _mark_failed(self, analysis_id: str, message: str) -> None:
        await self._best_effort(
            "mark analysis failed",
            analysis_id,
            self._store.transition_analysis,
            analysis_id,
            to_status=AnalysisStatus.FAILED,
            from_statuses=_OPEN_STATUSES,
            fields={"analysis_text": message},
        )

    @staticmethod
    async def _best_effort(
        action: str, analysis_id: str, func: Callable[..., Any], *args, **kwargs
    ) -> None:
        """Run a store write whose failure is logged but not propagated."""
        try:
            applied = await asyncio.to_thread(func, *args, **kwargs)
        except StoreError as exc:
            logger.error(
                "Failed to %s: %s", action, exc, extra={"analysis_id": analysis_id}
            )
            return
        if applied is False:
            logger.warning(
                "Could not %s; record missing or already final",
                action,
                extra={"analysis_id": analysis_id},
            )

    @staticmethod
    async def _read(func: Callable[..., Any], *args) -> Any:
        try:
            return await asyncio.to_thread(func, *args)
        except StoreError as exc:
            logger.error("Analysis store error: %s", exc)
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Analysis store unavailable.",
            ) from exc


__all__ = ["ComplianceAnalysisService"]
