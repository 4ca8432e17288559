"""Tests for the command-line analysis runner."""

from __future__ import annotations

try:
    from . import _bootstrap  # noqa: F401
except ImportError:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

from datetime import datetime, timezone

import pytest
from fastapi import HTTPException

from app.schemas import AnalysisRecord, AnalysisStatus, SubmissionOutcome
from scripts import analyze_product


class StubService:
    def __init__(self, error: HTTPException | None = None) -> None:
        self.error = error
        self.requests = []

    async def submit(self, *, user_id, request):
        self.requests.append((user_id, request))
        if self.error is not None:
            raise self.error
        now = datetime.now(timezone.utc)
        return SubmissionOutcome(
            analysis=AnalysisRecord(
                id="an-1",
                user_id=user_id,
                product_name=request.product_name,
                hs_code="8539.50",
                tariff_rate=6.5,
                confidence_score=0.82,
                requirements=["CSA certification"],
                analysis_text="LED lamps fall under heading 8539.",
                status=AnalysisStatus.COMPLETED,
                created_at=now,
                updated_at=now,
                completed_at=now,
            )
        )


def _use_service(monkeypatch: pytest.MonkeyPatch, service: StubService) -> None:
    monkeypatch.setattr(analyze_product, "get_compliance_analysis_service", lambda: service)


def test_main_prints_completed_analysis(monkeypatch, capsys) -> None:
    service = StubService()
    _use_service(monkeypatch, service)

    exit_code = analyze_product.main(
        ["LED Strip", "--category", "Electronics", "--origin", "China"]
    )

    assert exit_code == analyze_product.EXIT_OK
    user_id, request = service.requests[0]
    assert user_id == "cli"
    assert request.destination_country == "Canada"
    output = capsys.readouterr().out
    assert "COMPLETED" in output
    assert "8539.50" in output


def test_main_rejects_empty_product_name(monkeypatch) -> None:
    service = StubService()
    _use_service(monkeypatch, service)

    assert analyze_product.main([""]) == analyze_product.EXIT_INVALID_INPUT
    assert service.requests == []


def test_main_reports_failed_analysis(monkeypatch, capsys) -> None:
    error = HTTPException(status_code=502, detail={"analysis_id": "an-1", "message": "boom"})
    _use_service(monkeypatch, StubService(error=error))

    assert analyze_product.main(["LED Strip"]) == analyze_product.EXIT_ANALYSIS_FAILED
    assert "boom" in capsys.readouterr().err
