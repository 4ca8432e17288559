"""Tolerant extraction of structured results from free-text completions."""

from __future__ import annotations

import json
import logging
import math
import re
from typing import Any, List

from app.schemas import ComplianceResult

logger = logging.getLogger(__name__)

MANUAL_REVIEW = "Manual review required"
UNKNOWN = "Unknown"

# Greedy: first "{" through the last "}" in the reply.
_JSON_SPAN = re.compile(r"\{[\s\S]*\}")


def manual_review_result(raw_text: str) -> ComplianceResult:
    """Placeholder returned when no structured content can be recovered."""
    return ComplianceResult(
        hs_code=UNKNOWN,
        tariff_rate=0.0,
        requirements=[MANUAL_REVIEW],
        restrictions=[MANUAL_REVIEW],
        documentation=[MANUAL_REVIEW],
        estimated_processing_time=UNKNOWN,
        confidence=0.0,
        analysis=raw_text,
    )


def parse_compliance_response(raw_text: str) -> ComplianceResult:
    """Decode the reply into a ``ComplianceResult``; never raises."""
    raw_text = raw_text or ""
    match = _JSON_SPAN.search(raw_text)
    if not match:
        logger.warning("No JSON object found in inference reply.")
        return manual_review_result(raw_text)

    try:
        parsed = json.loads(match.group(0))
    except (ValueError, RecursionError) as exc:
        logger.warning("Unable to decode inference reply as JSON: %s", exc)
        return manual_review_result(raw_text)
    if not isinstance(parsed, dict):
        return manual_review_result(raw_text)

    return ComplianceResult(
        hs_code=_text(parsed.get("hsCode")) or UNKNOWN,
        tariff_rate=_number(parsed.get("tariffRate")),
        requirements=_string_list(parsed.get("requirements")),
        restrictions=_string_list(parsed.get("restrictions")),
        documentation=_string_list(parsed.get("documentation")),
        estimated_processing_time=_text(parsed.get("estimatedProcessingTime")) or UNKNOWN,
        confidence=min(1.0, max(0.0, _number(parsed.get("confidence")))),
        analysis=_text(parsed.get("analysis")) or raw_text,
    )


def _number(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip().rstrip("%"))
        except ValueError:
            return 0.0
    else:
        return 0.0
    return number if math.isfinite(number) else 0.0


def _text(value: Any) -> str:
    if value is None or isinstance(value, (dict, list)):
        return ""
    return str(value).strip()


def _string_list(value: Any) -> List[str]:
    if value is None or value == "":
        return []
    if not isinstance(value, list):
        value = [value]
    return [str(item) for item in value if item not in (None, "")]


class ResponseParser:
    """Object seam over :func:`parse_compliance_response` for injection."""

    def parse(self, raw_text: str) -> ComplianceResult:
        return parse_compliance_response(raw_text)


__all__ = [
    "MANUAL_REVIEW",
    "ResponseParser",
    "manual_review_result",
    "parse_compliance_response",
]
