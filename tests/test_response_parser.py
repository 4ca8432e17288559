try:
    from . import _bootstrap  # noqa: F401
except ImportError:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import json

from app.services.response_parser import (
    MANUAL_REVIEW,
    ResponseParser,
    parse_compliance_response,
)


def test_parses_json_embedded_in_prose() -> None:
    reply = (
        "Here is the assessment you asked for:\n"
        + json.dumps(
            {
                "hsCode": "8539.50",
                "tariffRate": 6.5,
                "requirements": ["CSA certification"],
                "restrictions": [],
                "documentation": ["Commercial invoice", "Certificate of origin"],
                "estimatedProcessingTime": "3-5 business days",
                "confidence": 0.82,
                "analysis": "LED lamps fall under heading 8539.",
            }
        )
        + "\nLet me know if you need more."
    )

    result = parse_compliance_response(reply)

    assert result.hs_code == "8539.50"
    assert result.tariff_rate == 6.5
    assert result.requirements == ["CSA certification"]
    assert result.restrictions == []
    assert result.documentation == ["Commercial invoice", "Certificate of origin"]
    assert result.estimated_processing_time == "3-5 business days"
    assert result.confidence == 0.82
    assert result.analysis == "LED lamps fall under heading 8539."


def test_missing_fields_fall_back_individually() -> None:
    reply = '{"hsCode": "6109.10"}'

    result = parse_compliance_response(reply)

    assert result.hs_code == "6109.10"
    assert result.tariff_rate == 0
    assert result.requirements == []
    assert result.restrictions == []
    assert result.documentation == []
    assert result.estimated_processing_time == "Unknown"
    assert result.confidence == 0
    assert result.analysis == reply


def test_plain_prose_yields_manual_review_placeholder() -> None:
    reply = "I am unable to classify this product without more detail."

    result = parse_compliance_response(reply)

    assert result.hs_code == "Unknown"
    assert result.tariff_rate == 0
    assert result.confidence == 0
    assert result.requirements == [MANUAL_REVIEW]
    assert result.restrictions == [MANUAL_REVIEW]
    assert result.documentation == [MANUAL_REVIEW]
    assert result.estimated_processing_time == "Unknown"
    assert result.analysis == reply


def test_undecodable_braces_yield_placeholder() -> None:
    reply = "{hsCode: 8539, this is not json}"

    result = ResponseParser().parse(reply)

    assert result.requirements == [MANUAL_REVIEW]
    assert result.analysis == reply


def test_greedy_span_covering_two_objects_is_not_decodable() -> None:
    reply = '{"hsCode": "1"} and also {"hsCode": "2"}'

    result = parse_compliance_response(reply)

    assert result.hs_code == "Unknown"
    assert result.documentation == [MANUAL_REVIEW]


def test_confidence_is_clamped_and_invalid_values_default() -> None:
    assert parse_compliance_response('{"confidence": 1.7}').confidence == 1.0
    assert parse_compliance_response('{"confidence": -0.2}').confidence == 0.0
    assert parse_compliance_response('{"confidence": "high"}').confidence == 0.0
    assert parse_compliance_response('{"confidence": "0.4"}').confidence == 0.4


def test_scalar_values_are_coerced() -> None:
    reply = json.dumps(
        {
            "hsCode": 853950,
            "tariffRate": "6.5%",
            "requirements": "Import permit",
            "documentation": ["Invoice", None, 7],
        }
    )

    result = parse_compliance_response(reply)

    assert result.hs_code == "853950"
    assert result.tariff_rate == 6.5
    assert result.requirements == ["Import permit"]
    assert result.documentation == ["Invoice", "7"]


def test_empty_reply_never_raises() -> None:
    result = parse_compliance_response("")

    assert result.hs_code == "Unknown"
    assert result.analysis == ""


def test_deeply_nested_reply_falls_back_to_placeholder() -> None:
    reply = '{"a":' + "[" * 100000 + "]" * 100000 + "}"

    result = parse_compliance_response(reply)

    assert result.hs_code == "Unknown"
    assert result.confidence == 0.0
    assert result.analysis == reply
