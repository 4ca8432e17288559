try:
    from . import _bootstrap  # noqa: F401
except ImportError:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

from app.schemas import AnalysisConfiguration, AnalysisRequest
from app.services.ai_config import default_configuration
from app.services.prompt_builder import CUSTOM_SYSTEM_MESSAGE, IMAGE_NOTE, PromptBuilder

_SCHEMA_KEYS = (
    '"hsCode"',
    '"tariffRate"',
    '"requirements"',
    '"restrictions"',
    '"documentation"',
    '"estimatedProcessingTime"',
    '"confidence"',
    '"analysis"',
)


def _custom_configuration(**overrides) -> AnalysisConfiguration:
    values = {
        "id": "cfg-1",
        "name": "Strict",
        "system_role": "You are a meticulous tariff engineer.",
        "category_instructions": {
            "Electronics": "Check FCC and CSA marks.",
            "Other": "Apply general customs principles.",
        },
        "focus_areas": ["HS accuracy", "Duty savings"],
        "custom_instructions": "Cite CBSA memoranda.",
    }
    values.update(overrides)
    return AnalysisConfiguration(**values)


def test_default_configuration_emits_single_user_message(led_strip_request) -> None:
    messages = PromptBuilder().build(led_strip_request, default_configuration())

    assert len(messages) == 1
    assert messages[0].role == "user"
    content = messages[0].content
    for expected in ("LED Strip", "5m flexible RGB", "Electronics", "China", "Canada"):
        assert expected in content
    for key in _SCHEMA_KEYS:
        assert key in content
    assert IMAGE_NOTE not in content


def test_custom_configuration_emits_system_then_user(led_strip_request) -> None:
    messages = PromptBuilder().build(led_strip_request, _custom_configuration())

    assert [message.role for message in messages] == ["system", "user"]
    assert messages[0].content == CUSTOM_SYSTEM_MESSAGE
    content = messages[1].content
    assert content.startswith("You are a meticulous tariff engineer.")
    assert "Route: China -> Canada" in content
    assert "Check FCC and CSA marks." in content
    assert "HS accuracy, Duty savings" in content
    assert "ADDITIONAL INSTRUCTIONS: Cite CBSA memoranda." in content
    for key in _SCHEMA_KEYS:
        assert key in content


def test_category_without_instruction_uses_other_instruction() -> None:
    request = AnalysisRequest(product_name="Brake pads", product_category="Automotive")
    configuration = _custom_configuration(
        category_instructions={"Other": "Apply general customs principles."}
    )

    content = PromptBuilder().build(request, configuration)[1].content

    assert "Apply general customs principles." in content


def test_missing_optional_sections_render_empty() -> None:
    request = AnalysisRequest(product_name="Widget")
    configuration = _custom_configuration(
        category_instructions={}, focus_areas=[], custom_instructions=""
    )

    content = PromptBuilder().build(request, configuration)[1].content

    assert "ADDITIONAL INSTRUCTIONS" not in content
    assert "CATEGORY-SPECIFIC FOCUS:\n" in content
    assert "Product: Widget" in content


def test_image_note_is_appended_when_image_supplied(led_strip_request) -> None:
    builder = PromptBuilder()

    default_messages = builder.build(
        led_strip_request, default_configuration(), image_attached=True
    )
    custom_messages = builder.build(
        led_strip_request, _custom_configuration(), image_attached=True
    )

    assert default_messages[-1].content.endswith(IMAGE_NOTE)
    assert custom_messages[-1].content.endswith(IMAGE_NOTE)
    assert IMAGE_NOTE not in custom_messages[0].content


def test_simplified_prompt_is_single_short_message(led_strip_request) -> None:
    messages = PromptBuilder().build_simplified(led_strip_request)

    assert len(messages) == 1
    assert messages[0].role == "user"
    assert "LED Strip" in messages[0].content
    assert '"hsCode"' in messages[0].content
