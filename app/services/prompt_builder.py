"""Build chat messages for compliance analysis requests."""

from __future__ import annotations

from textwrap import dedent

from app.schemas import AnalysisConfiguration, AnalysisRequest, ChatMessage

CUSTOM_SYSTEM_MESSAGE = (
    "You are a specialized AI assistant focused on Canadian customs compliance. "
    "Always provide accurate, up-to-date information based on current regulations."
)

IMAGE_NOTE = (
    "Note: A product image was provided but cannot be analyzed with this model. "
    "Analysis will be based on the text description provided."
)

RESPONSE_SCHEMA = dedent(
    """\
    Format your response as JSON with these exact keys:
    {
      "hsCode": "string",
      "tariffRate": number,
      "requirements": ["string array"],
      "restrictions": ["string array"],
      "documentation": ["string array"],
      "estimatedProcessingTime": "string",
      "confidence": number,
      "analysis": "detailed text explanation"
    }"""
)

_ANALYSIS_CHECKLIST = dedent(
    """\
    Please provide a comprehensive analysis including:

    1. HS CODE CLASSIFICATION:
       - Primary HS code with 6-10 digits
       - Alternative codes to consider
       - Classification reasoning and methodology

    2. TARIFF ANALYSIS:
       - Most Favored Nation (MFN) rate
       - Preferential rates (if applicable)
       - Tariff reduction opportunities
       - Estimated duties and taxes

    3. REGULATORY REQUIREMENTS:
       - Mandatory certifications and standards
       - Import permits and licenses
       - Labeling and marking requirements
       - Country-specific regulations

    4. DOCUMENTATION CHECKLIST:
       - Commercial invoice requirements
       - Certificates of origin
       - Safety and compliance certificates
       - Special documentation needs

    5. COMPLIANCE RISKS:
       - Potential regulatory violations
       - Common mistakes to avoid
       - Penalty risks and mitigation

    6. COST OPTIMIZATION:
       - Duty reduction strategies
       - Free trade agreement benefits
       - Supply chain optimization tips

    7. PROCESSING TIMELINE:
       - Standard processing time
       - Factors affecting timeline
       - Expedited options

    8. CONFIDENCE ASSESSMENT:
       - Classification confidence (0-1)
       - Areas of uncertainty
       - Recommended verification steps"""
)


class PromptBuilder:
    """Turn a submission and a resolved configuration into chat messages."""

    def build(
        self,
        request: AnalysisRequest,
        configuration: AnalysisConfiguration,
        *,
        image_attached: bool = False,
    ) -> list[ChatMessage]:
        if configuration.is_default:
            content = self._default_prompt(request)
            return [ChatMessage(role="user", content=_with_image_note(content, image_attached))]

        content = self._custom_prompt(request, configuration)
        return [
            ChatMessage(role="system", content=CUSTOM_SYSTEM_MESSAGE),
            ChatMessage(role="user", content=_with_image_note(content, image_attached)),
        ]

    def build_simplified(self, request: AnalysisRequest) -> list[ChatMessage]:
        """Reduced prompt used when a full prompt could not be completed."""
        content = (
            "Classify this product for customs import and answer only with JSON.\n"
            f"Product: {request.product_name}\n"
            f"Category: {request.product_category}\n"
            f"Route: {request.origin_country} -> {request.destination_country}\n\n"
            f"{RESPONSE_SCHEMA}"
        )
        return [ChatMessage(role="user", content=content)]

    @staticmethod
    def _default_prompt(request: AnalysisRequest) -> str:
        return (
            "You are a Canadian customs compliance expert. Analyze the following "
            "product for import requirements to Canada.\n\n"
            "Product Details:\n"
            f"- Name: {request.product_name}\n"
            f"- Description: {request.product_description}\n"
            f"- Category: {request.product_category}\n"
            f"- Origin: {request.origin_country}\n"
            f"- Destination: {request.destination_country}\n\n"
            "Please provide a detailed analysis including:\n"
            "1. HS Code (Harmonized System code)\n"
            "2. Tariff rate (percentage)\n"
            "3. Required documentation\n"
            "4. Any restrictions or special requirements\n"
            "5. Estimated processing time\n"
            "6. Your confidence level (0-1)\n\n"
            f"{RESPONSE_SCHEMA}"
        )

    @staticmethod
    def _custom_prompt(request: AnalysisRequest, configuration: AnalysisConfiguration) -> str:
        instructions = configuration.category_instructions
        category_instruction = (
            instructions.get(request.product_category) or instructions.get("Other") or ""
        )
        additional = (
            f"ADDITIONAL INSTRUCTIONS: {configuration.custom_instructions}"
            if configuration.custom_instructions
            else ""
        )
        sections = [
            configuration.system_role,
            "ANALYSIS REQUEST:\n"
            f"Product: {request.product_name}\n"
            f"Description: {request.product_description}\n"
            f"Category: {request.product_category}\n"
            f"Route: {request.origin_country} -> {request.destination_country}",
            f"CATEGORY-SPECIFIC FOCUS:\n{category_instruction}",
            f"FOCUS AREAS:\n{', '.join(configuration.focus_areas)}",
            additional,
            _ANALYSIS_CHECKLIST,
            RESPONSE_SCHEMA,
        ]
        return "\n\n".join(sections)


def _with_image_note(content: str, image_attached: bool) -> str:
    if not image_attached:
        return content
    return f"{content}\n\n{IMAGE_NOTE}"


__all__ = ["CUSTOM_SYSTEM_MESSAGE", "IMAGE_NOTE", "PromptBuilder", "RESPONSE_SCHEMA"]
