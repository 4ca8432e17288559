"""Public schema exports."""

from .compliance import (
    PRODUCT_CATEGORIES,
    AnalysisConfiguration,
    AnalysisConfigurationPayload,
    AnalysisDepth,
    AnalysisRecord,
    AnalysisRequest,
    AnalysisStatus,
    ChatMessage,
    ComplianceResult,
    FallbackBehavior,
    ProductImage,
    ResponseFormat,
    SubmissionOutcome,
)

__all__ = [
    "PRODUCT_CATEGORIES",
    "AnalysisConfiguration",
    "AnalysisConfigurationPayload",
    "AnalysisDepth",
    "AnalysisRecord",
    "AnalysisRequest",
    "AnalysisStatus",
    "ChatMessage",
    "ComplianceResult",
    "FallbackBehavior",
    "ProductImage",
    "ResponseFormat",
    "SubmissionOutcome",
]
