"""
Pydantic models for compliance analyses and AI configurations.
"""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

PRODUCT_CATEGORIES: tuple[str, ...] = (
    "Electronics",
    "Textiles & Apparel",
    "Machinery & Equipment",
    "Chemicals",
    "Food & Beverages",
    "Automotive",
    "Pharmaceuticals",
    "Construction Materials",
    "Agricultural Products",
    "Other",
)


class AnalysisStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (AnalysisStatus.COMPLETED, AnalysisStatus.FAILED)


class AnalysisDepth(str, Enum):
    BASIC = "basic"
    DETAILED = "detailed"
    EXPERT = "expert"


class ResponseFormat(str, Enum):
    JSON = "json"
    TEXT = "text"
    STRUCTURED = "structured"


class FallbackBehavior(str, Enum):
    RETRY = "retry"
    SIMPLIFY = "simplify"
    ERROR = "error"


class ProductImage(BaseModel):
    """Image attached to a submission, transported as base64."""

    filename: str = Field(..., description="Original file name including extension.")
    mime_type: str = Field(..., description="Declared content type (e.g., image/png).")
    file_b64: str = Field(..., description="Base64-encoded file contents.")


class AnalysisRequest(BaseModel):
    """Product submission to be assessed for cross-border compliance."""

    product_name: str = Field(..., min_length=1, max_length=200)
    product_description: str = Field("", description="Free-text product description.")
    product_category: str = Field(
        "", description="One of the supported product categories."
    )
    origin_country: str = Field("", description="Country the goods ship from.")
    destination_country: str = Field("", description="Country the goods are imported into.")
    product_image: Optional[ProductImage] = None

    @field_validator("product_category")
    @classmethod
    def _known_category(cls, value: str) -> str:
        value = value.strip()
        if value and value not in PRODUCT_CATEGORIES:
            raise ValueError(
                f"Unsupported product category {value!r}; expected one of "
                f"{', '.join(PRODUCT_CATEGORIES)}."
            )
        return value


class ComplianceResult(BaseModel):
    """Structured assessment extracted from the inference reply."""

    hs_code: str = "Unknown"
    tariff_rate: float = 0.0
    requirements: List[str] = Field(default_factory=list)
    restrictions: List[str] = Field(default_factory=list)
    documentation: List[str] = Field(default_factory=list)
    estimated_processing_time: str = "Unknown"
    confidence: float = Field(0.0, ge=0.0, le=1.0)
    analysis: str = ""


class AnalysisRecord(BaseModel):
    """Persisted analysis row as returned to API consumers."""

    id: str
    user_id: str
    product_name: str
    product_description: str = ""
    product_category: str = ""
    origin_country: str = ""
    destination_country: str = ""
    product_image_path: Optional[str] = None
    product_image_url: Optional[str] = None
    hs_code: Optional[str] = None
    tariff_rate: Optional[float] = None
    requirements: Optional[List[str]] = None
    restrictions: Optional[List[str]] = None
    documentation: Optional[List[str]] = None
    estimated_processing_time: Optional[str] = None
    confidence_score: Optional[float] = None
    analysis_text: Optional[str] = None
    status: AnalysisStatus = AnalysisStatus.PENDING
    created_at: datetime
    updated_at: datetime
    completed_at: Optional[datetime] = None


class SubmissionOutcome(BaseModel):
    """Response envelope for a finished submission."""

    analysis: AnalysisRecord
    image_error: Optional[str] = Field(
        None,
        description="Why the supplied image was not stored, when it was rejected.",
    )


class ChatMessage(BaseModel):
    """Role-tagged message sent to the chat-completion endpoint."""

    role: Literal["system", "user", "assistant"]
    content: str


class AnalysisConfigurationPayload(BaseModel):
    """Admin-supplied fields for creating or editing a configuration."""

    name: Optional[str] = None
    description: Optional[str] = None
    is_active: Optional[bool] = None
    system_role: Optional[str] = None
    analysis_depth: Optional[AnalysisDepth] = None
    temperature: Optional[float] = Field(None, ge=0.0, le=2.0)
    max_tokens: Optional[int] = Field(None, gt=0)
    category_instructions: Optional[Dict[str, str]] = None
    focus_areas: Optional[List[str]] = None
    custom_instructions: Optional[str] = None
    response_format: Optional[ResponseFormat] = None
    validation_rules: Optional[List[str]] = None
    fallback_behavior: Optional[FallbackBehavior] = None


class AnalysisConfiguration(BaseModel):
    """Prompt and model parameters governing analyses."""

    id: Optional[str] = Field(
        None, description="Absent for the built-in default configuration."
    )
    name: str = ""
    description: str = ""
    is_active: bool = False
    system_role: str = ""
    analysis_depth: AnalysisDepth = AnalysisDepth.DETAILED
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    category_instructions: Dict[str, str] = Field(default_factory=dict)
    focus_areas: List[str] = Field(default_factory=list)
    custom_instructions: str = ""
    response_format: ResponseFormat = ResponseFormat.JSON
    validation_rules: List[str] = Field(default_factory=list)
    fallback_behavior: FallbackBehavior = FallbackBehavior.RETRY
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    created_by: Optional[str] = None

    @property
    def is_default(self) -> bool:
        return self.id is None


__all__ = [
    "AnalysisConfiguration",
    "AnalysisConfigurationPayload",
    "AnalysisDepth",
    "AnalysisRecord",
    "AnalysisRequest",
    "AnalysisStatus",
    "ChatMessage",
    "ComplianceResult",
    "FallbackBehavior",
    "PRODUCT_CATEGORIES",
    "ProductImage",
    "ResponseFormat",
    "SubmissionOutcome",
]
