"""Service layer exports."""

from .ai_config import AIConfigService, ConfigurationNotFoundError, default_configuration
from .compliance_analysis import ComplianceAnalysisService
from .image_handler import ImageHandler, ImageUploadResult, ImageValidation
from .prompt_builder import PromptBuilder
from .response_parser import ResponseParser, parse_compliance_response

__all__ = [
    "AIConfigService",
    "ComplianceAnalysisService",
    "ConfigurationNotFoundError",
    "ImageHandler",
    "ImageUploadResult",
    "ImageValidation",
    "PromptBuilder",
    "ResponseParser",
    "default_configuration",
    "parse_compliance_response",
]
