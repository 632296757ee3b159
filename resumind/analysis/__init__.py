# resumind/analysis/__init__.py
# ============================================================
# Analysis Package
# ============================================================
# Everything on the AI side of the pipeline:
#   - prompts: review instructions + expected JSON shape
#   - schemas: response validation and content normalization
#   - client:  OpenAI-compatible feedback client (httpx)
# ============================================================

from resumind.analysis.client import FeedbackClient, FeedbackService
from resumind.analysis.prompts import FeedbackCategory, prepare_instructions
from resumind.analysis.schemas import (
    AIResponse,
    PartsContent,
    TextContent,
    extract_feedback,
    normalize_content,
    parse_ai_response,
    parse_feedback,
)

__all__ = [
    "FeedbackClient",
    "FeedbackService",
    "FeedbackCategory",
    "prepare_instructions",
    "AIResponse",
    "PartsContent",
    "TextContent",
    "extract_feedback",
    "normalize_content",
    "parse_ai_response",
    "parse_feedback",
]
