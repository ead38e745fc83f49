"""Language-model collaborator used by the check-in and companion."""

from friendhelp.analysis.service import (
    AnalysisService,
    LLMAnalysisService,
    message_text,
    parse_day_analysis,
)

__all__ = [
    "AnalysisService",
    "LLMAnalysisService",
    "message_text",
    "parse_day_analysis",
]
