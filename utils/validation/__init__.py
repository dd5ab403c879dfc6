"""
Validation Package for Conversion Killer Check

Schema checks applied to external analysis payloads before they are
trusted as an Analysis Result.
"""

from .llm_result import LLMAnalysisPayload, validate_llm_payload

__all__ = ["LLMAnalysisPayload", "validate_llm_payload"]
