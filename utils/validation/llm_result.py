"""
Schema validation for the LLM judgment payload.

The model's JSON is only trusted after it matches the Analysis Result
shape: a non-negative totalFound and an ordered list of title/detail
killers. Missing fields are a format error, never an implicit zero.
"""

import logging
from typing import List, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from api.models import Defect
from core.exceptions import UpstreamFormatError

logger = logging.getLogger(__name__)

MAX_DETAIL_WORDS = 25


class LLMKiller(BaseModel):
    model_config = ConfigDict(extra="ignore")

    title: str = Field(min_length=1)
    detail: str = Field(min_length=1)

    @field_validator("title", "detail")
    @classmethod
    def _strip(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class LLMAnalysisPayload(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    total_found: int = Field(alias="totalFound", ge=0, strict=True)
    killers: List[LLMKiller]

    @model_validator(mode="after")
    def _consistent_counts(self):
        if self.total_found < len(self.killers):
            raise ValueError(
                f"totalFound ({self.total_found}) is smaller than the number of killers ({len(self.killers)})"
            )
        if self.total_found > 0 and not self.killers:
            raise ValueError("totalFound is positive but no killers were listed")
        return self


def trim_words(text: str, max_words: int = MAX_DETAIL_WORDS) -> str:
    words = text.split()
    if len(words) <= max_words:
        return text
    return " ".join(words[:max_words]).rstrip(",;:") + "…"


def validate_llm_payload(payload) -> Tuple[int, List[Defect]]:
    """
    Validate a parsed LLM response.

    Args:
        payload: Parsed JSON object from the model

    Returns:
        (total_found, defects) with details trimmed to MAX_DETAIL_WORDS

    Raises:
        UpstreamFormatError: If the payload does not match the schema
    """
    if not isinstance(payload, dict):
        raise UpstreamFormatError(f"LLM payload is {type(payload).__name__}, expected object")

    try:
        parsed = LLMAnalysisPayload.model_validate(payload)
    except ValidationError as e:
        logger.error(f"❌ LLM payload failed schema validation: {e.error_count()} error(s)")
        raise UpstreamFormatError(f"LLM payload failed validation: {e}") from e

    defects = [
        Defect(title=killer.title, detail=trim_words(killer.detail), rule_id="llm")
        for killer in parsed.killers
    ]
    return parsed.total_found, defects
