from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


# Models
class Defect(BaseModel):
    """A detected conversion killer."""

    model_config = ConfigDict(frozen=True)

    title: str
    detail: str
    rule_id: Optional[str] = Field(default=None, exclude=True)


class AnalysisRequest(BaseModel):
    url: str


class AnalysisResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str
    total_found: int = Field(default=0, ge=0, alias="totalFound")
    top_defects: List[Defect] = Field(default_factory=list, alias="topDefects", max_length=2)
    remaining: int = Field(default=0, ge=0)
    is_special_case: bool = Field(default=False, alias="isSpecialCase")
    note: Optional[str] = None

    def to_response(self) -> dict:
        """JSON-ready dict with the public camelCase field names."""
        return self.model_dump(by_alias=True)


class ErrorResponse(BaseModel):
    message: str
