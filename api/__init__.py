# API package - FastAPI components
from .models import (
    Defect,
    AnalysisRequest,
    AnalysisResult,
    ErrorResponse,
)

__all__ = [
    "Defect",
    "AnalysisRequest",
    "AnalysisResult",
    "ErrorResponse",
]
