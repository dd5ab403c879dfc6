from functools import lru_cache
import logging

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from api.models import AnalysisRequest, AnalysisResult, ErrorResponse
from analyzer.backends import ScoringBackend, get_scoring_backend
from analyzer.pipeline import AnalysisPipeline
from config import settings
from core.exceptions import AnalysisError
from core.rate_limit import RateLimiter

logger = logging.getLogger(__name__)

# Create router
router = APIRouter()


@lru_cache(maxsize=1)
def get_backend() -> ScoringBackend:
    """Scoring backend shared by all requests (it holds no request state)."""
    return get_scoring_backend(settings)


def get_store():
    """
    Redis-backed cache for this request, or None when Redis is unreachable.
    """
    from core.cache import get_redis_client

    try:
        return get_redis_client()
    except RuntimeError as e:
        logger.warning(f"⚠️ Redis unavailable, running without cache and quota: {str(e)}")
        return None


def get_pipeline(
    backend: ScoringBackend = Depends(get_backend),
    store=Depends(get_store),
) -> AnalysisPipeline:
    rate_limiter = RateLimiter(store.client) if store is not None else None
    return AnalysisPipeline(
        backend,
        cache=store,
        rate_limiter=rate_limiter,
        exempt_domains=settings.EXEMPT_DOMAINS,
        low_threshold=settings.LOW_DEFECT_THRESHOLD,
    )


def get_caller_id(request: Request) -> str:
    """First X-Forwarded-For hop, else the socket peer."""
    forwarded = request.headers.get("x-forwarded-for", "")
    if forwarded.split(",")[0].strip():
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


@router.get("/")
async def root():
    return {
        "service": "Conversion Killer Check",
        "status": "running",
        "endpoints": {"analyze": "/analyze (POST)"},
    }


@router.options("/analyze")
async def analyze_preflight():
    return Response(status_code=200)


@router.post(
    "/analyze",
    response_model=AnalysisResult,
    responses={400: {"model": ErrorResponse}, 429: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def analyze_website(
    body: AnalysisRequest,
    request: Request,
    pipeline: AnalysisPipeline = Depends(get_pipeline),
):
    """
    Analyzes a landing page for conversion killers.

    Returns the total number found, the one or two most important ones and
    how many remain. Allow-listed hosts and pages without findings get a
    special-case positive result instead.
    """
    caller_id = get_caller_id(request)

    try:
        result = await pipeline.run(body.url, caller_id)
        return JSONResponse(status_code=200, content=result.to_response())
    except AnalysisError as e:
        if e.status_code >= 500:
            logger.error(f"ERROR: Analysis failed for {body.url}: {str(e)}")
        else:
            logger.info(f"Rejected request for {body.url}: {e.user_message}")
        return JSONResponse(status_code=e.status_code, content={"message": e.user_message})


@router.get("/health")
async def health_check():
    return {"status": "healthy"}
