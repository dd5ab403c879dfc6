"""
Request pipeline for Conversion Killer Check.

Walks one request through
VALIDATING -> EXEMPT | CACHED | EXTRACTING -> SCORING -> COMPOSING -> DONE,
with FAILED reachable from every step. The pipeline holds no state between
requests; cache and rate limiter are external collaborators passed in.
"""

import logging
from typing import Iterable, Optional

from pydantic import ValidationError

from api.models import AnalysisResult
from analyzer.backends import ScoringBackend
from analyzer.composer import compose_result, exempt_result, hostname_of
from analyzer.selection import DEFAULT_LOW_THRESHOLD, select_top_defects
from core.exceptions import AnalysisError, AnalysisFailedError, InvalidURLError
from utils.url_validator import canonical_url, validate_url

logger = logging.getLogger(__name__)

# Request states
VALIDATING = "VALIDATING"
EXEMPT = "EXEMPT"
CACHED = "CACHED"
EXTRACTING = "EXTRACTING"
SCORING = "SCORING"
COMPOSING = "COMPOSING"
DONE = "DONE"
FAILED = "FAILED"


class AnalysisPipeline:
    """
    Runs one analysis request end to end.

    Args:
        backend: Scoring strategy (heuristic or LLM)
        cache: Object with get_cached_analysis(url) / cache_analysis(url, result), or None
        rate_limiter: Object with check(caller_id), or None
        exempt_domains: Host substrings that get the canned positive result
        low_threshold: Counts below this show one killer instead of two
    """

    def __init__(
        self,
        backend: ScoringBackend,
        cache=None,
        rate_limiter=None,
        exempt_domains: Iterable[str] = (),
        low_threshold: int = DEFAULT_LOW_THRESHOLD,
    ):
        self.backend = backend
        self.cache = cache
        self.rate_limiter = rate_limiter
        self.exempt_domains = [d.lower() for d in exempt_domains if d]
        self.low_threshold = low_threshold
        self.state = None

    def _transition(self, state: str, url: str = ""):
        self.state = state
        logger.debug(f"➡️  {state} {url}")

    def is_exempt(self, url: str) -> bool:
        host = hostname_of(url).lower()
        return any(domain in host for domain in self.exempt_domains)

    def _cached_result(self, cache_url: str) -> Optional[AnalysisResult]:
        if self.cache is None:
            return None
        cached = self.cache.get_cached_analysis(cache_url)
        if cached is None:
            return None
        try:
            return AnalysisResult.model_validate(cached)
        except ValidationError:
            logger.warning(f"⚠️ Ignoring malformed cache entry for {cache_url}")
            return None

    async def run(self, raw_url: str, caller_id: str) -> AnalysisResult:
        """
        Analyze `raw_url` on behalf of `caller_id`.

        Raises:
            InvalidURLError: The URL failed validation (no network access happened)
            RateLimitExceededError: The caller is over quota
            PageFetchError / UpstreamFormatError / AnalysisFailedError: Analysis failed
        """
        self._transition(VALIDATING, raw_url)
        is_valid, url, error = validate_url(raw_url)
        if not is_valid:
            self._transition(FAILED, raw_url)
            logger.info(f"🚫 Invalid URL {raw_url!r}: {error}")
            raise InvalidURLError()

        if self.is_exempt(url):
            self._transition(EXEMPT, url)
            logger.info(f"⭐ Exempt host {hostname_of(url)}, returning canned result")
            self._transition(DONE, url)
            return exempt_result(url)

        try:
            if self.rate_limiter is not None:
                self.rate_limiter.check(caller_id)

            cache_url = canonical_url(url)
            cached = self._cached_result(cache_url)
            if cached is not None:
                self._transition(CACHED, url)
                logger.info(f"💾 Cache hit for {cache_url}")
                self._transition(DONE, url)
                return cached

            self._transition(EXTRACTING, url)
            findings = await self.backend.score(url)

            self._transition(SCORING, url)
            selection = select_top_defects(
                findings.defects, findings.total_found, low_threshold=self.low_threshold
            )

            self._transition(COMPOSING, url)
            result = compose_result(url, selection)
        except AnalysisError:
            self._transition(FAILED, url)
            raise
        except Exception as e:
            self._transition(FAILED, url)
            logger.exception(f"❌ Unexpected failure analyzing {url}: {str(e)}")
            raise AnalysisFailedError(f"Unexpected failure analyzing {url}: {str(e)}") from e

        if self.cache is not None:
            self.cache.cache_analysis(cache_url, result.to_response())

        self._transition(DONE, url)
        logger.info(f"✅ {url}: {result.total_found} conversion killer(s), showing {len(result.top_defects)}")
        return result
