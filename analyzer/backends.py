"""
Scoring backends for Conversion Killer Check.

Every backend turns a validated URL into Findings: the total number of
conversion killers and the killers themselves in priority order. The
pipeline selects and composes the same way regardless of which backend
produced them.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence

from api.models import Defect
from analyzer.extractors import extract_signals, summarize_page
from analyzer.prompts import get_conversion_killer_prompt
from analyzer.rules import RULE_CATALOG, Rule, evaluate_rules
from core.exceptions import UpstreamFormatError
from core.fetcher import PageFetcher
from utils.clients.pagespeed import PageSpeedClient, PerformanceSignals
from utils.parsing.json import repair_and_parse_json
from utils.validation.llm_result import validate_llm_payload

logger = logging.getLogger(__name__)


class Findings:
    """Backend output: total count plus ordered defects."""

    def __init__(self, total_found: int, defects: List[Defect]):
        self.total_found = total_found
        self.defects = defects

    def __repr__(self):
        return f"<Findings total={self.total_found} defects={[d.title for d in self.defects]}>"


class ScoringBackend(ABC):
    """Strategy interface for turning a URL into Findings."""

    name = "base"

    @abstractmethod
    async def score(self, url: str) -> Findings:
        """Return the conversion killers found on `url`, in priority order."""


class HeuristicBackend(ScoringBackend):
    """
    Rule-based scoring over the fetched markup.

    When a PageSpeed client is configured, the performance check runs
    concurrently with the page fetch. A failed or slow performance check
    only drops the performance rules; it never fails the analysis.
    """

    name = "heuristic"

    def __init__(
        self,
        fetcher: PageFetcher,
        performance_client: Optional[PageSpeedClient] = None,
        catalog: Sequence[Rule] = RULE_CATALOG,
        performance_timeout: Optional[float] = None,
        clock: Callable[[], datetime] = None,
    ):
        self.fetcher = fetcher
        self.performance_client = performance_client
        self.catalog = catalog
        self.performance_timeout = performance_timeout
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    async def _performance(self, url: str) -> Optional[PerformanceSignals]:
        if self.performance_client is None:
            return None
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self.performance_client.run, url),
                timeout=self.performance_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"⏱️ PageSpeed check timed out for {url}, continuing without it")
        except Exception as e:
            logger.warning(f"⚠️ PageSpeed check crashed for {url}, continuing without it: {str(e)}")
        return None

    async def score(self, url: str) -> Findings:
        markup, performance = await asyncio.gather(
            self.fetcher.fetch(url), self._performance(url)
        )

        signals = extract_signals(markup, url, current_year=self.clock().year)
        signals.performance = performance

        defects = evaluate_rules(signals, self.catalog)
        logger.info(f"🔍 {len(defects)} rule(s) triggered for {url}: {[d.rule_id for d in defects]}")
        return Findings(len(defects), defects)


class LLMBackend(ScoringBackend):
    """
    Delegates the judgment to Claude.

    The model receives a structured page summary and must answer with the
    Analysis Result shape, which is validated before use.
    """

    name = "llm"

    def __init__(self, fetcher: PageFetcher, complete: Callable[[str], str] = None, max_killers: int = 2):
        self.fetcher = fetcher
        self.max_killers = max_killers
        if complete is None:
            from utils.clients.anthropic import call_anthropic_api_with_retry

            complete = call_anthropic_api_with_retry
        self.complete = complete

    async def score(self, url: str) -> Findings:
        markup = await self.fetcher.fetch(url)
        prompt = get_conversion_killer_prompt(summarize_page(markup, url), max_killers=self.max_killers)

        response_text = await asyncio.to_thread(self.complete, prompt)

        if not response_text or not response_text.strip():
            logger.warning(f"⚠️ Empty LLM response for {url}, reporting no conversion killers")
            return Findings(0, [])

        try:
            payload = repair_and_parse_json(response_text)
        except ValueError as e:
            raise UpstreamFormatError(f"LLM response could not be parsed: {str(e)}") from e

        total_found, defects = validate_llm_payload(payload)
        logger.info(f"🤖 LLM reported {total_found} conversion killer(s) for {url}")
        return Findings(total_found, defects)


def get_scoring_backend(settings, fetcher: PageFetcher = None) -> ScoringBackend:
    """
    Build the backend named by settings.SCORING_BACKEND.

    The heuristic backend gets a PageSpeed client when an API key is set.
    """
    fetcher = fetcher or PageFetcher(
        timeout=settings.FETCH_TIMEOUT, max_bytes=settings.MAX_PAGE_BYTES, user_agent=settings.USER_AGENT
    )
    name = settings.SCORING_BACKEND.lower().strip()

    if name == "heuristic":
        performance_client = None
        if settings.pagespeed_enabled:
            performance_client = PageSpeedClient(settings.PAGESPEED_API_KEY, timeout=settings.PAGESPEED_TIMEOUT)
        return HeuristicBackend(
            fetcher,
            performance_client=performance_client,
            performance_timeout=settings.PAGESPEED_TIMEOUT,
        )

    if name == "llm":
        return LLMBackend(fetcher)

    raise ValueError(f"Unknown scoring backend: {settings.SCORING_BACKEND}")
