"""
PageSpeed Insights client for Conversion Killer Check.

Fetches mobile performance and accessibility sub-scores plus the audit
flags the defect rules care about. Any failure yields None: a missing
performance check must never fail the analysis.
"""

import logging
from typing import Optional

import requests

logger = logging.getLogger(__name__)

PAGESPEED_ENDPOINT = "https://www.googleapis.com/pagespeedonline/v5/runPagespeed"


class PerformanceSignals:
    """Sub-scores on a 0-100 scale and audit pass/fail flags (None = not reported)."""

    def __init__(
        self,
        performance_score: Optional[float] = None,
        accessibility_score: Optional[float] = None,
        viewport_ok: Optional[bool] = None,
        image_alt_ok: Optional[bool] = None,
    ):
        self.performance_score = performance_score
        self.accessibility_score = accessibility_score
        self.viewport_ok = viewport_ok
        self.image_alt_ok = image_alt_ok

    def __repr__(self):
        return (
            f"<PerformanceSignals perf={self.performance_score} "
            f"a11y={self.accessibility_score} viewport={self.viewport_ok} alt={self.image_alt_ok}>"
        )


def _category_score(lighthouse: dict, category: str) -> Optional[float]:
    score = lighthouse.get("categories", {}).get(category, {}).get("score")
    if isinstance(score, (int, float)) and not isinstance(score, bool):
        return round(score * 100, 1)
    return None


def _audit_passed(lighthouse: dict, audit: str) -> Optional[bool]:
    score = lighthouse.get("audits", {}).get(audit, {}).get("score")
    if score is None:
        return None
    return score == 1


def parse_pagespeed_response(data: dict) -> Optional[PerformanceSignals]:
    """
    Map a PageSpeed v5 response to PerformanceSignals.

    Returns None when the lighthouse result is missing entirely.
    """
    lighthouse = data.get("lighthouseResult") if isinstance(data, dict) else None
    if not isinstance(lighthouse, dict):
        return None

    return PerformanceSignals(
        performance_score=_category_score(lighthouse, "performance"),
        accessibility_score=_category_score(lighthouse, "accessibility"),
        viewport_ok=_audit_passed(lighthouse, "viewport"),
        image_alt_ok=_audit_passed(lighthouse, "image-alt"),
    )


class PageSpeedClient:
    """Thin wrapper around the PageSpeed Insights REST API."""

    def __init__(self, api_key: str, timeout: int = 45, session: requests.Session = None):
        self.api_key = api_key
        self.timeout = timeout
        self.session = session or requests.Session()

    def run(self, url: str) -> Optional[PerformanceSignals]:
        params = [
            ("url", url),
            ("key", self.api_key),
            ("strategy", "mobile"),
            ("category", "performance"),
            ("category", "accessibility"),
        ]
        try:
            response = self.session.get(PAGESPEED_ENDPOINT, params=params, timeout=self.timeout)
            if not response.ok:
                logger.warning(f"⚠️ PageSpeed returned HTTP {response.status_code} for {url}")
                return None
            signals = parse_pagespeed_response(response.json())
        except (requests.RequestException, ValueError, AttributeError) as e:
            logger.warning(f"⚠️ PageSpeed check failed for {url}: {str(e)}")
            return None

        if signals is None:
            logger.warning(f"⚠️ PageSpeed response for {url} had no lighthouse result")
        else:
            logger.info(f"📊 PageSpeed for {url}: {signals}")
        return signals
