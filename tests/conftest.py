"""
Shared fixtures and test doubles for the Conversion Killer Check tests.

External collaborators (page fetch, PageSpeed, Redis, Claude) are replaced
by small in-memory fakes so the suite runs without network access.
"""

from datetime import datetime, timezone
from typing import Generator

import pytest
import redis
from fastapi.testclient import TestClient

from api.models import Defect
from analyzer.backends import Findings, ScoringBackend
from analyzer.extractors import PageSignals


FIXED_NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)

GOOD_PAGE = """<!DOCTYPE html>
<html><head>
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>Acme Analytics</title>
<style>body { font-family: 'Inter', sans-serif; }</style>
</head><body>
<nav><a href="/">Home</a><a href="/pricing">Pricing</a><a href="/imprint">Imprint</a></nav>
<h1>Turn your website visitors into paying customers</h1>
<button class="cta">Start my free analysis</button>
<p>Trusted by 2,000 customers. Read our reviews.</p>
<p>Limited offer: 20% off until Friday.</p>
<form action="/signup"><input type="email" name="email"><input type="submit" value="Get started"></form>
<img src="hero.png" alt="Dashboard screenshot">
<footer>&copy; 2026 Acme &middot; <a href="/privacy">Privacy</a></footer>
</body></html>
"""

BAD_PAGE = """<html><head><title>Home</title></head><body>
<div class="hero"><h1>Welcome</h1></div>
<p>We make things. Lorem ipsum dolor sit amet, consectetur adipiscing elit.</p>
<button>Submit</button>
<p>Our team has been building things since the early days. We love what we do and we are happy to show you around our little corner of the web.</p>
<footer>&copy; 2019 Example Inc.</footer>
</body></html>
"""


def clean_signals(**overrides) -> PageSignals:
    """Signals of a page that triggers no rule; override fields to trigger one."""
    values = dict(
        url="https://example.com",
        current_year=2026,
        heading_text="Grow revenue with better landing pages",
        cta_label="Start my free trial",
        cta_ratio=0.2,
        has_viewport_meta=True,
        has_media_queries=False,
        has_password_input=False,
        has_contact_path=True,
        form_field_count=2,
        nav_link_count=5,
        font_family_count=2,
        images_missing_alt=0,
        has_trust_signals=True,
        has_urgency_cues=True,
        has_legal_notice=True,
        copyright_year=2026,
    )
    values.update(overrides)
    return PageSignals(**values)


def make_defects(count: int):
    return [Defect(title=f"Killer {i}", detail=f"Detail {i}", rule_id=f"rule_{i}") for i in range(count)]


class FakeFetcher:
    """Returns canned markup per URL or raises the configured error."""

    def __init__(self, markup: str = GOOD_PAGE, error: Exception = None):
        self.markup = markup
        self.error = error
        self.calls = []

    async def fetch(self, url: str) -> str:
        self.calls.append(url)
        if self.error is not None:
            raise self.error
        return self.markup


class FakeBackend(ScoringBackend):
    name = "fake"

    def __init__(self, defects=None, total_found=None, error: Exception = None):
        self.defects = defects if defects is not None else make_defects(3)
        self.total_found = total_found if total_found is not None else len(self.defects)
        self.error = error
        self.calls = []

    async def score(self, url: str) -> Findings:
        self.calls.append(url)
        if self.error is not None:
            raise self.error
        return Findings(self.total_found, list(self.defects))


class FakeCache:
    """In-memory stand-in for RedisClient's analysis cache methods."""

    def __init__(self, entries: dict = None):
        self.entries = dict(entries or {})
        self.reads = []

    def get_cached_analysis(self, url: str):
        self.reads.append(url)
        return self.entries.get(url)

    def cache_analysis(self, url: str, analysis_result: dict, ttl: int = None) -> bool:
        self.entries[url] = analysis_result
        return True


class FakeRedis:
    """Implements the handful of redis.Redis commands the service uses."""

    def __init__(self, fail: bool = False):
        self.store = {}
        self.ttls = {}
        self.fail = fail

    def _check(self):
        if self.fail:
            raise redis.ConnectionError("connection refused")

    def ping(self):
        self._check()
        return True

    def incr(self, key):
        self._check()
        self.store[key] = int(self.store.get(key, 0)) + 1
        return self.store[key]

    def expire(self, key, seconds):
        self._check()
        self.ttls[key] = seconds
        return True

    def get(self, key):
        self._check()
        return self.store.get(key)

    def set(self, key, value):
        self._check()
        self.store[key] = value
        return True

    def setex(self, key, ttl, value):
        self._check()
        self.store[key] = value
        self.ttls[key] = ttl
        return True

    def delete(self, *keys):
        self._check()
        return sum(1 for key in keys if self.store.pop(key, None) is not None)


class RecordingRateLimiter:
    """Allows `limit` calls in total, then raises like RateLimiter."""

    def __init__(self, limit: int = 2):
        self.limit = limit
        self.calls = []

    def check(self, caller_id: str) -> int:
        from core.exceptions import RateLimitExceededError

        self.calls.append(caller_id)
        if len(self.calls) > self.limit:
            raise RateLimitExceededError()
        return self.limit - len(self.calls)


@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture
def test_app():
    """FastAPI application under test."""
    from main import app

    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def make_client(test_app):
    """
    Build a TestClient whose pipeline uses the given backend and fakes.
    """
    from analyzer.pipeline import AnalysisPipeline
    from api.routes import get_pipeline
    from core.rate_limit import RateLimiter

    def _make(backend=None, cache=None, redis_client=None, limit=2) -> TestClient:
        backend = backend or FakeBackend()
        cache = cache if cache is not None else FakeCache()
        redis_client = redis_client or FakeRedis()

        def _pipeline():
            return AnalysisPipeline(
                backend,
                cache=cache,
                rate_limiter=RateLimiter(redis_client, limit=limit),
                exempt_domains=["luqy.studio"],
                low_threshold=4,
            )

        test_app.dependency_overrides[get_pipeline] = _pipeline
        return TestClient(test_app)

    return _make
