"""
Per-caller daily quota backed by Redis.

A fixed-window counter keyed by caller and UTC date. Counting lives in
Redis so every API instance enforces the same quota.
"""

import logging
from datetime import datetime, timezone

import redis

from config import settings
from core.exceptions import RateLimitExceededError

logger = logging.getLogger(__name__)

DAY_SECONDS = 86400


class RateLimiter:
    """
    Allows `limit` analyses per caller per UTC day.

    Redis outages fail open: the request proceeds and a warning is logged.
    """

    def __init__(self, client: redis.Redis, limit: int = None, window_seconds: int = DAY_SECONDS, clock=None):
        self.client = client
        self.limit = limit if limit is not None else settings.RATE_LIMIT_PER_DAY
        self.window_seconds = window_seconds
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def key_for(self, caller_id: str) -> str:
        return f"ratelimit:{caller_id}:{self.clock().strftime('%Y-%m-%d')}"

    def check(self, caller_id: str) -> int:
        """
        Count one request for `caller_id`.

        Returns:
            Number of requests the caller has left today

        Raises:
            RateLimitExceededError: If the caller is over quota
        """
        key = self.key_for(caller_id)
        try:
            count = self.client.incr(key)
            if count == 1:
                self.client.expire(key, self.window_seconds)
        except redis.RedisError as e:
            logger.warning(f"⚠️ Rate limiter unavailable, allowing request from {caller_id}: {str(e)}")
            return self.limit

        if count > self.limit:
            logger.info(f"🚫 Quota exceeded for {caller_id} ({count}/{self.limit})")
            raise RateLimitExceededError(f"Caller {caller_id} exceeded {self.limit} requests per day")

        return self.limit - count
