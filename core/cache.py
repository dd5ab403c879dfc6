"""
Redis client manager for Conversion Killer Check
Handles connection pooling and the analysis result cache
"""

import json
import time
import redis
from typing import Optional, Any
import logging

from config import settings

logger = logging.getLogger(__name__)


class RedisClient:
    """
    Redis connection manager with connection pooling.
    """

    def __init__(self, redis_url: str = None, client: redis.Redis = None):
        redis_url = redis_url or settings.REDIS_URL

        if client is not None:
            self.pool = None
            self.client = client
            return

        try:
            # Create connection pool for efficiency
            self.pool = redis.ConnectionPool.from_url(
                redis_url,
                max_connections=20,
                decode_responses=True,  # Auto-decode bytes to strings
                socket_timeout=5,
                socket_connect_timeout=5,
                retry_on_timeout=True,
            )
            self.client = redis.Redis(connection_pool=self.pool)

            # Test connection
            self.client.ping()
            logger.info(f"✅ Redis connected successfully: {redis_url}")
        except (redis.RedisError, ValueError) as e:
            logger.error(f"❌ Redis connection failed: {str(e)}")
            raise RuntimeError(f"Failed to connect to Redis: {str(e)}")

    def ping(self) -> bool:
        """Check if Redis is available"""
        try:
            return self.client.ping()
        except redis.RedisError:
            return False

    def set(
        self,
        key: str,
        value: Any,
        ttl: Optional[int] = None
    ) -> bool:
        """
        Store a value in Redis with optional TTL (Time To Live).

        Args:
            key: Redis key
            value: Value to store (will be JSON-encoded if not a string)
            ttl: Time to live in seconds (None = no expiration)

        Returns:
            True if successful
        """
        try:
            # JSON encode if not a string
            if not isinstance(value, str):
                value = json.dumps(value)

            if ttl:
                return bool(self.client.setex(key, ttl, value))
            else:
                return bool(self.client.set(key, value))
        except (redis.RedisError, TypeError) as e:
            logger.error(f"Redis SET failed for key '{key}': {str(e)}")
            return False

    def get(self, key: str, decode_json: bool = True) -> Optional[Any]:
        """
        Retrieve a value from Redis.

        Args:
            key: Redis key
            decode_json: If True, attempt to JSON-decode the value

        Returns:
            Value if found, None otherwise
        """
        try:
            value = self.client.get(key)

            if value is None:
                return None

            # Attempt JSON decode if requested
            if decode_json:
                try:
                    return json.loads(value)
                except (json.JSONDecodeError, TypeError):
                    # Not JSON, return as-is
                    return value

            return value
        except redis.RedisError as e:
            logger.error(f"Redis GET failed for key '{key}': {str(e)}")
            return None

    def delete(self, key: str) -> bool:
        """Delete a key from Redis"""
        try:
            return bool(self.client.delete(key))
        except redis.RedisError as e:
            logger.error(f"Redis DELETE failed for key '{key}': {str(e)}")
            return False

    @staticmethod
    def analysis_key(url: str, version: str = None) -> str:
        return f"cache:analysis:{version or settings.CACHE_VERSION}:{url}"

    def cache_analysis(
        self,
        url: str,
        analysis_result: dict,
        ttl: int = None
    ) -> bool:
        """
        Cache an analysis result for a URL.

        Args:
            url: Normalized website URL
            analysis_result: Complete analysis result dictionary
            ttl: Time to live in seconds (default: CACHE_TTL, 3 days)

        Returns:
            True if cached successfully
        """
        return self.set(self.analysis_key(url), analysis_result, ttl=ttl or settings.CACHE_TTL)

    def get_cached_analysis(self, url: str) -> Optional[dict]:
        """
        Retrieve cached analysis result for a URL.

        Args:
            url: Normalized website URL

        Returns:
            Cached analysis result if found, None otherwise
        """
        cached = self.get(self.analysis_key(url), decode_json=True)
        return cached if isinstance(cached, dict) else None

    def clear_analysis_cache(self, url: str) -> bool:
        """Remove the cached analysis for a URL"""
        return self.delete(self.analysis_key(url))

    def close(self):
        """Close Redis connection pool"""
        if self.pool is None:
            return
        try:
            self.pool.disconnect()
            logger.info("Redis connection closed")
        except redis.RedisError as e:
            logger.error(f"Error closing Redis connection: {str(e)}")


# Global Redis client instance
redis_client: Optional[RedisClient] = None

# After a failed connect, requests skip Redis for this many seconds
RECONNECT_BACKOFF_SECONDS = 30
_last_failure: Optional[float] = None


def get_redis_client() -> RedisClient:
    """
    Get or create the global Redis client instance.

    A failed connection is remembered, so requests during an outage do
    not each wait for the connect timeout.

    Returns:
        RedisClient instance

    Raises:
        RuntimeError: If Redis is unreachable or was within the back-off period
    """
    global redis_client, _last_failure

    if redis_client is None:
        if _last_failure is not None and time.monotonic() - _last_failure < RECONNECT_BACKOFF_SECONDS:
            raise RuntimeError("Redis unavailable, waiting before reconnecting")
        try:
            redis_client = RedisClient()
        except RuntimeError:
            _last_failure = time.monotonic()
            raise
        _last_failure = None

    return redis_client


def close_redis_client():
    """Close the global Redis client"""
    global redis_client, _last_failure

    if redis_client is not None:
        redis_client.close()
        redis_client = None
    _last_failure = None
