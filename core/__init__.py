# Core package - Infrastructure components
from .cache import RedisClient, get_redis_client, close_redis_client
from .fetcher import PageFetcher
from .rate_limit import RateLimiter

__all__ = [
    # Redis/Cache
    "RedisClient",
    "get_redis_client",
    "close_redis_client",
    # Page fetch
    "PageFetcher",
    # Quota
    "RateLimiter",
]
