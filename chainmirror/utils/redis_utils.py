"""Redis connection utilities.

Provides helper functions for creating Redis connections with configuration
from settings.
"""

from urllib.parse import urlparse

import redis.asyncio as redis

from chainmirror.config.settings import settings


def get_redis_client(url: str | None = None) -> redis.Redis:
    """
    Create and return a Redis client with settings from config.

    Args:
        url: Redis URL (default: REDIS_URL setting)

    Returns:
        redis.Redis: Configured Redis client with decode_responses=True

    Example:
        >>> redis_client = get_redis_client()
        >>> await redis_client.set("key", "value")
        >>> await redis_client.aclose()
    """
    return redis.Redis.from_url(
        url or settings.redis_url,
        decode_responses=True,
    )


def get_redis_url_masked(url: str | None = None) -> str:
    """
    Build Redis URL with masked password for safe logging.

    Args:
        url: Redis URL (default: REDIS_URL setting)

    Returns:
        str: Redis connection URL with the password replaced by asterisks

    Example:
        >>> get_redis_url_masked("redis://:secret@localhost:6379/0")
        'redis://:****@localhost:6379/0'
    """
    url = url or settings.redis_url
    parsed = urlparse(url)
    if not parsed.password:
        return url
    netloc = parsed.netloc.replace(f":{parsed.password}@", ":****@", 1)
    return parsed._replace(netloc=netloc).geturl()
