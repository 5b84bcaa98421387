"""Redis connection and the JSON cache used for staff lookups."""

import json
from typing import Any, cast

import redis
import structlog

from vetflow.config import settings

logger = structlog.get_logger()

# Process-wide client, created on first use
_redis_client: redis.Redis | None = None


def get_redis_client() -> redis.Redis:
    """
    Get or create the shared Redis client.

    Returns:
        Redis client instance
    """
    global _redis_client

    if _redis_client is None:
        _redis_client = redis.Redis(
            host=settings.redis_host,
            port=settings.redis_port,
            username=settings.redis_username,
            password=settings.redis_password or None,
            decode_responses=settings.redis_decode_responses,
            socket_connect_timeout=5,
            socket_keepalive=True,
            health_check_interval=30,
        )

    return _redis_client


async def check_redis_connection() -> bool:
    """Ping Redis. Always False while caching is disabled."""
    if not settings.cache_enabled:
        return False
    try:
        return bool(get_redis_client().ping())
    except redis.RedisError as e:
        logger.warning("redis_ping_failed", error=str(e))
        return False


def close_redis_connection() -> None:
    """Close the shared client if one was opened."""
    global _redis_client

    if _redis_client is not None:
        _redis_client.close()
        _redis_client = None


class CacheManager:
    """JSON cache on top of Redis.

    Keys are namespaced with ``prefix``. Every operation fails open: a Redis
    error reads as a cache miss or a skipped write, so callers always fall
    back to the database.
    """

    def __init__(self, redis_client: redis.Redis, prefix: str = ""):
        """Initialize cache manager with Redis client and key namespace."""
        self.redis = redis_client
        self.prefix = f"{prefix}:" if prefix else ""

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def get_json(self, key: str) -> Any | None:
        """
        Read and deserialize a cached value.

        Args:
            key: Cache key without namespace

        Returns:
            Cached object, or None on a miss or error
        """
        try:
            value = cast(str | None, self.redis.get(self._key(key)))
        except redis.RedisError as e:
            logger.warning("cache_read_failed", key=key, error=str(e))
            return None
        return json.loads(value) if value else None

    def set_json(self, key: str, value: Any, ttl: int | None = None) -> bool:
        """
        Serialize and store a value.

        Args:
            key: Cache key without namespace
            value: JSON-serializable value; datetimes are stored as strings
            ttl: Time to live in seconds

        Returns:
            True if the value was written
        """
        payload = json.dumps(value, default=str)
        try:
            if ttl:
                self.redis.setex(self._key(key), ttl, payload)
            else:
                self.redis.set(self._key(key), payload)
        except redis.RedisError as e:
            logger.warning("cache_write_failed", key=key, error=str(e))
            return False
        return True

    def delete(self, key: str) -> bool:
        """Remove a single key."""
        try:
            self.redis.delete(self._key(key))
        except redis.RedisError as e:
            logger.warning("cache_delete_failed", key=key, error=str(e))
            return False
        return True

    def delete_pattern(self, pattern: str) -> int:
        """
        Remove every key matching a glob pattern, e.g. ``veterinarian:*``.

        Returns:
            Number of keys deleted
        """
        try:
            keys = list(self.redis.scan_iter(match=self._key(pattern)))
            if not keys:
                return 0
            return cast(int, self.redis.delete(*keys))
        except redis.RedisError as e:
            logger.warning("cache_invalidation_failed", pattern=pattern, error=str(e))
            return 0


def get_cache_manager() -> CacheManager | None:
    """Dependency returning a cache manager, or None when caching is disabled."""
    if not settings.cache_enabled:
        return None
    return CacheManager(get_redis_client(), prefix=settings.cache_key_prefix)
