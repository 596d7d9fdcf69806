"""Redis cache wrapper with JSON serialization.

Backs the session registry. Values are JSON encoded; Redis errors are logged
and reported as misses/failures so callers can treat the cache as advisory.
"""

import builtins
import json
import logging
from typing import Any

import redis

from app.db.redis_factory import create_redis_client

logger = logging.getLogger(__name__)


class RedisCache:
    """
    Redis-based distributed cache (Single DB + Key Prefix Pattern)

    Features:
    - Distributed: all instances share the same cache
    - TTL support: auto-expiry via SET EX
    - JSON serialization
    - Set support for per-user session indexes
    """

    def __init__(self, client: redis.Redis | None = None):
        """
        Initialize Redis cache

        Args:
            client: Optional pre-configured Redis client (for testing with fakeredis)
        """
        self._client: redis.Redis | None = client

    @property
    def client(self) -> redis.Redis:
        """Lazy initialization of the Redis client."""
        if self._client is None:
            self._client = create_redis_client()
        return self._client

    # ==================== String Operations ====================

    def get(self, key: str) -> Any | None:
        """
        Get cached value

        Returns:
            Cached value (deserialized from JSON), or None if not found or expired
        """
        try:
            data = self.client.get(key)
            if data:
                return json.loads(data)
            logger.debug(f"Cache miss: {key}")
            return None
        except redis.RedisError as e:
            logger.error(f"Redis get error for key {key}: {e}")
            return None
        except json.JSONDecodeError as e:
            logger.error(f"JSON decode error for key {key}: {e}")
            return None

    def set(self, key: str, value: Any, expire_seconds: int | None = None) -> bool:
        """
        Set cached value with optional TTL

        Returns:
            True if successful, False otherwise
        """
        try:
            serialized = json.dumps(value, default=str)

            if expire_seconds:
                result = self.client.set(key, serialized, ex=expire_seconds)
            else:
                result = self.client.set(key, serialized)

            logger.debug(f"Cache set: {key}" + (f", expires in {expire_seconds}s" if expire_seconds else ""))
            return bool(result)
        except redis.RedisError as e:
            logger.error(f"Redis set error for key {key}: {e}")
            return False
        except (TypeError, ValueError) as e:
            logger.error(f"Serialization error for key {key}: {e}")
            return False

    def delete(self, key: str) -> bool:
        """
        Delete cached value

        Returns:
            True if key was deleted, False if key didn't exist or error occurred
        """
        try:
            result = self.client.delete(key)
            if result:
                logger.debug(f"Cache deleted: {key}")
            return bool(result)
        except redis.RedisError as e:
            logger.error(f"Redis delete error for key {key}: {e}")
            return False

    def exists(self, key: str) -> bool:
        """Check if key exists in cache"""
        try:
            return bool(self.client.exists(key))
        except redis.RedisError as e:
            logger.error(f"Redis exists error for key {key}: {e}")
            return False

    # ==================== Set Operations ====================

    def sadd(self, key: str, *members: str) -> int:
        try:
            return int(self.client.sadd(key, *members))
        except redis.RedisError as e:
            logger.error(f"Redis sadd error for key {key}: {e}")
            return 0

    def srem(self, key: str, *members: str) -> int:
        try:
            return int(self.client.srem(key, *members))
        except redis.RedisError as e:
            logger.error(f"Redis srem error for key {key}: {e}")
            return 0

    def smembers(self, key: str) -> builtins.set[str]:
        try:
            return set(self.client.smembers(key))
        except redis.RedisError as e:
            logger.error(f"Redis smembers error for key {key}: {e}")
            return set()

    # ==================== Maintenance ====================

    def ping(self) -> bool:
        """Check Redis connectivity"""
        try:
            return bool(self.client.ping())
        except redis.RedisError as e:
            logger.error(f"Redis ping failed: {e}")
            return False

    def flush_db(self) -> bool:
        """Remove every key (tests and local resets only)"""
        try:
            self.client.flushdb()
            logger.warning("Redis database flushed")
            return True
        except redis.RedisError as e:
            logger.error(f"Redis flush failed: {e}")
            return False

    def close(self) -> None:
        """Close Redis connection"""
        if self._client:
            self._client.close()
            self._client = None
            logger.info("RedisCache closed")


# ==================== Singleton Instance ====================

_redis_cache: RedisCache | None = None


def get_redis_cache() -> RedisCache:
    """Get the singleton Redis cache instance.

    Example:
        cache = get_redis_cache()
        cache.set(RedisKeyPrefix.session_key(session_id), {"email": email}, expire_seconds=3600)
    """
    global _redis_cache
    if _redis_cache is None:
        _redis_cache = RedisCache()
    return _redis_cache
