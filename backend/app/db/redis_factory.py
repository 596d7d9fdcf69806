"""Redis client factory for the session registry.

``settings.redis_type`` picks the backend:
- fake: in-process FakeRedis (local development, tests). Sessions do not
  survive a restart and are not shared between workers.
- redis: a real server, addressed by ``redis_url`` or host/port/password.
"""

import logging

import fakeredis
import redis

from app.settings import settings

logger = logging.getLogger(__name__)


def create_redis_client() -> redis.Redis:
    """Create the Redis client used by ``RedisCache``.

    All keys live in db 0 and are namespaced by ``RedisKeyPrefix``.
    """
    if settings.redis_type == "fake":
        logger.info("Session registry: FakeRedis (in-memory, per process)")
        return fakeredis.FakeRedis(decode_responses=True)

    timeouts = {
        "socket_connect_timeout": settings.redis_socket_connect_timeout,
        "socket_timeout": settings.redis_socket_timeout,
        "decode_responses": True,
    }

    if settings.redis_url:
        logger.info("Session registry: Redis from REDIS_URL")
        return redis.Redis.from_url(settings.redis_url, **timeouts)

    logger.info(f"Session registry: Redis at {settings.redis_host}:{settings.redis_port}")
    return redis.Redis(
        host=settings.redis_host,
        port=settings.redis_port,
        password=settings.redis_password or None,
        **timeouts,
    )
