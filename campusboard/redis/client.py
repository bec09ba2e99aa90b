"""
Process-wide redis.asyncio client for the delivery-log health counter.

The counter is advisory: when REDIS_URL is empty or the server does not answer
at startup, get_redis() returns None and log_health turns every call into a
no-op.
"""

import logging

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from campusboard.config import settings

logger = logging.getLogger(__name__)

# Startup must not hang on an unreachable server
_CONNECT_TIMEOUT = 2.0

_client: aioredis.Redis | None = None


async def init_redis(url: str | None = None) -> aioredis.Redis | None:
    """Connect once at startup. Returns the client, or None when Redis is off."""
    global _client
    url = settings.REDIS_URL if url is None else url
    if not url:
        logger.info("REDIS_URL not set, delivery-log failures will not be counted")
        return None

    client = aioredis.from_url(
        url,
        decode_responses=True,
        socket_connect_timeout=_CONNECT_TIMEOUT,
        health_check_interval=30,
    )
    try:
        await client.ping()
    except (RedisError, OSError) as exc:
        logger.warning("Redis at %s did not answer (%s), delivery-log failures will not be counted", url, exc)
        await client.aclose()
        return None

    _client = client
    logger.info("Delivery-log health counter using Redis at %s", url)
    return _client


async def close_redis() -> None:
    global _client
    client, _client = _client, None
    if client is not None:
        await client.aclose()


def get_redis() -> aioredis.Redis | None:
    return _client
