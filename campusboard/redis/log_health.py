"""
Delivery-log health signal — counts swallowed delivery-log write failures.

Key scheme:
  {SERVER_DOMAIN}:push:delivery_log_failures  →  integer counter
  The TTL is set when the counter is created, so it resets every
  DELIVERY_LOG_FAILURE_WINDOW seconds.

If Redis is unavailable every call is a no-op and the count reads as 0.
"""

import logging

from campusboard.config import settings
from campusboard.redis.client import get_redis
from campusboard.redis.keys import delivery_log_failures_key

logger = logging.getLogger(__name__)


async def record_failure() -> None:
    """Count one failed delivery-log write."""
    r = get_redis()
    if r is None:
        return
    key = delivery_log_failures_key()
    try:
        count = await r.incr(key)
        if count == 1:
            await r.expire(key, settings.DELIVERY_LOG_FAILURE_WINDOW)
    except Exception as exc:
        logger.warning("log_health.record_failure failed: %s", exc)


async def get_failure_count() -> int:
    """Failures recorded in the current window."""
    r = get_redis()
    if r is None:
        return 0
    try:
        value = await r.get(delivery_log_failures_key())
    except Exception as exc:
        logger.warning("log_health.get_failure_count failed: %s", exc)
        return 0
    return int(value) if value else 0


async def get_status() -> dict:
    """Health summary for /health."""
    failures = await get_failure_count()
    return {
        "recent_failures": failures,
        "threshold": settings.DELIVERY_LOG_FAILURE_THRESHOLD,
        "window_seconds": settings.DELIVERY_LOG_FAILURE_WINDOW,
        "healthy": failures < settings.DELIVERY_LOG_FAILURE_THRESHOLD,
        "tracking": get_redis() is not None,
    }
