"""
Namespaced Redis key helpers.

Keys are prefixed with SERVER_DOMAIN to avoid collisions when multiple
deployments share a Redis cluster.
"""

from campusboard.config import settings


def delivery_log_failures_key() -> str:
    return f"{settings.SERVER_DOMAIN}:push:delivery_log_failures"
