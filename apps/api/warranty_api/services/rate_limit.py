"""
Fixed-window rate limiting for public CPF lookups, backed by Redis.

A CPF in a link is a durable credential, so repeated probing of the CPF
lookup is throttled per client address. When Redis is unreachable the
limiter lets requests through and logs a warning.
"""
from functools import lru_cache
from typing import Optional
import logging

import redis

from warranty_api.core.config import Settings
from warranty_api.core.errors import RateLimited

logger = logging.getLogger(__name__)


class CpfLookupRateLimiter:
    """Allow at most ``limit`` CPF lookups per client within ``window_seconds``."""

    key_prefix = "warranty:cpf-lookup"

    def __init__(self, client: redis.Redis, limit: int, window_seconds: int):
        self.client = client
        self.limit = limit
        self.window_seconds = window_seconds

    def hit(self, client_key: str) -> None:
        """
        Count one lookup for ``client_key``.

        Raises:
            RateLimited: when the client has used up the current window
        """
        key = f"{self.key_prefix}:{client_key}"
        try:
            pipe = self.client.pipeline(transaction=True)
            pipe.incr(key)
            # NX on every hit: a key left without a TTL gets one on the next request.
            pipe.expire(key, self.window_seconds, nx=True)
            count, _ = pipe.execute()
        except redis.RedisError as e:
            logger.warning(f"CPF lookup rate limiter unavailable, allowing request: {e}")
            return

        if count > self.limit:
            raise RateLimited(f"client {client_key} made {count} CPF lookups in {self.window_seconds}s")


@lru_cache
def _redis_client(url: str) -> redis.Redis:
    return redis.Redis.from_url(url, socket_connect_timeout=2, socket_timeout=2)


def get_cpf_rate_limiter(settings: Settings) -> Optional[CpfLookupRateLimiter]:
    """The configured limiter, or None when REDIS_URL is unset."""
    if not settings.REDIS_URL:
        return None
    return CpfLookupRateLimiter(
        _redis_client(settings.REDIS_URL),
        limit=settings.CPF_LOOKUP_RATE_LIMIT,
        window_seconds=settings.CPF_LOOKUP_RATE_WINDOW_SECONDS,
    )
