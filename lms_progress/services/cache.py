"""Read-through cache for enrollment progress summaries.

READ-THROUGH
-------------
  Client -> Cache -> miss -> compute from records -> populate -> return
  Client -> Cache -> hit  -> return

Computing progress walks every module, component, quiz attempt and
submission of a course, and dashboards poll it.  The summary is cached
per enrollment under `progress:{enrollment_id}`.

INVALIDATION
-------------
Two complementary strategies:

  1. TTL: every entry expires after PROGRESS_CACHE_TTL seconds, so a
     missed invalidation heals on its own.
  2. Explicit: EnrollmentService.refresh_progress() deletes the key
     every time progress is recomputed (component completed, quiz
     completed, activity graded).
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

import redis

from lms_progress.core.metrics import CACHE_OPERATIONS
from lms_progress.db.redis import redis_client

logger = logging.getLogger(__name__)

# Long enough to absorb dashboard refreshes, short enough that a missed
# invalidation resolves within minutes.
PROGRESS_CACHE_TTL = 300


def progress_key(enrollment_id: int) -> str:
    return f"progress:{enrollment_id}"


@runtime_checkable
class CacheService(Protocol):
    def get(self, key: str) -> str | None:
        """Fetch a cached value.  Returns None on cache miss."""
        ...

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store a value with a TTL (time to live)."""
        ...

    def delete(self, key: str) -> None:
        """Explicitly invalidate a cached entry."""
        ...


class InMemoryCacheService:
    """In-memory cache for dev and tests, no TTL enforcement.

    The autouse fixture in conftest.py clears the store between tests.
    """

    def __init__(self) -> None:
        self._store: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        value = self._store.get(key)
        CACHE_OPERATIONS.labels(operation="hit" if value is not None else "miss").inc()
        return value

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        self._store[key] = value

    def delete(self, key: str) -> None:
        self._store.pop(key, None)


class RedisCacheService:
    """Redis-backed cache, shared across API instances.

    Redis errors degrade to a cache miss: the database is the source of
    truth and can always answer.
    """

    _PREFIX = "cache:"

    def __init__(self, client: redis.Redis) -> None:
        self._redis = client

    def get(self, key: str) -> str | None:
        try:
            value = self._redis.get(f"{self._PREFIX}{key}")
        except redis.RedisError:
            logger.warning("Cache read failed for %s", key)
            value = None
        CACHE_OPERATIONS.labels(operation="hit" if value is not None else "miss").inc()
        return value  # type: ignore[return-value]

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        try:
            self._redis.setex(f"{self._PREFIX}{key}", ttl_seconds, value)
        except redis.RedisError:
            logger.warning("Cache write failed for %s", key)

    def delete(self, key: str) -> None:
        try:
            self._redis.delete(f"{self._PREFIX}{key}")
        except redis.RedisError:
            # A stale entry still expires via TTL
            logger.warning("Cache invalidation failed for %s", key)


# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------

if redis_client is not None:
    cache_service: CacheService = RedisCacheService(redis_client)
else:
    cache_service = InMemoryCacheService()
