"""Redis connection management.

Mirrors engine.py: when REDIS_URL is configured we create a client
backed by a connection pool; when it's None (local dev, tests) the
progress cache falls back to an in-memory dict and no Redis server is
needed.

Redis only holds derived data here (cached progress summaries).  The
relational store stays the source of truth, so losing Redis costs
latency, never correctness.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import redis

from lms_progress.core.config import SETTINGS

logger = logging.getLogger(__name__)

if SETTINGS.redis_url:
    redis_client: redis.Redis | None = redis.Redis.from_url(
        SETTINGS.redis_url,
        decode_responses=True,
        max_connections=20,
        socket_timeout=2,
    )
else:
    redis_client = None


@asynccontextmanager
async def lifespan_redis():
    """Startup/shutdown hook for Redis, mirrors lifespan_db()."""
    if redis_client is None:
        logger.info("No REDIS_URL configured, progress cache is in-memory")
        yield
        return

    try:
        redis_client.ping()
        logger.info("Redis connected")
    except redis.RedisError:
        # Start anyway: cache reads fall through to the database
        logger.exception("Redis connection failed on startup")

    yield

    redis_client.close()
    logger.info("Redis connection pool closed")
