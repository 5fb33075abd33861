"""Health and readiness endpoints.

LIVENESS vs READINESS
----------------------
  /health (liveness): "is this process alive?"  Always 200; the body
    reports each dependency so a dashboard can show a degraded state
    without the orchestrator restarting a container that would come
    back with the same broken dependency.

  /ready (readiness): "can this instance take traffic?"  503 when the
    database is configured but unreachable.  Redis is not critical:
    the progress cache degrades to recomputing from the database.

Checks report one of: ok | degraded | not_configured.
"""

from __future__ import annotations

import logging

import redis
from fastapi import APIRouter, Response, status
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from lms_progress.db import engine as db
from lms_progress.db import redis as cache_db

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


def _check_database() -> str:
    if db.engine is None:
        return "not_configured"
    try:
        with db.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.warning("Database health check failed", exc_info=True)
        return "degraded"
    return "ok"


def _check_redis() -> str:
    if cache_db.redis_client is None:
        return "not_configured"
    try:
        cache_db.redis_client.ping()
    except redis.RedisError:
        logger.warning("Redis health check failed", exc_info=True)
        return "degraded"
    return "ok"


@router.get("/health")
def health() -> dict:
    """Liveness check plus dependency status.  200 even when degraded."""
    checks = {"database": _check_database(), "redis": _check_redis()}
    overall = "degraded" if "degraded" in checks.values() else "ok"
    return {"status": overall, "checks": checks}


@router.get("/ready")
def ready() -> Response:
    """Readiness check: 503 only when the database cannot be reached."""
    if _check_database() == "degraded":
        return Response(status_code=status.HTTP_503_SERVICE_UNAVAILABLE)
    return Response(status_code=status.HTTP_200_OK)
