"""ASGI entry point: `uvicorn lms_progress.main:app`.

Domain errors raised by the services become HTTP responses here:

  NotFoundError           404
  RuleViolationError      409   (business rule refused the operation)
  CertificateRenderError  502   (record saved, document not produced)
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from lms_progress.api import (
    assessments,
    certificates,
    courses,
    enrollments,
    health,
    metrics_endpoint,
    unit_progress,
)
from lms_progress.core.config import SETTINGS
from lms_progress.core.logging import setup_logging
from lms_progress.db.engine import lifespan_db
from lms_progress.db.redis import lifespan_redis
from lms_progress.middleware.metrics import MetricsMiddleware
from lms_progress.middleware.request_context import RequestContextMiddleware
from lms_progress.services.errors import (
    CertificateRenderError,
    NotFoundError,
    RuleViolationError,
)

setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    # Redis closes before the engine is disposed
    async with lifespan_db(), lifespan_redis():
        logger.info(
            "lms-progress-service ready  env=%s port=%d database=%s cache=%s",
            SETTINGS.app_env,
            SETTINGS.port,
            "sql" if SETTINGS.database_url else "memory",
            "redis" if SETTINGS.redis_url else "memory",
        )
        yield


def create_app() -> FastAPI:
    docs = SETTINGS.is_dev
    application = FastAPI(
        title="lms-progress-service",
        lifespan=lifespan,
        docs_url="/docs" if docs else None,
        redoc_url="/redoc" if docs else None,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=list(SETTINGS.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    # Added last, runs first: RequestContext -> Metrics -> CORS -> route
    application.add_middleware(MetricsMiddleware)
    application.add_middleware(RequestContextMiddleware)

    application.add_exception_handler(NotFoundError, _not_found)
    application.add_exception_handler(RuleViolationError, _rule_violation)
    application.add_exception_handler(CertificateRenderError, _render_failed)

    for module in (
        metrics_endpoint,
        health,
        courses,
        enrollments,
        assessments,
        certificates,
        unit_progress,
    ):
        application.include_router(module.router)
    return application


async def _not_found(_request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


async def _rule_violation(_request: Request, exc: RuleViolationError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)})


async def _render_failed(
    _request: Request, exc: CertificateRenderError
) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={
            "detail": str(exc),
            "certificate_id": exc.certificate_id,
            "certificate_number": exc.certificate_number,
        },
    )


app = create_app()
