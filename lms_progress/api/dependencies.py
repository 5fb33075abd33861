"""FastAPI dependencies: repositories, renderer, cache, service graph.

Routers never construct services themselves.  They declare

    services: Annotated[Services, Depends(get_services)]

and receive a graph bound to the request's unit of work:

  DATABASE_URL set   -> one SQLAlchemy session per request, committed
                        on success and rolled back on error
  DATABASE_URL unset -> the process-wide in-memory repositories

Tests swap the renderer (and, if needed, the clock) through
app.dependency_overrides.
"""

from __future__ import annotations

from collections.abc import Generator
from typing import Annotated

from fastapi import Depends

from lms_progress.core.clock import Clock, epoch_now
from lms_progress.core.config import SETTINGS
from lms_progress.db import engine as db
from lms_progress.repos.bundle import (
    Repositories,
    in_memory_repositories,
    sql_repositories,
)
from lms_progress.services.cache import CacheService, cache_service
from lms_progress.services.container import Services, build_services
from lms_progress.services.renderer import CertificateRenderer, HtmlCertificateRenderer

memory_repos = in_memory_repositories()

_renderer = HtmlCertificateRenderer(SETTINGS.certificate_storage_dir)


def reset_memory_repositories() -> Repositories:
    """Replace the in-memory store with an empty one (used by tests)."""
    global memory_repos
    memory_repos = in_memory_repositories()
    return memory_repos


def get_repositories() -> Generator[Repositories, None, None]:
    if db.session_factory is None:
        yield memory_repos
        return
    with db.session_scope(db.session_factory) as session:
        yield sql_repositories(session)


def get_renderer() -> CertificateRenderer:
    return _renderer


def get_cache() -> CacheService:
    return cache_service


def get_clock() -> Clock:
    return epoch_now


def get_services(
    repos: Annotated[Repositories, Depends(get_repositories)],
    renderer: Annotated[CertificateRenderer, Depends(get_renderer)],
    cache: Annotated[CacheService, Depends(get_cache)],
    clock: Annotated[Clock, Depends(get_clock)],
) -> Services:
    return build_services(repos, SETTINGS, renderer, cache, clock=clock)
