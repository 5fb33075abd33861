from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from lms_progress.api import dependencies
from lms_progress.api.dependencies import get_clock, get_renderer
from lms_progress.main import app
from lms_progress.repos.bundle import Repositories
from lms_progress.services.cache import InMemoryCacheService, cache_service
from lms_progress.services.container import Services, build_services
from lms_progress.services.renderer import HtmlCertificateRenderer
from tests.builders import FixedClock, make_settings


@pytest.fixture(autouse=True)
def reset_repositories() -> None:
    """Fresh in-memory store for every test."""
    dependencies.reset_memory_repositories()


@pytest.fixture(autouse=True)
def reset_cache() -> None:
    """Clear cache between tests."""
    if hasattr(cache_service, "_store"):
        cache_service._store.clear()  # type: ignore[union-attr]


@pytest.fixture
def repos() -> Repositories:
    return dependencies.memory_repos


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def renderer(tmp_path: Path) -> HtmlCertificateRenderer:
    return HtmlCertificateRenderer(tmp_path)


@pytest.fixture
def cache() -> InMemoryCacheService:
    return InMemoryCacheService()


@pytest.fixture
def services(
    repos: Repositories,
    renderer: HtmlCertificateRenderer,
    cache: InMemoryCacheService,
    clock: FixedClock,
) -> Services:
    return build_services(repos, make_settings(), renderer, cache, clock=clock)


@pytest.fixture
def client(renderer: HtmlCertificateRenderer, clock: FixedClock) -> Iterator[TestClient]:
    app.dependency_overrides[get_renderer] = lambda: renderer
    app.dependency_overrides[get_clock] = lambda: clock
    yield TestClient(app)
    app.dependency_overrides.clear()
