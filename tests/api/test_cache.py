"""Read-through cache for progress summaries.

1. First GET is a cache miss (computes from records, populates cache)
2. Second GET is a cache hit (same data)
3. Completing a component invalidates the entry so the next GET is fresh
4. A Redis outage degrades to a miss instead of failing the request
"""

from __future__ import annotations

import redis
from fastapi.testclient import TestClient

from lms_progress.services.cache import (
    RedisCacheService,
    cache_service,
    progress_key,
)
from tests.builders import api_course, api_enroll


def test_cache_miss_then_hit(client: TestClient) -> None:
    ids = api_course(client)
    enrollment_id = api_enroll(client, ids["course_id"])

    assert cache_service.get(progress_key(enrollment_id)) is None
    first = client.get(f"/v1/enrollments/{enrollment_id}/progress")
    assert cache_service.get(progress_key(enrollment_id)) is not None

    second = client.get(f"/v1/enrollments/{enrollment_id}/progress")
    assert first.json() == second.json()


def test_cache_invalidated_on_progress(client: TestClient) -> None:
    ids = api_course(client, components=2)
    enrollment_id = api_enroll(client, ids["course_id"])
    assert client.get(f"/v1/enrollments/{enrollment_id}/progress").json()["overall"] == 0.0

    client.post(
        f"/v1/enrollments/{enrollment_id}/components/{ids['component_ids'][0]}/complete"
    )

    assert cache_service.get(progress_key(enrollment_id)) is None
    assert client.get(f"/v1/enrollments/{enrollment_id}/progress").json()["overall"] == 50.0


def test_entries_are_isolated_per_enrollment(client: TestClient) -> None:
    ids = api_course(client, components=2)
    first = api_enroll(client, ids["course_id"], student_id=1)
    second = api_enroll(client, ids["course_id"], student_id=2)
    client.get(f"/v1/enrollments/{second}/progress")

    client.post(f"/v1/enrollments/{first}/components/{ids['component_ids'][0]}/complete")

    assert client.get(f"/v1/enrollments/{first}/progress").json()["overall"] == 50.0
    assert client.get(f"/v1/enrollments/{second}/progress").json()["overall"] == 0.0


def test_redis_outage_degrades_to_miss() -> None:
    service = RedisCacheService(
        redis.Redis(host="127.0.0.1", port=1, socket_connect_timeout=0.1)
    )

    assert service.get("progress:1") is None
    service.set("progress:1", "{}", 60)
    service.delete("progress:1")
