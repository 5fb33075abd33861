"""Tests for Prometheus metrics.

The prometheus-client registry is global and counters only go up, so
every assertion is on a DELTA: read, act, read again.
"""

from __future__ import annotations

from fastapi.testclient import TestClient
from prometheus_client import REGISTRY

from tests.builders import api_course, api_enroll


def _get_sample(name: str, labels: dict | None = None) -> float:
    """Read a metric sample's current value from the global registry."""
    value = REGISTRY.get_sample_value(name, labels=labels or {})
    return value if value is not None else 0.0


# ---- HTTP metrics ----


def test_request_counter_increments(client: TestClient) -> None:
    labels = {"method": "GET", "endpoint": "/health", "status_code": "200"}
    before = _get_sample("http_requests_total", labels)
    client.get("/health")
    assert _get_sample("http_requests_total", labels) - before >= 1


def test_endpoint_label_is_route_template(client: TestClient) -> None:
    labels = {
        "method": "GET",
        "endpoint": "/v1/enrollments/{enrollment_id}",
        "status_code": "404",
    }
    before = _get_sample("http_requests_total", labels)
    client.get("/v1/enrollments/123")
    client.get("/v1/enrollments/456")
    assert _get_sample("http_requests_total", labels) - before == 2


def test_request_duration_histogram_observes(client: TestClient) -> None:
    labels = {"method": "GET", "endpoint": "/health"}
    before = _get_sample("http_request_duration_seconds_count", labels)
    client.get("/health")
    assert _get_sample("http_request_duration_seconds_count", labels) - before >= 1


def test_metrics_endpoint_returns_prometheus_format(client: TestClient) -> None:
    client.get("/health")
    resp = client.get("/metrics")
    assert resp.status_code == 200
    assert "http_requests_total" in resp.text
    assert "certificates_issued_total" in resp.text


def test_metrics_endpoint_not_self_instrumented(client: TestClient) -> None:
    labels = {"method": "GET", "endpoint": "/metrics", "status_code": "200"}
    before = _get_sample("http_requests_total", labels)
    client.get("/metrics")
    client.get("/metrics")
    assert _get_sample("http_requests_total", labels) == before


# ---- domain metrics ----


def test_progress_and_certificate_counters(client: TestClient) -> None:
    recalcs_before = _get_sample("progress_recalculations_total")
    issued_before = _get_sample("certificates_issued_total", {"type": "virtual"})

    ids = api_course(client, components=1)
    enrollment_id = api_enroll(client, ids["course_id"])
    client.post(
        f"/v1/enrollments/{enrollment_id}/components/{ids['component_ids'][0]}/complete"
    )

    assert _get_sample("progress_recalculations_total") - recalcs_before == 1
    assert _get_sample("certificates_issued_total", {"type": "virtual"}) - issued_before == 1


def test_breakpoint_counter_labels_value(client: TestClient) -> None:
    before = _get_sample("unit_breakpoints_recorded_total", {"breakpoint": "50"})

    ids = api_course(client)
    enrollment_id = api_enroll(client, ids["course_id"])
    client.put(
        f"/v1/enrollments/{enrollment_id}/units/{ids['unit_id']}/progress",
        json={"scroll_progress": 55},
    )

    assert _get_sample("unit_breakpoints_recorded_total", {"breakpoint": "50"}) - before == 1
