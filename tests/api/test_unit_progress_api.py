"""Unit breakpoint endpoints."""

from __future__ import annotations

from fastapi.testclient import TestClient

from tests.builders import api_course, api_enroll


def _url(enrollment_id: int, unit_id: int, suffix: str = "progress") -> str:
    return f"/v1/enrollments/{enrollment_id}/units/{unit_id}/{suffix}"


def test_report_progress_records_breakpoint(client: TestClient) -> None:
    ids = api_course(client)
    enrollment_id = api_enroll(client, ids["course_id"])

    resp = client.put(
        _url(enrollment_id, ids["unit_id"]),
        json={"scroll_progress": 80, "completed_components": 1, "total_components": 2},
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["breakpoint"]["breakpoint_percentage"] == 75
    assert body["breakpoint"]["metadata"]["unit_title"] == "Unit 1"
    assert body["summary"]["breakpoints_reached"] == [75]
    assert body["can_access_final_quiz"] is True

    again = client.put(_url(enrollment_id, ids["unit_id"]), json={"scroll_progress": 60})
    assert again.json()["breakpoint"] is None


def test_intelligent_course_gates_final_quiz(client: TestClient) -> None:
    ids = api_course(client, intelligent=True)
    enrollment_id = api_enroll(client, ids["course_id"])
    access = _url(enrollment_id, ids["unit_id"], "final-quiz-access")

    assert client.get(access).json()["can_access_final_quiz"] is False

    body = client.put(
        _url(enrollment_id, ids["unit_id"]),
        json={"scroll_progress": 40, "activities_progress": 100},
    ).json()
    assert body["summary"]["current_combined_progress"] == 82.0
    assert body["can_access_final_quiz"] is False

    client.put(
        _url(enrollment_id, ids["unit_id"]),
        json={"scroll_progress": 100, "activities_progress": 100},
    )
    assert client.get(access).json()["can_access_final_quiz"] is True


def test_breakpoints_summary_and_reset(client: TestClient) -> None:
    ids = api_course(client)
    enrollment_id = api_enroll(client, ids["course_id"])
    for scroll in (30, 100):
        client.put(_url(enrollment_id, ids["unit_id"]), json={"scroll_progress": scroll})

    rows = client.get(_url(enrollment_id, ids["unit_id"], "breakpoints")).json()
    assert [r["breakpoint_percentage"] for r in rows] == [25, 100]

    course_units = client.get(f"/v1/enrollments/{enrollment_id}/units").json()
    assert course_units["completed_units"] == 1
    assert course_units["overall_progress"] == 100.0

    reset = client.delete(_url(enrollment_id, ids["unit_id"])).json()
    assert reset == {"unit_id": ids["unit_id"], "breakpoints_removed": 2}
    summary = client.get(_url(enrollment_id, ids["unit_id"])).json()
    assert summary["highest_breakpoint_reached"] == 0


def test_out_of_range_progress_is_422(client: TestClient) -> None:
    ids = api_course(client)
    enrollment_id = api_enroll(client, ids["course_id"])
    resp = client.put(_url(enrollment_id, ids["unit_id"]), json={"scroll_progress": 101})
    assert resp.status_code == 422


def test_unknown_unit_is_404(client: TestClient) -> None:
    ids = api_course(client)
    enrollment_id = api_enroll(client, ids["course_id"])
    assert client.get(_url(enrollment_id, 999)).status_code == 404


def test_final_quiz_access_for_unknown_enrollment_is_denied(client: TestClient) -> None:
    resp = client.get(_url(999, 1, "final-quiz-access"))
    assert resp.status_code == 200
    assert resp.json()["can_access_final_quiz"] is False
