"""Quiz attempts and activity submissions over HTTP."""

from __future__ import annotations

from fastapi.testclient import TestClient

from tests.builders import FixedClock, api_course, api_enroll


def _quiz(client: TestClient, module_id: int, **fields) -> dict:
    payload = {
        "title": "Checkpoint",
        "questions": [
            {"type": "multiple_choice", "prompt": "Mode?", "correct_answers": ["b"]},
            {"type": "true_false", "prompt": "Mean is robust?", "correct_answers": ["false"]},
        ],
    }
    payload.update(fields)
    return client.post(f"/v1/modules/{module_id}/quizzes", json=payload).json()


# ---- quizzes ----


def test_quiz_attempt_flow(client: TestClient, clock: FixedClock) -> None:
    ids = api_course(client, components=1)
    quiz = _quiz(client, ids["module_id"])
    enrollment_id = api_enroll(client, ids["course_id"])

    started = client.post(f"/v1/enrollments/{enrollment_id}/quizzes/{quiz['id']}/attempts")
    assert started.status_code == 201
    attempt = started.json()
    assert attempt["attempt_number"] == 1
    assert attempt["status"] == "in_progress"

    clock.advance(61)
    q1, q2 = quiz["question_ids"]
    resp = client.post(
        f"/v1/quiz-attempts/{attempt['id']}/complete",
        json={"answers": {str(q1): "b", str(q2): "true"}},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["attempt"]["percentage"] == 50.0
    assert body["attempt"]["formatted_time_spent"] == "1:01"
    assert body["passed"] is False
    assert body["passing_score"] == 70.0
    assert body["remaining_attempts"] == 2
    assert body["update"]["progress"]["overall"] == 50.0
    assert body["update"]["progress"]["quiz_average"] == 50.0

    history = client.get(
        f"/v1/enrollments/{enrollment_id}/quizzes/{quiz['id']}/attempts"
    ).json()
    assert [a["status"] for a in history] == ["completed"]


def test_max_attempts_is_409(client: TestClient) -> None:
    ids = api_course(client)
    quiz = _quiz(client, ids["module_id"], max_attempts=1)
    enrollment_id = api_enroll(client, ids["course_id"])
    attempt = client.post(
        f"/v1/enrollments/{enrollment_id}/quizzes/{quiz['id']}/attempts"
    ).json()
    client.post(f"/v1/quiz-attempts/{attempt['id']}/complete", json={"answers": {}})

    resp = client.post(f"/v1/enrollments/{enrollment_id}/quizzes/{quiz['id']}/attempts")
    assert resp.status_code == 409
    assert "maximum attempts (1)" in resp.json()["detail"]


def test_abandon_attempt(client: TestClient) -> None:
    ids = api_course(client)
    quiz = _quiz(client, ids["module_id"])
    enrollment_id = api_enroll(client, ids["course_id"])
    attempt = client.post(
        f"/v1/enrollments/{enrollment_id}/quizzes/{quiz['id']}/attempts"
    ).json()

    resp = client.post(f"/v1/quiz-attempts/{attempt['id']}/abandon")
    assert resp.json()["status"] == "abandoned"
    again = client.post(f"/v1/quiz-attempts/{attempt['id']}/abandon")
    assert again.status_code == 409


# ---- activities ----


def test_activity_submit_and_grade(client: TestClient) -> None:
    ids = api_course(client, components=1)
    activity = client.post(
        f"/v1/courses/{ids['course_id']}/activities",
        json={"title": "Project", "max_score": 20},
    ).json()
    enrollment_id = api_enroll(client, ids["course_id"])

    submitted = client.post(
        f"/v1/enrollments/{enrollment_id}/activities/{activity['id']}/submissions",
        json={"content": "report.pdf"},
    )
    assert submitted.status_code == 201
    submission = submitted.json()
    assert submission["status"] == "submitted"

    too_high = client.post(f"/v1/submissions/{submission['id']}/grade", json={"score": 25})
    assert too_high.status_code == 409

    graded = client.post(
        f"/v1/submissions/{submission['id']}/grade",
        json={"score": 15, "grader_id": 7, "feedback": "solid"},
    ).json()
    assert graded["submission"]["status"] == "graded"
    assert graded["update"]["progress"]["activities_average"] == 75.0

    grades = client.get(f"/v1/enrollments/{enrollment_id}/grades").json()
    assert grades["activities_average"] == 75.0
    assert grades["final_score"] == 37.5


def test_return_for_revision(client: TestClient) -> None:
    ids = api_course(client)
    activity = client.post(
        f"/v1/courses/{ids['course_id']}/activities", json={"title": "Essay"}
    ).json()
    enrollment_id = api_enroll(client, ids["course_id"])
    submission = client.post(
        f"/v1/enrollments/{enrollment_id}/activities/{activity['id']}/submissions",
        json={},
    ).json()

    returned = client.post(
        f"/v1/submissions/{submission['id']}/return", json={"feedback": "cite sources"}
    ).json()

    assert returned["status"] == "returned"
    assert returned["feedback"] == "cite sources"


def test_grade_unknown_submission_is_404(client: TestClient) -> None:
    assert client.post("/v1/submissions/999/grade", json={"score": 1}).status_code == 404
