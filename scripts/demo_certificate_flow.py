"""Demo: build a course, walk a learner through it, collect certificates.

Runs against the in-memory repositories using FastAPI TestClient, so no
database or Redis is needed.  Documents land in CERTIFICATE_STORAGE_DIR.

Run with:
    python scripts/demo_certificate_flow.py
"""

from __future__ import annotations

from fastapi.testclient import TestClient

from lms_progress.main import app

STUDENT_ID = 42


def main() -> None:
    client = TestClient(app)

    # ── Seed course structure ───────────────────────────────────────
    course = client.post(
        "/v1/courses",
        json={"title": "Intro to Statistics", "is_published": True},
    ).json()
    module = client.post(
        f"/v1/courses/{course['id']}/modules", json={"title": "Descriptive statistics"}
    ).json()
    lessons = [
        client.post(
            f"/v1/modules/{module['id']}/components", json={"title": title}
        ).json()["id"]
        for title in ("Mean", "Median", "Variance", "Box plots")
    ]
    quiz = client.post(
        f"/v1/modules/{module['id']}/quizzes",
        json={
            "title": "Checkpoint",
            "questions": [
                {"type": "multiple_choice", "prompt": "Robust to outliers?",
                 "correct_answers": ["median"]},
                {"type": "true_false", "prompt": "Variance can be negative",
                 "correct_answers": ["false"]},
            ],
        },
    ).json()
    activity = client.post(
        f"/v1/courses/{course['id']}/activities", json={"title": "Data report"}
    ).json()
    print(f"1. Course {course['id']}: {len(lessons)} lessons, 1 quiz, 1 activity")

    # ── Enroll ──────────────────────────────────────────────────────
    r = client.post(
        "/v1/enrollments", json={"course_id": course["id"], "student_id": STUDENT_ID}
    )
    enrollment_id = r.json()["id"]
    print(f"2. POST /v1/enrollments          → {r.status_code}  enrollment={enrollment_id}")

    # ── Lessons ─────────────────────────────────────────────────────
    for component_id in lessons:
        r = client.post(
            f"/v1/enrollments/{enrollment_id}/components/{component_id}/complete"
        )
    print(f"3. Lessons completed             → progress {r.json()['progress']['overall']}%")

    # ── Quiz ────────────────────────────────────────────────────────
    attempt = client.post(
        f"/v1/enrollments/{enrollment_id}/quizzes/{quiz['id']}/attempts"
    ).json()
    q1, q2 = quiz["question_ids"]
    r = client.post(
        f"/v1/quiz-attempts/{attempt['id']}/complete",
        json={"answers": {str(q1): "median", str(q2): "false"}},
    )
    result = r.json()
    print(
        f"4. Quiz attempt {attempt['attempt_number']}                 → "
        f"{result['attempt']['percentage']}%  passed={result['passed']}  "
        f"progress {result['update']['progress']['overall']}%"
    )
    virtual = result["update"]["certificates"].get("virtual")
    if virtual:
        print(f"   Virtual certificate issued    → {virtual['certificate_number']}")

    # ── Activity ────────────────────────────────────────────────────
    submission = client.post(
        f"/v1/enrollments/{enrollment_id}/activities/{activity['id']}/submissions",
        json={"content": "report.pdf"},
    ).json()
    r = client.post(f"/v1/submissions/{submission['id']}/grade", json={"score": 88})
    grades = client.get(f"/v1/enrollments/{enrollment_id}/grades").json()
    print(f"5. Activity graded 88/100        → final score {grades['final_score']}")

    complete = r.json()["update"]["certificates"].get("complete")
    if complete:
        print(f"   Complete certificate issued   → {complete['certificate_number']}")

    # ── Verify ──────────────────────────────────────────────────────
    for certificate in client.get(f"/v1/enrollments/{enrollment_id}/certificates").json():
        r = client.get(f"/v1/certificates/verify/{certificate['certificate_number']}")
        print(
            f"6. Verify {certificate['certificate_number']} → "
            f"{r.status_code}  valid={r.json()['valid']}"
        )


if __name__ == "__main__":
    main()
