"""Catalog builders and test doubles shared by the service and API tests."""

from __future__ import annotations

from dataclasses import replace

from lms_progress.core.config import Settings
from lms_progress.models.assessment import (
    ActivitySubmission,
    AttemptStatus,
    QuizAttempt,
    SubmissionStatus,
)
from lms_progress.models.certificate import Certificate
from lms_progress.models.course import (
    Course,
    CourseActivity,
    CourseModule,
    CourseUnit,
    ModuleComponent,
    QuestionType,
    Quiz,
    QuizQuestion,
)
from lms_progress.models.enrollment import Enrollment
from lms_progress.models.setting import SystemSetting
from lms_progress.repos.bundle import Repositories

# 2026-01-01T00:00:00Z
T0 = 1_767_225_600


class FixedClock:
    """Deterministic clock; tests move time with advance()."""

    def __init__(self, start: int = T0) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


class FailingRenderer:
    def __init__(self) -> None:
        self.calls = 0

    def render(self, certificate: Certificate) -> str:
        self.calls += 1
        raise OSError("disk full")

    def exists(self, path: str) -> bool:
        return False

    def open_path(self, path: str):
        raise FileNotFoundError(path)


def make_settings(**overrides) -> Settings:
    base = dict(
        app_env="test",
        log_level="info",
        log_json=False,
        port=8000,
        database_url=None,
        redis_url=None,
    )
    base.update(overrides)
    return Settings(**base)  # type: ignore[arg-type]


# ---- catalog ----


def add_course(
    repos: Repositories, *, published: bool = True, intelligent: bool = False
) -> Course:
    return repos.catalog.add_course(
        Course.new(
            title="Intro to Statistics",
            is_published=published,
            intelligent_progress_enabled=intelligent,
        )
    )


def add_unit(repos: Repositories, course: Course, title: str = "Unit 1") -> CourseUnit:
    return repos.catalog.add_unit(CourseUnit.new(course_id=course.id, title=title))


def add_module(
    repos: Repositories, course: Course, unit: CourseUnit | None = None
) -> CourseModule:
    return repos.catalog.add_module(
        CourseModule.new(
            course_id=course.id,
            title="Module",
            unit_id=unit.id if unit is not None else None,
        )
    )


def add_components(
    repos: Repositories, module: CourseModule, count: int, *, mandatory: bool = True
) -> list[ModuleComponent]:
    return [
        repos.catalog.add_component(
            ModuleComponent.new(
                module_id=module.id,
                title=f"Lesson {i + 1}",
                is_mandatory=mandatory,
                position=i,
            )
        )
        for i in range(count)
    ]


def add_quiz(
    repos: Repositories,
    module: CourseModule,
    *,
    max_attempts: int = 3,
    passing_score: float = 70.0,
    mandatory: bool = True,
) -> Quiz:
    quiz = repos.catalog.add_quiz(
        Quiz.new(
            module_id=module.id,
            title="Checkpoint",
            max_attempts=max_attempts,
            passing_score=passing_score,
            is_mandatory=mandatory,
        )
    )
    for position, (type, correct) in enumerate(
        [
            (QuestionType.MULTIPLE_CHOICE, ("b",)),
            (QuestionType.TRUE_FALSE, ("true",)),
            (QuestionType.SHORT_ANSWER, ("Median",)),
            (QuestionType.MULTIPLE_CHOICE, ("a", "c")),
        ]
    ):
        repos.catalog.add_question(
            QuizQuestion.new(
                quiz_id=quiz.id,
                type=type,
                prompt=f"Question {position + 1}",
                correct_answers=correct,
                position=position,
            )
        )
    return quiz


def add_activity(
    repos: Repositories,
    course: Course,
    *,
    max_score: float = 100.0,
    weight: float = 1.0,
    mandatory: bool = True,
) -> CourseActivity:
    return repos.catalog.add_activity(
        CourseActivity.new(
            course_id=course.id,
            title="Assignment",
            max_score=max_score,
            weight=weight,
            is_mandatory=mandatory,
        )
    )


def add_enrollment(
    repos: Repositories, course: Course, student_id: int = 42, **fields
) -> Enrollment:
    enrollment = repos.enrollments.add(
        Enrollment.new(course_id=course.id, student_id=student_id, enrolled_at=T0)
    )
    if fields:
        enrollment = repos.enrollments.update(replace(enrollment, **fields))
    return enrollment


def add_completed_attempt(
    repos: Repositories,
    enrollment: Enrollment,
    quiz: Quiz,
    percentage: float,
    attempt_number: int = 1,
) -> QuizAttempt:
    return repos.quiz_attempts.add(
        replace(
            QuizAttempt.new(
                quiz_id=quiz.id,
                student_id=enrollment.student_id,
                enrollment_id=enrollment.id,
                attempt_number=attempt_number,
                started_at=T0,
            ),
            status=AttemptStatus.COMPLETED,
            completed_at=T0 + 60,
            percentage=percentage,
        )
    )


def add_graded_submission(
    repos: Repositories,
    enrollment: Enrollment,
    activity: CourseActivity,
    score: float,
) -> ActivitySubmission:
    return repos.submissions.add(
        replace(
            ActivitySubmission.new(
                activity_id=activity.id,
                student_id=enrollment.student_id,
                enrollment_id=enrollment.id,
            ),
            status=SubmissionStatus.GRADED,
            score=score,
            attempts=1,
            submitted_at=T0,
            graded_at=T0 + 60,
        )
    )


def put_setting(repos: Repositories, key: str, value: str, type: str = "string") -> None:
    repos.settings.put(SystemSetting(key=key, value=value, type=type))


# ---- catalog through the HTTP API ----


def api_course(client, *, components: int = 2, intelligent: bool = False) -> dict:
    """Create a published course with one unit, one module and its components.

    Returns the ids the tests need: course_id, unit_id, module_id and
    component_ids.
    """
    course = client.post(
        "/v1/courses",
        json={
            "title": "Intro to Statistics",
            "is_published": True,
            "intelligent_progress_enabled": intelligent,
        },
    ).json()
    unit = client.post(f"/v1/courses/{course['id']}/units", json={"title": "Unit 1"}).json()
    module = client.post(
        f"/v1/courses/{course['id']}/modules",
        json={"title": "Module 1", "unit_id": unit["id"]},
    ).json()
    component_ids = [
        client.post(
            f"/v1/modules/{module['id']}/components",
            json={"title": f"Lesson {i + 1}", "position": i},
        ).json()["id"]
        for i in range(components)
    ]
    return {
        "course_id": course["id"],
        "unit_id": unit["id"],
        "module_id": module["id"],
        "component_ids": component_ids,
    }


def api_enroll(client, course_id: int, student_id: int = 42) -> int:
    resp = client.post("/v1/enrollments", json={"course_id": course_id, "student_id": student_id})
    assert resp.status_code == 201, resp.text
    return resp.json()["id"]
