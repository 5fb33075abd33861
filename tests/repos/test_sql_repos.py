"""SQL repositories against an in-memory SQLite database.

The same domain calls the services make, routed through SQLAlchemy, so
the Row <-> dataclass mapping is exercised end to end.  StaticPool keeps
one connection, which is what makes `sqlite://` survive across sessions.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import replace
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from lms_progress.db.engine import create_schema, make_session_factory, session_scope
from lms_progress.models.certificate import Certificate, CertificateType
from lms_progress.models.enrollment import EnrollmentStatus
from lms_progress.models.progress import TrackableType, UnitProgressBreakpoint
from lms_progress.models.setting import SystemSetting
from lms_progress.repos.bundle import Repositories, sql_repositories
from lms_progress.services.cache import InMemoryCacheService
from lms_progress.services.container import build_services
from lms_progress.services.renderer import HtmlCertificateRenderer
from tests.builders import (
    T0,
    FixedClock,
    add_activity,
    add_completed_attempt,
    add_components,
    add_course,
    add_enrollment,
    add_graded_submission,
    add_module,
    add_quiz,
    add_unit,
    make_settings,
)


@pytest.fixture
def session() -> Iterator[Session]:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_schema(engine)
    session = make_session_factory(engine)()
    yield session
    session.rollback()
    session.close()
    engine.dispose()


@pytest.fixture
def sql(session: Session) -> Repositories:
    return sql_repositories(session)


def _certificate(enrollment_id: int, number: str, **fields) -> Certificate:
    certificate = Certificate.new(
        enrollment_id=enrollment_id,
        student_id=42,
        course_id=1,
        type=CertificateType.VIRTUAL,
        issued_at=T0,
        final_score=0.0,
        course_progress=85.0,
        interactive_average=0.0,
        activities_average=0.0,
        metadata={"course_title": "Intro to Statistics"},
    )
    return replace(certificate, certificate_number=number, **fields)


# ---- catalog ----


def test_catalog_round_trip(sql: Repositories) -> None:
    course = add_course(sql, intelligent=True)
    unit = add_unit(sql, course)
    module = add_module(sql, course, unit)
    components = add_components(sql, module, 3)
    quiz = add_quiz(sql, module, passing_score=60)

    assert sql.catalog.get_course(course.id) == course
    assert sql.catalog.units_for_course(course.id) == [unit]
    assert sql.catalog.modules_for_course(course.id)[0].unit_id == unit.id
    assert [c.title for c in sql.catalog.components_for_module(module.id)] == [
        c.title for c in components
    ]
    questions = sql.catalog.questions_for_quiz(quiz.id)
    assert [q.correct_answers for q in questions][3] == ("a", "c")
    assert sql.catalog.get_quiz(quiz.id).passing_score == 60  # type: ignore[union-attr]
    assert sql.catalog.get_course(999) is None


# ---- enrollments ----


def test_enrollment_update_and_lock(sql: Repositories) -> None:
    course = add_course(sql)
    enrollment = add_enrollment(sql, course)

    locked = sql.enrollments.get_for_update(enrollment.id)
    assert locked == enrollment

    updated = sql.enrollments.update(
        replace(enrollment, status=EnrollmentStatus.DROPPED, dropped_at=T0 + 5)
    )
    assert sql.enrollments.find(course.id, 42) == updated
    assert sql.enrollments.count_by_status(course.id, EnrollmentStatus.DROPPED) == 1
    assert sql.enrollments.count_by_status(course.id, EnrollmentStatus.ACTIVE) == 0


def test_duplicate_enrollment_violates_unique_constraint(sql: Repositories) -> None:
    course = add_course(sql)
    add_enrollment(sql, course)
    with pytest.raises(IntegrityError):
        add_enrollment(sql, course)


# ---- progress and assessments ----


def test_progress_record_upsert_key(sql: Repositories, tmp_path: Path) -> None:
    course = add_course(sql)
    enrollment = add_enrollment(sql, course)
    clock = FixedClock()
    services = build_services(
        sql, make_settings(), HtmlCertificateRenderer(tmp_path), InMemoryCacheService(),
        clock=clock,
    )

    first = services.tracker.track_progress(enrollment.id, TrackableType.QUIZ, 5)
    again = services.tracker.track_progress(enrollment.id, TrackableType.QUIZ, 5)

    assert first.id == again.id
    assert len(sql.progress.list_for_enrollment(enrollment.id, TrackableType.QUIZ)) == 1


def test_attempts_and_submissions(sql: Repositories) -> None:
    course = add_course(sql)
    quiz = add_quiz(sql, add_module(sql, course))
    activity = add_activity(sql, course)
    enrollment = add_enrollment(sql, course)

    add_completed_attempt(sql, enrollment, quiz, 55.0)
    add_completed_attempt(sql, enrollment, quiz, 80.0, attempt_number=2)
    add_graded_submission(sql, enrollment, activity, 90)

    assert sql.quiz_attempts.count_completed(quiz.id, 42) == 2
    assert sql.quiz_attempts.max_attempt_number(quiz.id, 42) == 2
    assert sorted(
        a.percentage for a in sql.quiz_attempts.completed_for_enrollment(enrollment.id)
    ) == [55.0, 80.0]
    submission = sql.submissions.find(activity.id, 42)
    assert submission is not None and submission.is_graded


# ---- certificates ----


def test_certificate_queries(sql: Repositories) -> None:
    course = add_course(sql)
    enrollment = add_enrollment(sql, course)
    first = sql.certificates.add(_certificate(enrollment.id, "VRT-0001-00042-1"))

    assert sql.certificates.find_valid(enrollment.id, CertificateType.VIRTUAL) == first
    assert sql.certificates.get_by_number("VRT-0001-00042-1") == first
    assert first.metadata["course_title"] == "Intro to Statistics"

    sql.certificates.update(replace(first, is_valid=False, invalidation_reason="x"))
    assert sql.certificates.find_valid(enrollment.id, CertificateType.VIRTUAL) is None
    assert sql.certificates.count_valid(course.id, CertificateType.VIRTUAL) == 0


def test_certificate_number_is_unique(sql: Repositories) -> None:
    enrollment = add_enrollment(sql, add_course(sql))
    sql.certificates.add(_certificate(enrollment.id, "VRT-0001-00042-1"))
    with pytest.raises(IntegrityError):
        sql.certificates.add(_certificate(enrollment.id, "VRT-0001-00042-1"))


# ---- breakpoints and settings ----


def test_breakpoints_ordered_and_deleted(sql: Repositories) -> None:
    course = add_course(sql)
    unit = add_unit(sql, course)
    enrollment = add_enrollment(sql, course)
    for pct in (50, 25):
        sql.breakpoints.add(
            UnitProgressBreakpoint.new(
                enrollment_id=enrollment.id,
                unit_id=unit.id,
                breakpoint_percentage=pct,
                scroll_progress=pct,
                activities_progress=0,
                combined_progress=pct,
                intelligent_progress_enabled=False,
                reached_at=T0 + pct,
                metadata={"unit_title": unit.title},
            )
        )

    rows = sql.breakpoints.list_for_unit(enrollment.id, unit.id)
    assert [b.breakpoint_percentage for b in rows] == [25, 50]
    assert sql.breakpoints.exists(enrollment.id, unit.id, 50)
    assert sql.breakpoints.latest(enrollment.id, unit.id).breakpoint_percentage == 50  # type: ignore[union-attr]
    assert rows[0].metadata == {"unit_title": "Unit 1"}
    assert sql.breakpoints.delete_for_unit(enrollment.id, unit.id) == 2
    assert sql.breakpoints.list_for_unit(enrollment.id, unit.id) == []


def test_settings_upsert(sql: Repositories) -> None:
    sql.settings.put(SystemSetting(key="certificate_virtual_threshold", value="75", type="integer"))
    sql.settings.put(SystemSetting(key="certificate_virtual_threshold", value="60", type="integer"))

    (setting,) = sql.settings.all()
    assert setting.value == "60"


# ---- services over SQL ----


def test_full_pipeline_issues_certificate(sql: Repositories, tmp_path: Path) -> None:
    clock = FixedClock()
    services = build_services(
        sql, make_settings(), HtmlCertificateRenderer(tmp_path), InMemoryCacheService(),
        clock=clock,
    )
    course = add_course(sql)
    components = add_components(sql, add_module(sql, course), 2)
    enrollment = services.enrollments.enroll(course.id, 42)

    for c in components:
        update = services.enrollments.complete_component(enrollment.id, c.id)

    assert update.enrollment.status is EnrollmentStatus.COMPLETED
    virtual = update.certificates[CertificateType.VIRTUAL]
    assert virtual is not None
    assert virtual.file_path is not None and Path(virtual.file_path).exists()
    assert sql.certificates.get(virtual.id) == virtual


# ---- unit of work ----


def test_session_scope_commits_or_rolls_back() -> None:
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    create_schema(engine)
    factory = make_session_factory(engine)

    with session_scope(factory) as s:
        add_course(sql_repositories(s))
    with pytest.raises(RuntimeError):
        with session_scope(factory) as s:
            add_course(sql_repositories(s))
            raise RuntimeError("boom")

    with session_scope(factory) as s:
        assert sql_repositories(s).catalog.get_course(1) is not None
        assert sql_repositories(s).catalog.get_course(2) is None
    engine.dispose()
