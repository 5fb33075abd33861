from __future__ import annotations

from lms_progress.models.progress import TrackableType, format_duration
from lms_progress.repos.bundle import Repositories
from lms_progress.services.container import Services
from lms_progress.services.progress_tracker import best_percentages, percent
from tests.builders import (
    FixedClock,
    add_completed_attempt,
    add_components,
    add_course,
    add_enrollment,
    add_module,
    add_quiz,
)


def _complete(services: Services, enrollment_id: int, component) -> None:
    record = services.tracker.track_progress(
        enrollment_id,
        TrackableType.COMPONENT,
        component.id,
        module_id=component.module_id,
        component_id=component.id,
    )
    services.tracker.mark_completed(record)


# ---- overall percentage ----


def test_three_of_four_mandatory_components_is_75(
    repos: Repositories, services: Services
) -> None:
    course = add_course(repos)
    components = add_components(repos, add_module(repos, course), 4)
    enrollment = add_enrollment(repos, course)
    for c in components[:3]:
        _complete(services, enrollment.id, c)

    summary = services.tracker.calculate_progress(enrollment)

    assert summary.overall == 75.0
    assert summary.components_completed == 3
    assert summary.total_components == 4
    assert summary.modules_completed == 0
    assert summary.total_modules == 1


def test_optional_components_do_not_count(
    repos: Repositories, services: Services
) -> None:
    course = add_course(repos)
    module = add_module(repos, course)
    mandatory = add_components(repos, module, 2)
    optional = add_components(repos, module, 3, mandatory=False)
    enrollment = add_enrollment(repos, course)
    for c in optional:
        _complete(services, enrollment.id, c)
    _complete(services, enrollment.id, mandatory[0])

    assert services.tracker.calculate_progress(enrollment).overall == 50.0


def test_course_without_mandatory_items_is_zero(
    repos: Repositories, services: Services
) -> None:
    course = add_course(repos)
    add_components(repos, add_module(repos, course), 2, mandatory=False)
    enrollment = add_enrollment(repos, course)

    summary = services.tracker.calculate_progress(enrollment)

    assert summary.overall == 0.0
    assert summary.total_components == 0
    assert summary.modules_completed == 0


def test_completed_quiz_attempt_counts_even_when_failed(
    repos: Repositories, services: Services
) -> None:
    course = add_course(repos)
    module = add_module(repos, course)
    components = add_components(repos, module, 1)
    quiz = add_quiz(repos, module)
    enrollment = add_enrollment(repos, course)
    _complete(services, enrollment.id, components[0])
    add_completed_attempt(repos, enrollment, quiz, 20.0)

    summary = services.tracker.calculate_progress(enrollment)

    assert summary.overall == 100.0
    assert summary.modules_completed == 1
    assert summary.quiz_average == 20.0


def test_quiz_average_uses_best_attempt(repos: Repositories, services: Services) -> None:
    course = add_course(repos)
    module = add_module(repos, course)
    quiz = add_quiz(repos, module)
    enrollment = add_enrollment(repos, course)
    add_completed_attempt(repos, enrollment, quiz, 40.0, attempt_number=1)
    add_completed_attempt(repos, enrollment, quiz, 90.0, attempt_number=2)

    assert services.tracker.calculate_progress(enrollment).quiz_average == 90.0


def test_averages_are_none_without_data(repos: Repositories, services: Services) -> None:
    course = add_course(repos)
    add_components(repos, add_module(repos, course), 1)
    enrollment = add_enrollment(repos, course)

    summary = services.tracker.calculate_progress(enrollment)

    assert summary.quiz_average is None
    assert summary.activities_average is None


def test_other_enrollments_records_are_ignored(
    repos: Repositories, services: Services
) -> None:
    course = add_course(repos)
    components = add_components(repos, add_module(repos, course), 2)
    mine = add_enrollment(repos, course, student_id=1)
    other = add_enrollment(repos, course, student_id=2)
    for c in components:
        _complete(services, other.id, c)

    assert services.tracker.calculate_progress(mine).overall == 0.0


# ---- records ----


def test_track_progress_is_an_upsert(repos: Repositories, services: Services) -> None:
    course = add_course(repos)
    (component,) = add_components(repos, add_module(repos, course), 1)
    enrollment = add_enrollment(repos, course)

    first = services.tracker.track_progress(
        enrollment.id, TrackableType.COMPONENT, component.id, module_id=component.module_id
    )
    second = services.tracker.track_progress(
        enrollment.id, TrackableType.COMPONENT, component.id
    )

    assert first.id == second.id
    assert second.module_id == component.module_id


def test_mark_started_keeps_first_timestamp(
    repos: Repositories, services: Services, clock: FixedClock
) -> None:
    course = add_course(repos)
    enrollment = add_enrollment(repos, course)
    record = services.tracker.track_progress(enrollment.id, TrackableType.ACTIVITY, 7)

    started = services.tracker.mark_started(record)
    clock.advance(30)
    again = services.tracker.mark_started(started)

    assert again.started_at == clock.now - 30


def test_mark_completed_measures_time_spent(
    repos: Repositories, services: Services, clock: FixedClock
) -> None:
    course = add_course(repos)
    enrollment = add_enrollment(repos, course)
    record = services.tracker.track_progress(enrollment.id, TrackableType.COMPONENT, 1)
    record = services.tracker.mark_started(record)
    clock.advance(3725)

    done = services.tracker.mark_completed(record, score=88.0)

    assert done.is_completed is True
    assert done.completed_at == clock.now
    assert done.time_spent == 3725
    assert done.formatted_time_spent == "1:02:05"
    assert done.score == 88.0


def test_mark_completed_without_start_spends_no_time(
    repos: Repositories, services: Services
) -> None:
    course = add_course(repos)
    enrollment = add_enrollment(repos, course)
    record = services.tracker.track_progress(enrollment.id, TrackableType.COMPONENT, 1)

    assert services.tracker.mark_completed(record).time_spent == 0


def test_records_for_enrollment_filters_by_type(
    repos: Repositories, services: Services
) -> None:
    course = add_course(repos)
    enrollment = add_enrollment(repos, course)
    services.tracker.track_progress(enrollment.id, TrackableType.COMPONENT, 1)
    services.tracker.track_progress(enrollment.id, TrackableType.QUIZ, 1)

    quizzes = services.tracker.records_for_enrollment(enrollment.id, TrackableType.QUIZ)

    assert [r.type for r in quizzes] == [TrackableType.QUIZ]
    assert len(services.tracker.records_for_enrollment(enrollment.id)) == 2


# ---- helpers ----


def test_percent_handles_empty_whole() -> None:
    assert percent(3, 0) == 0.0
    assert percent(1, 3) == 33.33


def test_best_percentages_per_quiz(repos: Repositories) -> None:
    course = add_course(repos)
    module = add_module(repos, course)
    q1 = add_quiz(repos, module)
    q2 = add_quiz(repos, module)
    enrollment = add_enrollment(repos, course)
    attempts = [
        add_completed_attempt(repos, enrollment, q1, 50.0, 1),
        add_completed_attempt(repos, enrollment, q1, 70.0, 2),
        add_completed_attempt(repos, enrollment, q2, 10.0, 1),
    ]

    assert best_percentages(attempts) == {q1.id: 70.0, q2.id: 10.0}


def test_format_duration() -> None:
    assert format_duration(0) == "0:00:00"
    assert format_duration(59) == "0:00:59"
    assert format_duration(7322) == "2:02:02"
