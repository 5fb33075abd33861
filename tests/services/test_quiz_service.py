from __future__ import annotations

import pytest

from lms_progress.models.assessment import AttemptStatus
from lms_progress.models.course import QuestionType, Quiz, QuizQuestion
from lms_progress.models.enrollment import Enrollment
from lms_progress.models.progress import TrackableType
from lms_progress.repos.bundle import Repositories
from lms_progress.services.container import Services
from lms_progress.services.errors import (
    MaxAttemptsExceededError,
    NotFoundError,
    RuleViolationError,
)
from lms_progress.services.quizzes import score_answers
from tests.builders import (
    FixedClock,
    add_components,
    add_course,
    add_enrollment,
    add_module,
    add_quiz,
)


def _setup(
    repos: Repositories, **quiz_kwargs
) -> tuple[Enrollment, Quiz, list[QuizQuestion]]:
    course = add_course(repos)
    module = add_module(repos, course)
    add_components(repos, module, 1)
    quiz = add_quiz(repos, module, **quiz_kwargs)
    enrollment = add_enrollment(repos, course)
    return enrollment, quiz, repos.catalog.questions_for_quiz(quiz.id)


def _answers(questions: list[QuizQuestion], *values: str) -> dict[str, str]:
    return {str(q.id): v for q, v in zip(questions, values)}


# ---- scoring ----


def test_score_answers_all_correct(repos: Repositories) -> None:
    _, _, questions = _setup(repos)

    earned, total, per_question = score_answers(
        questions, _answers(questions, "b", "True", "  median ", "c")
    )

    assert (earned, total) == (4.0, 4.0)
    assert set(per_question.values()) == {1.0}


def test_missing_answers_score_zero(repos: Repositories) -> None:
    _, _, questions = _setup(repos)

    earned, total, per_question = score_answers(questions, _answers(questions, "b"))

    assert (earned, total) == (1.0, 4.0)
    assert per_question[str(questions[3].id)] == 0.0


def test_essay_is_not_auto_graded(repos: Repositories) -> None:
    _, quiz, _ = _setup(repos)
    essay = repos.catalog.add_question(
        QuizQuestion.new(
            quiz_id=quiz.id, type=QuestionType.ESSAY, prompt="Explain", points=2.0
        )
    )

    earned, total, per_question = score_answers([essay], {str(essay.id): "long text"})

    assert (earned, total) == (0.0, 2.0)
    assert per_question[str(essay.id)] is None


# ---- attempts ----


def test_start_attempt_numbers_and_tracks(repos: Repositories, services: Services) -> None:
    enrollment, quiz, _ = _setup(repos)

    attempt = services.quizzes.start_attempt(enrollment.id, quiz.id)

    assert attempt.attempt_number == 1
    assert attempt.status is AttemptStatus.IN_PROGRESS
    (record,) = services.tracker.records_for_enrollment(enrollment.id, TrackableType.QUIZ)
    assert record.reference_id == quiz.id
    assert record.started_at is not None
    assert not record.is_completed


def test_complete_attempt_grades_and_refreshes(
    repos: Repositories, services: Services, clock: FixedClock
) -> None:
    enrollment, quiz, questions = _setup(repos)
    attempt = services.quizzes.start_attempt(enrollment.id, quiz.id)
    clock.advance(95)

    result = services.quizzes.complete_attempt(
        attempt.id, _answers(questions, "b", "true", "mean", "a")
    )

    assert result.attempt.percentage == 75.0
    assert result.attempt.time_spent == 95
    assert result.attempt.formatted_time_spent == "1:35"
    assert result.passed is True
    assert result.remaining_attempts == 2
    # one of two mandatory items done: the quiz, not the component
    assert result.progress.summary.overall == 50.0
    (record,) = services.tracker.records_for_enrollment(enrollment.id, TrackableType.QUIZ)
    assert record.is_completed
    assert record.score == 75.0


def test_failed_attempt_still_counts_toward_progress(
    repos: Repositories, services: Services
) -> None:
    enrollment, quiz, questions = _setup(repos)
    attempt = services.quizzes.start_attempt(enrollment.id, quiz.id)

    result = services.quizzes.complete_attempt(attempt.id, {})

    assert result.attempt.percentage == 0.0
    assert result.passed is False
    assert result.progress.summary.overall == 50.0


def test_pass_threshold_is_inclusive(repos: Repositories, services: Services) -> None:
    enrollment, quiz, questions = _setup(repos, passing_score=75.0)
    attempt = services.quizzes.start_attempt(enrollment.id, quiz.id)

    result = services.quizzes.complete_attempt(
        attempt.id, _answers(questions, "b", "true", "median", "x")
    )

    assert result.attempt.percentage == 75.0
    assert result.passed is True


def test_max_attempts_enforced(repos: Repositories, services: Services) -> None:
    enrollment, quiz, _ = _setup(repos, max_attempts=2)
    for _ in range(2):
        attempt = services.quizzes.start_attempt(enrollment.id, quiz.id)
        services.quizzes.complete_attempt(attempt.id, {})

    with pytest.raises(MaxAttemptsExceededError) as excinfo:
        services.quizzes.start_attempt(enrollment.id, quiz.id)
    assert excinfo.value.max_attempts == 2


def test_abandoned_attempts_do_not_use_allowance(
    repos: Repositories, services: Services
) -> None:
    enrollment, quiz, _ = _setup(repos, max_attempts=1)
    first = services.quizzes.start_attempt(enrollment.id, quiz.id)
    abandoned = services.quizzes.abandon_attempt(first.id)
    assert abandoned.status is AttemptStatus.ABANDONED

    second = services.quizzes.start_attempt(enrollment.id, quiz.id)

    assert second.attempt_number == 2
    result = services.quizzes.complete_attempt(second.id, {})
    assert result.remaining_attempts == 0


def test_parallel_attempts_cannot_exceed_max_attempts(
    repos: Repositories, services: Services
) -> None:
    enrollment, quiz, _ = _setup(repos, max_attempts=1)
    first = services.quizzes.start_attempt(enrollment.id, quiz.id)
    second = services.quizzes.start_attempt(enrollment.id, quiz.id)
    services.quizzes.complete_attempt(first.id, {})

    with pytest.raises(MaxAttemptsExceededError):
        services.quizzes.complete_attempt(second.id, {})

    assert repos.quiz_attempts.count_completed(quiz.id, enrollment.student_id) == 1
    assert repos.quiz_attempts.get(second.id).status is AttemptStatus.IN_PROGRESS


def test_dropped_enrollment_cannot_complete_attempt(
    repos: Repositories, services: Services
) -> None:
    enrollment, quiz, questions = _setup(repos)
    attempt = services.quizzes.start_attempt(enrollment.id, quiz.id)
    services.enrollments.drop(enrollment.id)

    with pytest.raises(RuleViolationError, match="dropped"):
        services.quizzes.complete_attempt(attempt.id, _answers(questions, "b"))

    assert repos.quiz_attempts.get(attempt.id).status is AttemptStatus.IN_PROGRESS
    assert repos.enrollments.get(enrollment.id).progress_percentage == 0.0


def test_attempt_cannot_be_completed_twice(repos: Repositories, services: Services) -> None:
    enrollment, quiz, _ = _setup(repos)
    attempt = services.quizzes.start_attempt(enrollment.id, quiz.id)
    services.quizzes.complete_attempt(attempt.id, {})

    with pytest.raises(RuleViolationError, match="completed"):
        services.quizzes.complete_attempt(attempt.id, {})
    with pytest.raises(RuleViolationError):
        services.quizzes.abandon_attempt(attempt.id)


def test_progress_record_keeps_best_score(repos: Repositories, services: Services) -> None:
    enrollment, quiz, questions = _setup(repos)
    first = services.quizzes.start_attempt(enrollment.id, quiz.id)
    services.quizzes.complete_attempt(first.id, _answers(questions, "b", "true", "median", "a"))
    second = services.quizzes.start_attempt(enrollment.id, quiz.id)
    services.quizzes.complete_attempt(second.id, _answers(questions, "b"))

    (record,) = services.tracker.records_for_enrollment(enrollment.id, TrackableType.QUIZ)
    assert record.score == 100.0
    assert [a.attempt_number for a in services.quizzes.attempts_for(enrollment.id, quiz.id)] == [1, 2]


def test_quiz_from_another_course_is_not_found(
    repos: Repositories, services: Services
) -> None:
    enrollment, _, _ = _setup(repos)
    foreign = add_quiz(repos, add_module(repos, add_course(repos)))

    with pytest.raises(NotFoundError):
        services.quizzes.start_attempt(enrollment.id, foreign.id)


def test_unknown_attempt(services: Services) -> None:
    with pytest.raises(NotFoundError):
        services.quizzes.complete_attempt(999, {})
