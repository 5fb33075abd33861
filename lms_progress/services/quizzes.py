"""Quiz attempts: start, auto-grade, abandon.

A learner may START an attempt as long as fewer than max_attempts are
completed; abandoned attempts do not use up the allowance.  Attempt
numbers keep increasing across abandoned ones, so (quiz, student,
attempt_number) stays unique.

Grading per question type:

  multiple_choice  answer is one of correct_answers
  true_false       answer equals the first correct answer
  short_answer     equal to a correct answer ignoring case/whitespace
  essay            not auto-graded, scored None (0 points toward the total)

percentage = earned points / total points * 100, rounded to 2 places.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any

from lms_progress.core.clock import Clock, epoch_now
from lms_progress.core.metrics import QUIZ_ATTEMPTS_COMPLETED
from lms_progress.models.assessment import AttemptStatus, QuizAttempt
from lms_progress.models.course import Quiz, QuizQuestion
from lms_progress.models.enrollment import Enrollment
from lms_progress.models.progress import TrackableType
from lms_progress.repos.bundle import Repositories
from lms_progress.services.enrollments import EnrollmentService, ProgressUpdate
from lms_progress.services.errors import (
    MaxAttemptsExceededError,
    NotFoundError,
    RuleViolationError,
)
from lms_progress.services.progress_tracker import ProgressTracker, percent

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class QuizResult:
    attempt: QuizAttempt
    quiz: Quiz
    passed: bool
    remaining_attempts: int
    progress: ProgressUpdate


def score_answers(
    questions: list[QuizQuestion], answers: dict[str, Any]
) -> tuple[float, float, dict[str, float | None]]:
    """Returns (earned points, total points, per-question scores)."""
    earned = 0.0
    total = 0.0
    per_question: dict[str, float | None] = {}
    for question in questions:
        total += question.points
        key = str(question.id)
        if key not in answers:
            per_question[key] = 0.0
            continue
        correct = question.check_answer(answers[key])
        if correct is None:
            per_question[key] = None
            continue
        points = question.points if correct else 0.0
        per_question[key] = points
        earned += points
    return earned, total, per_question


class QuizService:
    def __init__(
        self,
        repos: Repositories,
        tracker: ProgressTracker,
        enrollments: EnrollmentService,
        *,
        clock: Clock = epoch_now,
    ) -> None:
        self._repos = repos
        self._tracker = tracker
        self._enrollments = enrollments
        self._now = clock

    def start_attempt(self, enrollment_id: int, quiz_id: int) -> QuizAttempt:
        enrollment = self._enrollments.get_active(enrollment_id)
        quiz = self._quiz_in_course(quiz_id, enrollment)

        attempts = self._repos.quiz_attempts
        if attempts.count_completed(quiz.id, enrollment.student_id) >= quiz.max_attempts:
            raise MaxAttemptsExceededError(quiz.id, quiz.max_attempts)

        attempt = attempts.add(
            QuizAttempt.new(
                quiz_id=quiz.id,
                student_id=enrollment.student_id,
                enrollment_id=enrollment.id,
                attempt_number=attempts.max_attempt_number(quiz.id, enrollment.student_id)
                + 1,
                started_at=self._now(),
            )
        )
        record = self._tracker.track_progress(
            enrollment.id, TrackableType.QUIZ, quiz.id, module_id=quiz.module_id
        )
        self._tracker.mark_started(record)
        logger.info(
            "Started attempt %d of quiz %d",
            attempt.attempt_number,
            quiz.id,
            extra={"enrollment_id": enrollment.id, "course_id": enrollment.course_id},
        )
        return attempt

    def complete_attempt(self, attempt_id: int, answers: dict[str, Any]) -> QuizResult:
        attempt = self._attempt(attempt_id)
        if attempt.status is not AttemptStatus.IN_PROGRESS:
            raise RuleViolationError(f"attempt is {attempt.status.value}")
        quiz = self._repos.catalog.get_quiz(attempt.quiz_id)
        if quiz is None:
            raise NotFoundError("quiz", attempt.quiz_id)
        self._enrollments.get_open(attempt.enrollment_id, for_update=True)
        # Attempts started in parallel all pass the check in start_attempt
        used = self._repos.quiz_attempts.count_completed(quiz.id, attempt.student_id)
        if used >= quiz.max_attempts:
            raise MaxAttemptsExceededError(quiz.id, quiz.max_attempts)

        questions = self._repos.catalog.questions_for_quiz(quiz.id)
        normalized = {str(k): v for k, v in answers.items()}
        earned, total, per_question = score_answers(questions, normalized)

        now = self._now()
        completed = self._repos.quiz_attempts.update(
            replace(
                attempt,
                status=AttemptStatus.COMPLETED,
                completed_at=now,
                time_spent=max(now - attempt.started_at, 0),
                answers=normalized,
                question_scores=per_question,
                score=round(earned, 2),
                total_points=round(total, 2),
                percentage=percent(earned, total),
            )
        )
        passed = completed.is_passed(quiz.passing_score)
        QUIZ_ATTEMPTS_COMPLETED.labels(passed=str(passed).lower()).inc()

        record = self._tracker.track_progress(
            attempt.enrollment_id, TrackableType.QUIZ, quiz.id, module_id=quiz.module_id
        )
        best = max(
            (
                a.percentage
                for a in self._repos.quiz_attempts.list_for_student(
                    quiz.id, attempt.student_id
                )
                if a.status is AttemptStatus.COMPLETED and a.percentage is not None
            ),
            default=completed.percentage,
        )
        self._tracker.mark_completed(record, score=best)

        logger.info(
            "Completed attempt %d of quiz %d: %.2f%% (%s)",
            completed.attempt_number,
            quiz.id,
            completed.percentage,
            "passed" if passed else "failed",
            extra={"enrollment_id": attempt.enrollment_id},
        )
        progress = self._enrollments.refresh_progress(attempt.enrollment_id)
        used = self._repos.quiz_attempts.count_completed(quiz.id, attempt.student_id)
        return QuizResult(
            attempt=completed,
            quiz=quiz,
            passed=passed,
            remaining_attempts=max(quiz.max_attempts - used, 0),
            progress=progress,
        )

    def abandon_attempt(self, attempt_id: int) -> QuizAttempt:
        attempt = self._attempt(attempt_id)
        if attempt.status is not AttemptStatus.IN_PROGRESS:
            raise RuleViolationError(f"attempt is {attempt.status.value}")
        return self._repos.quiz_attempts.update(
            replace(attempt, status=AttemptStatus.ABANDONED, completed_at=self._now())
        )

    def attempts_for(self, enrollment_id: int, quiz_id: int) -> list[QuizAttempt]:
        enrollment = self._enrollments.get(enrollment_id)
        quiz = self._quiz_in_course(quiz_id, enrollment)
        return self._repos.quiz_attempts.list_for_student(quiz.id, enrollment.student_id)

    def _attempt(self, attempt_id: int) -> QuizAttempt:
        attempt = self._repos.quiz_attempts.get(attempt_id)
        if attempt is None:
            raise NotFoundError("quiz attempt", attempt_id)
        return attempt

    def _quiz_in_course(self, quiz_id: int, enrollment: Enrollment) -> Quiz:
        quiz = self._repos.catalog.get_quiz(quiz_id)
        module = self._repos.catalog.get_module(quiz.module_id) if quiz else None
        if quiz is None or module is None or module.course_id != enrollment.course_id:
            raise NotFoundError("quiz", quiz_id)
        return quiz
