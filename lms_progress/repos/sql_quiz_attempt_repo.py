"""SQLAlchemy implementation of QuizAttemptRepo."""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from lms_progress.db.tables import QuizAttemptRow
from lms_progress.models.assessment import AttemptStatus, QuizAttempt


class SqlQuizAttemptRepo:
    """Satisfies the QuizAttemptRepo Protocol via a SQLAlchemy session."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, attempt_id: int) -> QuizAttempt | None:
        row = self._session.get(QuizAttemptRow, attempt_id)
        return _row_to_attempt(row) if row is not None else None

    def add(self, attempt: QuizAttempt) -> QuizAttempt:
        row = QuizAttemptRow(
            quiz_id=attempt.quiz_id,
            student_id=attempt.student_id,
            enrollment_id=attempt.enrollment_id,
            attempt_number=attempt.attempt_number,
            status=attempt.status.value,
            started_at=attempt.started_at,
            completed_at=attempt.completed_at,
            score=attempt.score,
            total_points=attempt.total_points,
            percentage=attempt.percentage,
            time_spent=attempt.time_spent,
            answers=dict(attempt.answers),
            question_scores=dict(attempt.question_scores),
        )
        self._session.add(row)
        self._session.flush()
        return _row_to_attempt(row)

    def update(self, attempt: QuizAttempt) -> QuizAttempt:
        row = self._session.get(QuizAttemptRow, attempt.id)
        if row is None:
            raise KeyError("quiz attempt not found")
        row.status = attempt.status.value
        row.completed_at = attempt.completed_at
        row.score = attempt.score
        row.total_points = attempt.total_points
        row.percentage = attempt.percentage
        row.time_spent = attempt.time_spent
        # Reassign (not mutate) so the JSON columns are marked dirty
        row.answers = dict(attempt.answers)
        row.question_scores = dict(attempt.question_scores)
        self._session.flush()
        return _row_to_attempt(row)

    def list_for_student(self, quiz_id: int, student_id: int) -> list[QuizAttempt]:
        stmt = (
            select(QuizAttemptRow)
            .where(
                QuizAttemptRow.quiz_id == quiz_id,
                QuizAttemptRow.student_id == student_id,
            )
            .order_by(QuizAttemptRow.attempt_number)
        )
        return [_row_to_attempt(r) for r in self._session.scalars(stmt)]

    def count_completed(self, quiz_id: int, student_id: int) -> int:
        stmt = (
            select(func.count())
            .select_from(QuizAttemptRow)
            .where(
                QuizAttemptRow.quiz_id == quiz_id,
                QuizAttemptRow.student_id == student_id,
                QuizAttemptRow.status == AttemptStatus.COMPLETED.value,
            )
        )
        return self._session.scalar(stmt) or 0

    def max_attempt_number(self, quiz_id: int, student_id: int) -> int:
        stmt = select(func.max(QuizAttemptRow.attempt_number)).where(
            QuizAttemptRow.quiz_id == quiz_id,
            QuizAttemptRow.student_id == student_id,
        )
        return self._session.scalar(stmt) or 0

    def completed_for_enrollment(self, enrollment_id: int) -> list[QuizAttempt]:
        stmt = (
            select(QuizAttemptRow)
            .where(
                QuizAttemptRow.enrollment_id == enrollment_id,
                QuizAttemptRow.status == AttemptStatus.COMPLETED.value,
            )
            .order_by(QuizAttemptRow.id)
        )
        return [_row_to_attempt(r) for r in self._session.scalars(stmt)]


def _row_to_attempt(row: QuizAttemptRow) -> QuizAttempt:
    return QuizAttempt(
        id=row.id,
        quiz_id=row.quiz_id,
        student_id=row.student_id,
        enrollment_id=row.enrollment_id,
        attempt_number=row.attempt_number,
        started_at=row.started_at,
        status=AttemptStatus(row.status),
        completed_at=row.completed_at,
        score=row.score,
        total_points=row.total_points,
        percentage=row.percentage,
        time_spent=row.time_spent,
        answers=dict(row.answers or {}),
        question_scores=dict(row.question_scores or {}),
    )
