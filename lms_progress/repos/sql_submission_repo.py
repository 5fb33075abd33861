"""SQLAlchemy implementation of ActivitySubmissionRepo."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from lms_progress.db.tables import ActivitySubmissionRow
from lms_progress.models.assessment import ActivitySubmission, SubmissionStatus


class SqlActivitySubmissionRepo:
    """Satisfies the ActivitySubmissionRepo Protocol via a SQLAlchemy session."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, submission_id: int) -> ActivitySubmission | None:
        row = self._session.get(ActivitySubmissionRow, submission_id)
        return _row_to_submission(row) if row is not None else None

    def find(self, activity_id: int, student_id: int) -> ActivitySubmission | None:
        stmt = select(ActivitySubmissionRow).where(
            ActivitySubmissionRow.activity_id == activity_id,
            ActivitySubmissionRow.student_id == student_id,
        )
        row = self._session.scalars(stmt).one_or_none()
        return _row_to_submission(row) if row is not None else None

    def add(self, submission: ActivitySubmission) -> ActivitySubmission:
        row = ActivitySubmissionRow(
            activity_id=submission.activity_id,
            student_id=submission.student_id,
            enrollment_id=submission.enrollment_id,
            status=submission.status.value,
            content=submission.content,
            score=submission.score,
            feedback=submission.feedback,
            attempts=submission.attempts,
            submitted_at=submission.submitted_at,
            graded_at=submission.graded_at,
            graded_by=submission.graded_by,
        )
        self._session.add(row)
        self._session.flush()
        return _row_to_submission(row)

    def update(self, submission: ActivitySubmission) -> ActivitySubmission:
        row = self._session.get(ActivitySubmissionRow, submission.id)
        if row is None:
            raise KeyError("submission not found")
        row.status = submission.status.value
        row.content = submission.content
        row.score = submission.score
        row.feedback = submission.feedback
        row.attempts = submission.attempts
        row.submitted_at = submission.submitted_at
        row.graded_at = submission.graded_at
        row.graded_by = submission.graded_by
        self._session.flush()
        return _row_to_submission(row)

    def list_for_enrollment(self, enrollment_id: int) -> list[ActivitySubmission]:
        stmt = (
            select(ActivitySubmissionRow)
            .where(ActivitySubmissionRow.enrollment_id == enrollment_id)
            .order_by(ActivitySubmissionRow.id)
        )
        return [_row_to_submission(r) for r in self._session.scalars(stmt)]


def _row_to_submission(row: ActivitySubmissionRow) -> ActivitySubmission:
    return ActivitySubmission(
        id=row.id,
        activity_id=row.activity_id,
        student_id=row.student_id,
        enrollment_id=row.enrollment_id,
        status=SubmissionStatus(row.status),
        content=row.content,
        score=row.score,
        feedback=row.feedback,
        attempts=row.attempts,
        submitted_at=row.submitted_at,
        graded_at=row.graded_at,
        graded_by=row.graded_by,
    )
