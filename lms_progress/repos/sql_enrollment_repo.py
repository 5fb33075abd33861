"""SQLAlchemy implementation of EnrollmentRepo."""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from lms_progress.db.tables import EnrollmentRow
from lms_progress.models.enrollment import Enrollment, EnrollmentStatus


class SqlEnrollmentRepo:
    """Satisfies the EnrollmentRepo Protocol via a SQLAlchemy session."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, enrollment_id: int) -> Enrollment | None:
        row = self._session.get(EnrollmentRow, enrollment_id)
        return _row_to_enrollment(row) if row is not None else None

    def get_for_update(self, enrollment_id: int) -> Enrollment | None:
        # Row lock held until the request's transaction ends; two quiz
        # submissions for one enrollment recompute progress one at a time.
        # SQLite ignores FOR UPDATE.
        stmt = (
            select(EnrollmentRow)
            .where(EnrollmentRow.id == enrollment_id)
            .with_for_update()
        )
        row = self._session.scalars(stmt).one_or_none()
        return _row_to_enrollment(row) if row is not None else None

    def find(self, course_id: int, student_id: int) -> Enrollment | None:
        stmt = select(EnrollmentRow).where(
            EnrollmentRow.course_id == course_id,
            EnrollmentRow.student_id == student_id,
        )
        row = self._session.scalars(stmt).one_or_none()
        return _row_to_enrollment(row) if row is not None else None

    def add(self, enrollment: Enrollment) -> Enrollment:
        row = EnrollmentRow(
            course_id=enrollment.course_id,
            student_id=enrollment.student_id,
            status=enrollment.status.value,
            progress_percentage=enrollment.progress_percentage,
            enrolled_at=enrollment.enrolled_at,
            completed_at=enrollment.completed_at,
            dropped_at=enrollment.dropped_at,
        )
        self._session.add(row)
        self._session.flush()
        return _row_to_enrollment(row)

    def update(self, enrollment: Enrollment) -> Enrollment:
        row = self._session.get(EnrollmentRow, enrollment.id)
        if row is None:
            raise KeyError("enrollment not found")
        row.status = enrollment.status.value
        row.progress_percentage = enrollment.progress_percentage
        row.enrolled_at = enrollment.enrolled_at
        row.completed_at = enrollment.completed_at
        row.dropped_at = enrollment.dropped_at
        self._session.flush()
        return _row_to_enrollment(row)

    def list_for_course(self, course_id: int) -> list[Enrollment]:
        stmt = (
            select(EnrollmentRow)
            .where(EnrollmentRow.course_id == course_id)
            .order_by(EnrollmentRow.id)
        )
        return [_row_to_enrollment(r) for r in self._session.scalars(stmt)]

    def count_by_status(self, course_id: int, status: EnrollmentStatus) -> int:
        stmt = select(func.count()).select_from(EnrollmentRow).where(
            EnrollmentRow.course_id == course_id,
            EnrollmentRow.status == status.value,
        )
        return self._session.scalar(stmt) or 0


def _row_to_enrollment(row: EnrollmentRow) -> Enrollment:
    return Enrollment(
        id=row.id,
        course_id=row.course_id,
        student_id=row.student_id,
        enrolled_at=row.enrolled_at,
        status=EnrollmentStatus(row.status),
        progress_percentage=row.progress_percentage,
        completed_at=row.completed_at,
        dropped_at=row.dropped_at,
    )
