"""SQLAlchemy implementation of ProgressRecordRepo."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from lms_progress.db.tables import ProgressRecordRow
from lms_progress.models.progress import ProgressRecord, TrackableType


class SqlProgressRecordRepo:
    """Satisfies the ProgressRecordRepo Protocol via a SQLAlchemy session."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def _row(
        self, enrollment_id: int, type: TrackableType, reference_id: int
    ) -> ProgressRecordRow | None:
        stmt = select(ProgressRecordRow).where(
            ProgressRecordRow.enrollment_id == enrollment_id,
            ProgressRecordRow.type == type.value,
            ProgressRecordRow.reference_id == reference_id,
        )
        return self._session.scalars(stmt).one_or_none()

    def find(
        self, enrollment_id: int, type: TrackableType, reference_id: int
    ) -> ProgressRecord | None:
        row = self._row(enrollment_id, type, reference_id)
        return _row_to_record(row) if row is not None else None

    def add(self, record: ProgressRecord) -> ProgressRecord:
        row = ProgressRecordRow(
            enrollment_id=record.enrollment_id,
            type=record.type.value,
            reference_id=record.reference_id,
            module_id=record.module_id,
            component_id=record.component_id,
            is_completed=record.is_completed,
            started_at=record.started_at,
            completed_at=record.completed_at,
            time_spent=record.time_spent,
            score=record.score,
        )
        self._session.add(row)
        self._session.flush()
        return _row_to_record(row)

    def update(self, record: ProgressRecord) -> ProgressRecord:
        row = self._row(record.enrollment_id, record.type, record.reference_id)
        if row is None:
            raise KeyError("progress record not found")
        row.module_id = record.module_id
        row.component_id = record.component_id
        row.is_completed = record.is_completed
        row.started_at = record.started_at
        row.completed_at = record.completed_at
        row.time_spent = record.time_spent
        row.score = record.score
        self._session.flush()
        return _row_to_record(row)

    def list_for_enrollment(
        self, enrollment_id: int, type: TrackableType | None = None
    ) -> list[ProgressRecord]:
        stmt = select(ProgressRecordRow).where(
            ProgressRecordRow.enrollment_id == enrollment_id
        )
        if type is not None:
            stmt = stmt.where(ProgressRecordRow.type == type.value)
        stmt = stmt.order_by(ProgressRecordRow.id)
        return [_row_to_record(r) for r in self._session.scalars(stmt)]


def _row_to_record(row: ProgressRecordRow) -> ProgressRecord:
    return ProgressRecord(
        id=row.id,
        enrollment_id=row.enrollment_id,
        type=TrackableType(row.type),
        reference_id=row.reference_id,
        module_id=row.module_id,
        component_id=row.component_id,
        is_completed=row.is_completed,
        started_at=row.started_at,
        completed_at=row.completed_at,
        time_spent=row.time_spent,
        score=row.score,
    )
