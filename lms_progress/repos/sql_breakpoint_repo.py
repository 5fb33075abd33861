"""SQLAlchemy implementation of BreakpointRepo."""

from __future__ import annotations

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from lms_progress.db.tables import UnitProgressBreakpointRow
from lms_progress.models.progress import UnitProgressBreakpoint


class SqlBreakpointRepo:
    """Satisfies the BreakpointRepo Protocol via a SQLAlchemy session."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def list_for_unit(
        self, enrollment_id: int, unit_id: int
    ) -> list[UnitProgressBreakpoint]:
        stmt = (
            select(UnitProgressBreakpointRow)
            .where(
                UnitProgressBreakpointRow.enrollment_id == enrollment_id,
                UnitProgressBreakpointRow.unit_id == unit_id,
            )
            .order_by(UnitProgressBreakpointRow.breakpoint_percentage)
        )
        return [_row_to_breakpoint(r) for r in self._session.scalars(stmt)]

    def exists(self, enrollment_id: int, unit_id: int, breakpoint: int) -> bool:
        stmt = select(UnitProgressBreakpointRow.id).where(
            UnitProgressBreakpointRow.enrollment_id == enrollment_id,
            UnitProgressBreakpointRow.unit_id == unit_id,
            UnitProgressBreakpointRow.breakpoint_percentage == breakpoint,
        )
        return self._session.scalars(stmt).first() is not None

    def latest(self, enrollment_id: int, unit_id: int) -> UnitProgressBreakpoint | None:
        stmt = (
            select(UnitProgressBreakpointRow)
            .where(
                UnitProgressBreakpointRow.enrollment_id == enrollment_id,
                UnitProgressBreakpointRow.unit_id == unit_id,
            )
            .order_by(
                UnitProgressBreakpointRow.reached_at.desc(),
                UnitProgressBreakpointRow.id.desc(),
            )
            .limit(1)
        )
        row = self._session.scalars(stmt).first()
        return _row_to_breakpoint(row) if row is not None else None

    def add(self, breakpoint: UnitProgressBreakpoint) -> UnitProgressBreakpoint:
        row = UnitProgressBreakpointRow(
            enrollment_id=breakpoint.enrollment_id,
            unit_id=breakpoint.unit_id,
            breakpoint_percentage=breakpoint.breakpoint_percentage,
            scroll_progress=breakpoint.scroll_progress,
            activities_progress=breakpoint.activities_progress,
            combined_progress=breakpoint.combined_progress,
            intelligent_progress_enabled=breakpoint.intelligent_progress_enabled,
            reached_at=breakpoint.reached_at,
            metadata_json=dict(breakpoint.metadata),
        )
        self._session.add(row)
        self._session.flush()
        return _row_to_breakpoint(row)

    def delete_for_unit(self, enrollment_id: int, unit_id: int) -> int:
        stmt = delete(UnitProgressBreakpointRow).where(
            UnitProgressBreakpointRow.enrollment_id == enrollment_id,
            UnitProgressBreakpointRow.unit_id == unit_id,
        )
        result = self._session.execute(stmt)
        return result.rowcount or 0


def _row_to_breakpoint(row: UnitProgressBreakpointRow) -> UnitProgressBreakpoint:
    return UnitProgressBreakpoint(
        id=row.id,
        enrollment_id=row.enrollment_id,
        unit_id=row.unit_id,
        breakpoint_percentage=row.breakpoint_percentage,
        scroll_progress=row.scroll_progress,
        activities_progress=row.activities_progress,
        combined_progress=row.combined_progress,
        intelligent_progress_enabled=row.intelligent_progress_enabled,
        reached_at=row.reached_at,
        metadata=dict(row.metadata_json or {}),
    )
