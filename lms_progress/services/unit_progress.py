"""Unit breakpoints: a coarse, per-unit progress signal.

The frontend reports how far a learner has scrolled through a unit and
how many of its activities are done.  With intelligent progress on, the
two are blended:

    combined = scroll * 0.30 + activities * 0.70      (clamped to 0..100)

otherwise combined = scroll.  Crossing 25/50/75/100 records a
breakpoint row; reaching 100 unlocks the unit's final quiz.

ONE ROW PER CALL
-----------------
A single update can jump several thresholds (0 -> 80 crosses 25, 50
and 75).  Only the highest one is stored.  Thresholds at or below the
highest breakpoint already recorded are never backfilled, so the rows
for a unit only ever grow upward and a report of lower progress adds
nothing.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any

from lms_progress.core.clock import Clock, epoch_now
from lms_progress.core.metrics import BREAKPOINTS_RECORDED
from lms_progress.models.course import Course, CourseUnit
from lms_progress.models.enrollment import Enrollment
from lms_progress.models.progress import BREAKPOINTS, UnitProgressBreakpoint
from lms_progress.repos.bundle import Repositories
from lms_progress.services.errors import NotFoundError

logger = logging.getLogger(__name__)

SCROLL_WEIGHT = 0.30
ACTIVITIES_WEIGHT = 0.70


def combined_progress(scroll: float, activities: float, intelligent_enabled: bool) -> float:
    value = (
        scroll * SCROLL_WEIGHT + activities * ACTIVITIES_WEIGHT
        if intelligent_enabled
        else scroll
    )
    return round(min(max(value, 0.0), 100.0), 2)


@dataclass(frozen=True, slots=True)
class UnitProgressSummary:
    enrollment_id: int
    unit_id: int
    highest_breakpoint_reached: int
    current_scroll_progress: float
    current_activities_progress: float
    current_combined_progress: float
    intelligent_progress_enabled: bool
    can_access_final_quiz: bool
    breakpoints_reached: list[int]
    last_update: int | None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class UnitProgressUpdate:
    breakpoint: UnitProgressBreakpoint | None
    summary: UnitProgressSummary
    can_access_final_quiz: bool


@dataclass(frozen=True, slots=True)
class CourseUnitsSummary:
    enrollment_id: int
    course_id: int
    total_units: int
    completed_units: int
    overall_progress: float
    units: list[dict[str, Any]]

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class UnitProgressService:
    def __init__(self, repos: Repositories, *, clock: Clock = epoch_now) -> None:
        self._repos = repos
        self._now = clock

    def record_breakpoint(
        self,
        enrollment_id: int,
        unit_id: int,
        scroll_progress: float,
        activities_progress: float,
        intelligent_enabled: bool,
        metadata: dict[str, Any] | None = None,
    ) -> UnitProgressBreakpoint | None:
        combined = combined_progress(
            scroll_progress, activities_progress, intelligent_enabled
        )
        recorded = {
            b.breakpoint_percentage
            for b in self._repos.breakpoints.list_for_unit(enrollment_id, unit_id)
        }
        highest = max(recorded, default=0)
        fresh = [t for t in BREAKPOINTS if t <= combined and t > highest and t not in recorded]
        if not fresh:
            return None

        reached = max(fresh)
        row = self._repos.breakpoints.add(
            UnitProgressBreakpoint.new(
                enrollment_id=enrollment_id,
                unit_id=unit_id,
                breakpoint_percentage=reached,
                scroll_progress=scroll_progress,
                activities_progress=activities_progress,
                combined_progress=combined,
                intelligent_progress_enabled=intelligent_enabled,
                reached_at=self._now(),
                metadata=metadata,
            )
        )
        BREAKPOINTS_RECORDED.labels(breakpoint=str(reached)).inc()
        logger.info(
            "Breakpoint %d%% reached in unit %d (combined %.2f)",
            reached,
            unit_id,
            combined,
            extra={"enrollment_id": enrollment_id},
        )
        return row

    def update_unit_progress(
        self,
        enrollment_id: int,
        unit_id: int,
        scroll_progress: float,
        activities_progress: float,
        *,
        completed_components: int = 0,
        total_components: int = 0,
    ) -> UnitProgressUpdate:
        enrollment, course, unit = self._resolve(enrollment_id, unit_id)
        metadata = {
            "completed_components": completed_components,
            "total_components": total_components,
            "unit_title": unit.title,
            "timestamp": self._now(),
        }
        with self._repos.atomic():
            row = self.record_breakpoint(
                enrollment.id,
                unit.id,
                scroll_progress,
                activities_progress,
                course.intelligent_progress_enabled,
                metadata,
            )
            summary = self._summary(enrollment, course, unit)
        return UnitProgressUpdate(
            breakpoint=row,
            summary=summary,
            can_access_final_quiz=summary.can_access_final_quiz,
        )

    def can_access_final_quiz(self, enrollment_id: int, unit_id: int) -> bool:
        """Gate for a unit's final quiz.  Any failure denies access."""
        try:
            enrollment = self._repos.enrollments.get(enrollment_id)
            if enrollment is None:
                return False
            course = self._repos.catalog.get_course(enrollment.course_id)
            if course is None:
                return False
            if not course.intelligent_progress_enabled:
                return True
            return self._repos.breakpoints.exists(enrollment_id, unit_id, 100)
        except Exception:
            logger.exception(
                "Final quiz access check failed for unit %d, denying",
                unit_id,
                extra={"enrollment_id": enrollment_id},
            )
            return False

    def unit_summary(self, enrollment_id: int, unit_id: int) -> UnitProgressSummary:
        enrollment, course, unit = self._resolve(enrollment_id, unit_id)
        return self._summary(enrollment, course, unit)

    def breakpoints(self, enrollment_id: int, unit_id: int) -> list[UnitProgressBreakpoint]:
        self._resolve(enrollment_id, unit_id)
        return self._repos.breakpoints.list_for_unit(enrollment_id, unit_id)

    def course_summary(self, enrollment_id: int) -> CourseUnitsSummary:
        enrollment = self._enrollment(enrollment_id)
        course = self._course(enrollment.course_id)
        units = []
        completed = 0
        for unit in self._repos.catalog.units_for_course(course.id):
            summary = self._summary(enrollment, course, unit)
            done = summary.highest_breakpoint_reached >= 100
            completed += int(done)
            units.append(
                {
                    "unit_id": unit.id,
                    "unit_title": unit.title,
                    "highest_breakpoint_reached": summary.highest_breakpoint_reached,
                    "current_combined_progress": summary.current_combined_progress,
                    "is_completed": done,
                }
            )
        total = len(units)
        return CourseUnitsSummary(
            enrollment_id=enrollment.id,
            course_id=course.id,
            total_units=total,
            completed_units=completed,
            overall_progress=round(completed / total * 100, 2) if total else 0.0,
            units=units,
        )

    def reset_unit_progress(self, enrollment_id: int, unit_id: int) -> int:
        self._resolve(enrollment_id, unit_id)
        deleted = self._repos.breakpoints.delete_for_unit(enrollment_id, unit_id)
        logger.info(
            "Reset unit %d progress, %d breakpoints removed",
            unit_id,
            deleted,
            extra={"enrollment_id": enrollment_id},
        )
        return deleted

    # ---- helpers ----

    def _summary(
        self, enrollment: Enrollment, course: Course, unit: CourseUnit
    ) -> UnitProgressSummary:
        rows = self._repos.breakpoints.list_for_unit(enrollment.id, unit.id)
        latest = max(rows, key=lambda b: (b.reached_at, b.id), default=None)
        reached = [b.breakpoint_percentage for b in rows]
        highest = max(reached, default=0)
        intelligent = course.intelligent_progress_enabled
        return UnitProgressSummary(
            enrollment_id=enrollment.id,
            unit_id=unit.id,
            highest_breakpoint_reached=highest,
            current_scroll_progress=latest.scroll_progress if latest else 0.0,
            current_activities_progress=latest.activities_progress if latest else 0.0,
            current_combined_progress=latest.combined_progress if latest else 0.0,
            intelligent_progress_enabled=intelligent,
            can_access_final_quiz=(not intelligent) or highest >= 100,
            breakpoints_reached=reached,
            last_update=latest.reached_at if latest else None,
        )

    def _resolve(
        self, enrollment_id: int, unit_id: int
    ) -> tuple[Enrollment, Course, CourseUnit]:
        enrollment = self._enrollment(enrollment_id)
        unit = self._repos.catalog.get_unit(unit_id)
        if unit is None or unit.course_id != enrollment.course_id:
            raise NotFoundError("unit", unit_id)
        return enrollment, self._course(enrollment.course_id), unit

    def _enrollment(self, enrollment_id: int) -> Enrollment:
        enrollment = self._repos.enrollments.get(enrollment_id)
        if enrollment is None:
            raise NotFoundError("enrollment", enrollment_id)
        return enrollment

    def _course(self, course_id: int) -> Course:
        course = self._repos.catalog.get_course(course_id)
        if course is None:
            raise NotFoundError("course", course_id)
        return course
