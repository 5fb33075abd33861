from __future__ import annotations

import enum
from dataclasses import dataclass


class EnrollmentStatus(enum.StrEnum):
    ACTIVE = "active"
    COMPLETED = "completed"
    DROPPED = "dropped"


@dataclass(frozen=True, slots=True)
class Enrollment:
    """A learner's registration in a course.

    progress_percentage is the last computed value, cached on the row;
    the authoritative number is always recomputed from progress records.
    """

    id: int
    course_id: int
    student_id: int
    enrolled_at: int
    status: EnrollmentStatus = EnrollmentStatus.ACTIVE
    progress_percentage: float = 0.0
    completed_at: int | None = None
    dropped_at: int | None = None

    @staticmethod
    def new(*, course_id: int, student_id: int, enrolled_at: int) -> Enrollment:
        return Enrollment(
            id=0, course_id=course_id, student_id=student_id, enrolled_at=enrolled_at
        )

    @property
    def is_active(self) -> bool:
        return self.status is EnrollmentStatus.ACTIVE
