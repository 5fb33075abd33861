from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any


class AttemptStatus(enum.StrEnum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


class SubmissionStatus(enum.StrEnum):
    PENDING = "pending"
    SUBMITTED = "submitted"
    GRADED = "graded"
    RETURNED = "returned"


@dataclass(frozen=True, slots=True)
class QuizAttempt:
    id: int
    quiz_id: int
    student_id: int
    enrollment_id: int
    attempt_number: int
    started_at: int
    status: AttemptStatus = AttemptStatus.IN_PROGRESS
    completed_at: int | None = None
    score: float | None = None
    total_points: float | None = None
    percentage: float | None = None
    time_spent: int = 0
    answers: dict[str, Any] = field(default_factory=dict)
    question_scores: dict[str, float | None] = field(default_factory=dict)

    @staticmethod
    def new(
        *,
        quiz_id: int,
        student_id: int,
        enrollment_id: int,
        attempt_number: int,
        started_at: int,
    ) -> QuizAttempt:
        return QuizAttempt(
            id=0,
            quiz_id=quiz_id,
            student_id=student_id,
            enrollment_id=enrollment_id,
            attempt_number=attempt_number,
            started_at=started_at,
        )

    def is_passed(self, passing_score: float) -> bool:
        if self.status is not AttemptStatus.COMPLETED or self.percentage is None:
            return False
        return self.percentage >= passing_score

    @property
    def formatted_time_spent(self) -> str:
        minutes, secs = divmod(max(self.time_spent, 0), 60)
        return f"{minutes}:{secs:02d}"


@dataclass(frozen=True, slots=True)
class ActivitySubmission:
    id: int
    activity_id: int
    student_id: int
    enrollment_id: int
    status: SubmissionStatus = SubmissionStatus.PENDING
    content: str | None = None
    score: float | None = None  # set only while status is graded
    feedback: str | None = None
    attempts: int = 0
    submitted_at: int | None = None
    graded_at: int | None = None
    graded_by: int | None = None

    @staticmethod
    def new(*, activity_id: int, student_id: int, enrollment_id: int) -> ActivitySubmission:
        return ActivitySubmission(
            id=0,
            activity_id=activity_id,
            student_id=student_id,
            enrollment_id=enrollment_id,
        )

    @property
    def is_graded(self) -> bool:
        return self.status is SubmissionStatus.GRADED and self.score is not None
