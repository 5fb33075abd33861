"""Progress records and the course-completion percentage.

WHAT COUNTS TOWARD COMPLETION
------------------------------
Only mandatory items:

  - mandatory module components, done when their progress record is
    completed
  - mandatory quizzes, done when at least one attempt is completed
    (passing is not required)

    overall = completed mandatory items / all mandatory items * 100

Activities and optional content never move `overall`.  Quiz and
activity averages are reported next to it for display; the scores that
gate certificates come from GradingAggregator.

A module with no mandatory components adds nothing to either side of
the fraction, and is never counted as a completed module.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, replace

from lms_progress.core.clock import Clock, epoch_now
from lms_progress.models.assessment import QuizAttempt
from lms_progress.models.enrollment import Enrollment
from lms_progress.models.progress import ProgressRecord, TrackableType
from lms_progress.repos.bundle import Repositories

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ProgressSummary:
    overall: float
    modules_completed: int
    total_modules: int
    components_completed: int
    total_components: int
    quiz_average: float | None
    activities_average: float | None

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


def percent(part: float, whole: float) -> float:
    """part/whole*100 rounded to 2 places; 0 for an empty whole."""
    if whole <= 0:
        return 0.0
    return round(part / whole * 100, 2)


def best_percentages(attempts: list[QuizAttempt]) -> dict[int, float]:
    """Highest completed percentage per quiz id."""
    best: dict[int, float] = {}
    for a in attempts:
        if a.percentage is None:
            continue
        best[a.quiz_id] = max(best.get(a.quiz_id, a.percentage), a.percentage)
    return best


class ProgressTracker:
    def __init__(self, repos: Repositories, *, clock: Clock = epoch_now) -> None:
        self._repos = repos
        self._now = clock

    # ---- records ----

    def track_progress(
        self,
        enrollment_id: int,
        type: TrackableType,
        reference_id: int,
        *,
        module_id: int | None = None,
        component_id: int | None = None,
    ) -> ProgressRecord:
        existing = self._repos.progress.find(enrollment_id, type, reference_id)
        if existing is not None:
            return existing
        return self._repos.progress.add(
            ProgressRecord.new(
                enrollment_id=enrollment_id,
                type=type,
                reference_id=reference_id,
                module_id=module_id,
                component_id=component_id,
            )
        )

    def mark_started(self, record: ProgressRecord) -> ProgressRecord:
        if record.started_at is not None:
            return record
        return self._repos.progress.update(replace(record, started_at=self._now()))

    def mark_completed(
        self, record: ProgressRecord, score: float | None = None
    ) -> ProgressRecord:
        now = self._now()
        time_spent = now - record.started_at if record.started_at is not None else 0
        return self._repos.progress.update(
            replace(
                record,
                is_completed=True,
                completed_at=now,
                time_spent=max(time_spent, 0),
                score=score,
            )
        )

    def records_for_enrollment(
        self, enrollment_id: int, type: TrackableType | None = None
    ) -> list[ProgressRecord]:
        return self._repos.progress.list_for_enrollment(enrollment_id, type)

    # ---- percentage ----

    def calculate_progress(self, enrollment: Enrollment) -> ProgressSummary:
        catalog = self._repos.catalog

        completed_components = {
            r.reference_id
            for r in self._repos.progress.list_for_enrollment(
                enrollment.id, TrackableType.COMPONENT
            )
            if r.is_completed
        }
        completed_attempts = self._repos.quiz_attempts.completed_for_enrollment(
            enrollment.id
        )
        attempted_quizzes = {a.quiz_id for a in completed_attempts}
        best = best_percentages(completed_attempts)

        total_units = 0
        completed_units = 0
        modules = catalog.modules_for_course(enrollment.course_id)
        modules_completed = 0
        module_quiz_scores: list[float] = []

        for module in modules:
            mandatory = [
                c.id for c in catalog.components_for_module(module.id) if c.is_mandatory
            ]
            done = sum(1 for cid in mandatory if cid in completed_components)

            quizzes = catalog.quizzes_for_module(module.id)
            mandatory_quizzes = [q.id for q in quizzes if q.is_mandatory]
            quizzes_done = sum(1 for qid in mandatory_quizzes if qid in attempted_quizzes)

            total_units += len(mandatory) + len(mandatory_quizzes)
            completed_units += done + quizzes_done

            if mandatory and done == len(mandatory):
                modules_completed += 1

            module_quiz_scores.extend(best[q.id] for q in quizzes if q.id in best)

        activity_scores: list[float] = []
        for submission in self._repos.submissions.list_for_enrollment(enrollment.id):
            if not submission.is_graded:
                continue
            activity = catalog.get_activity(submission.activity_id)
            if activity is None or activity.max_score <= 0:
                continue
            activity_scores.append(submission.score / activity.max_score * 100)  # type: ignore[operator]

        summary = ProgressSummary(
            overall=percent(completed_units, total_units),
            modules_completed=modules_completed,
            total_modules=len(modules),
            components_completed=completed_units,
            total_components=total_units,
            quiz_average=_mean(module_quiz_scores),
            activities_average=_mean(activity_scores),
        )
        logger.debug(
            "Progress for enrollment %d: %.2f%% (%d/%d)",
            enrollment.id,
            summary.overall,
            completed_units,
            total_units,
            extra={"enrollment_id": enrollment.id, "course_id": enrollment.course_id},
        )
        return summary


def _mean(values: list[float]) -> float | None:
    if not values:
        return None
    return round(sum(values) / len(values), 2)
