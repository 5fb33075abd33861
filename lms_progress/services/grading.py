"""Weighted grade aggregation.

    interactive_average = mean over quizzes of the best completed attempt %
    activities_average  = Σ(pct * weight) / Σ(weight) over graded,
                          mandatory activity submissions
    final_score         = interactive_average * iw/100
                        + activities_average  * aw/100

iw/aw come from CourseConfig.grade_weights() and are used as given.
Weights of 60/60 therefore yield a final score above either average;
that is a configuration choice, not something this module corrects.
Every caller (certificate eligibility, issued certificate fields, the
grade report endpoint) goes through this one aggregator.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass

from lms_progress.models.enrollment import Enrollment
from lms_progress.repos.bundle import Repositories
from lms_progress.services.course_config import CourseConfig, GradeWeights
from lms_progress.services.progress_tracker import best_percentages


@dataclass(frozen=True, slots=True)
class GradeReport:
    interactive_average: float
    activities_average: float
    final_score: float
    interactive_weight: float
    activities_weight: float

    def to_dict(self) -> dict[str, float]:
        return asdict(self)


def weighted_final_score(
    interactive_average: float, activities_average: float, weights: GradeWeights
) -> float:
    return round(
        interactive_average * (weights.interactive / 100)
        + activities_average * (weights.activities / 100),
        2,
    )


class GradingAggregator:
    def __init__(self, repos: Repositories, config: CourseConfig) -> None:
        self._repos = repos
        self._config = config

    def interactive_average(self, enrollment: Enrollment) -> float:
        best = best_percentages(
            self._repos.quiz_attempts.completed_for_enrollment(enrollment.id)
        )
        if not best:
            return 0.0
        return round(sum(best.values()) / len(best), 2)

    def activities_average(self, enrollment: Enrollment) -> float:
        weighted_sum = 0.0
        weight_total = 0.0
        for submission in self._repos.submissions.list_for_enrollment(enrollment.id):
            if not submission.is_graded:
                continue
            activity = self._repos.catalog.get_activity(submission.activity_id)
            if activity is None or not activity.is_mandatory or activity.max_score <= 0:
                continue
            pct = submission.score / activity.max_score * 100  # type: ignore[operator]
            weighted_sum += pct * activity.weight
            weight_total += activity.weight
        if weight_total <= 0:
            return 0.0
        return round(weighted_sum / weight_total, 2)

    def final_score(self, enrollment: Enrollment) -> float:
        return self.report(enrollment).final_score

    def report(self, enrollment: Enrollment) -> GradeReport:
        weights = self._config.grade_weights()
        ia = self.interactive_average(enrollment)
        aa = self.activities_average(enrollment)
        return GradeReport(
            interactive_average=ia,
            activities_average=aa,
            final_score=weighted_final_score(ia, aa, weights),
            interactive_weight=weights.interactive,
            activities_weight=weights.activities,
        )
