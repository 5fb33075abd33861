from __future__ import annotations

import logging
from dataclasses import dataclass, replace

from lms_progress.core.clock import Clock, epoch_now
from lms_progress.models.assessment import ActivitySubmission, SubmissionStatus
from lms_progress.models.course import CourseActivity
from lms_progress.models.progress import TrackableType
from lms_progress.repos.bundle import Repositories
from lms_progress.services.enrollments import EnrollmentService, ProgressUpdate
from lms_progress.services.errors import NotFoundError, RuleViolationError
from lms_progress.services.progress_tracker import ProgressTracker

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class GradedSubmission:
    submission: ActivitySubmission
    progress: ProgressUpdate


class ActivityService:
    """Activity submissions: submitted by the learner, graded by a teacher.

    Only grading moves progress; a graded score is the one thing the
    activities average reads.
    """

    def __init__(
        self,
        repos: Repositories,
        tracker: ProgressTracker,
        enrollments: EnrollmentService,
        *,
        clock: Clock = epoch_now,
    ) -> None:
        self._repos = repos
        self._tracker = tracker
        self._enrollments = enrollments
        self._now = clock

    def submit(
        self, enrollment_id: int, activity_id: int, content: str | None = None
    ) -> ActivitySubmission:
        enrollment = self._enrollments.get_active(enrollment_id)
        activity = self._activity(activity_id)
        if activity.course_id != enrollment.course_id:
            raise NotFoundError("activity", activity_id)

        existing = self._repos.submissions.find(activity.id, enrollment.student_id)
        if existing is not None and existing.status is SubmissionStatus.GRADED:
            raise RuleViolationError("activity has already been graded")

        now = self._now()
        if existing is None:
            submission = self._repos.submissions.add(
                replace(
                    ActivitySubmission.new(
                        activity_id=activity.id,
                        student_id=enrollment.student_id,
                        enrollment_id=enrollment.id,
                    ),
                    status=SubmissionStatus.SUBMITTED,
                    content=content,
                    attempts=1,
                    submitted_at=now,
                )
            )
        else:
            submission = self._repos.submissions.update(
                replace(
                    existing,
                    status=SubmissionStatus.SUBMITTED,
                    content=content,
                    attempts=existing.attempts + 1,
                    submitted_at=now,
                )
            )

        record = self._tracker.track_progress(
            enrollment.id, TrackableType.ACTIVITY, activity.id
        )
        self._tracker.mark_started(record)
        return submission

    def grade(
        self,
        submission_id: int,
        score: float,
        *,
        grader_id: int | None = None,
        feedback: str | None = None,
    ) -> GradedSubmission:
        submission = self._submission(submission_id)
        self._enrollments.get_open(submission.enrollment_id, for_update=True)
        activity = self._activity(submission.activity_id)
        if not 0 <= score <= activity.max_score:
            raise RuleViolationError(
                f"score must be between 0 and {activity.max_score:g}"
            )

        graded = self._repos.submissions.update(
            replace(
                submission,
                status=SubmissionStatus.GRADED,
                score=score,
                feedback=feedback,
                graded_by=grader_id,
                graded_at=self._now(),
            )
        )
        record = self._tracker.track_progress(
            submission.enrollment_id, TrackableType.ACTIVITY, activity.id
        )
        self._tracker.mark_completed(record, score=score)
        logger.info(
            "Graded activity %d: %g/%g",
            activity.id,
            score,
            activity.max_score,
            extra={"enrollment_id": submission.enrollment_id},
        )
        progress = self._enrollments.refresh_progress(submission.enrollment_id)
        return GradedSubmission(submission=graded, progress=progress)

    def return_for_revision(
        self, submission_id: int, feedback: str | None = None
    ) -> ActivitySubmission:
        submission = self._submission(submission_id)
        return self._repos.submissions.update(
            replace(
                submission,
                status=SubmissionStatus.RETURNED,
                score=None,
                graded_at=None,
                feedback=feedback,
            )
        )

    def _submission(self, submission_id: int) -> ActivitySubmission:
        submission = self._repos.submissions.get(submission_id)
        if submission is None:
            raise NotFoundError("submission", submission_id)
        return submission

    def _activity(self, activity_id: int) -> CourseActivity:
        activity = self._repos.catalog.get_activity(activity_id)
        if activity is None:
            raise NotFoundError("activity", activity_id)
        return activity
