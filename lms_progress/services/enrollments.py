"""Enrollment lifecycle and the progress-update pipeline.

STATUS TRANSITIONS
-------------------
  (none) --enroll--> active --progress reaches 100--> completed
                       |  ^
                  drop |  | enroll again / set_status(active)
                       v  |
                     dropped

`completed` is only ever entered through refresh_progress(), when the
recomputed percentage reaches 100.  dropped_at is set while dropped and
cleared on reactivation.  Dropping or reactivating invalidates the
enrollment's valid certificates.

PROGRESS PIPELINE
------------------
Every graded change (component completed, quiz completed, activity
graded) ends in refresh_progress():

  1. recompute the percentage from records
  2. cache it on the enrollment row (progress_percentage)
  3. complete the enrollment at >= 100
  4. drop the cached summary
  5. try virtual and complete certificate issuance (auto-generation)
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, replace

from lms_progress.core.clock import Clock, epoch_now
from lms_progress.core.metrics import PROGRESS_RECALCULATIONS
from lms_progress.models.certificate import Certificate, CertificateType
from lms_progress.models.enrollment import Enrollment, EnrollmentStatus
from lms_progress.models.progress import TrackableType
from lms_progress.repos.bundle import Repositories
from lms_progress.services.cache import (
    PROGRESS_CACHE_TTL,
    CacheService,
    progress_key,
)
from lms_progress.services.certificates import CertificateService
from lms_progress.services.errors import NotFoundError, RuleViolationError
from lms_progress.services.progress_tracker import ProgressSummary, ProgressTracker

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ProgressUpdate:
    enrollment: Enrollment
    summary: ProgressSummary
    certificates: dict[CertificateType, Certificate | None]


class EnrollmentService:
    def __init__(
        self,
        repos: Repositories,
        tracker: ProgressTracker,
        certificates: CertificateService,
        cache: CacheService,
        *,
        clock: Clock = epoch_now,
    ) -> None:
        self._repos = repos
        self._tracker = tracker
        self._certificates = certificates
        self._cache = cache
        self._now = clock

    # ---- lifecycle ----

    def enroll(self, course_id: int, student_id: int) -> Enrollment:
        course = self._repos.catalog.get_course(course_id)
        if course is None:
            raise NotFoundError("course", course_id)
        if not course.is_published:
            raise RuleViolationError("course is not available for enrollment")

        existing = self._repos.enrollments.find(course_id, student_id)
        if existing is not None:
            if existing.status is not EnrollmentStatus.DROPPED:
                raise RuleViolationError("student is already enrolled in this course")
            reactivated = self._repos.enrollments.update(
                replace(
                    existing,
                    status=EnrollmentStatus.ACTIVE,
                    enrolled_at=self._now(),
                    dropped_at=None,
                    completed_at=None,
                )
            )
            logger.info(
                "Reactivated enrollment of student %d",
                student_id,
                extra={"enrollment_id": existing.id, "course_id": course_id},
            )
            return reactivated

        enrollment = self._repos.enrollments.add(
            Enrollment.new(course_id=course_id, student_id=student_id, enrolled_at=self._now())
        )
        logger.info(
            "Enrolled student %d",
            student_id,
            extra={"enrollment_id": enrollment.id, "course_id": course_id},
        )
        return enrollment

    def drop(self, enrollment_id: int) -> Enrollment:
        return self.set_status(enrollment_id, EnrollmentStatus.DROPPED)

    def set_status(self, enrollment_id: int, status: EnrollmentStatus) -> Enrollment:
        enrollment = self.get(enrollment_id, for_update=True)
        if enrollment.status is status:
            return enrollment

        match status:
            case EnrollmentStatus.COMPLETED:
                raise RuleViolationError(
                    "an enrollment is completed by reaching 100% progress"
                )
            case EnrollmentStatus.DROPPED:
                updated = replace(enrollment, status=status, dropped_at=self._now())
            case EnrollmentStatus.ACTIVE:
                updated = replace(
                    enrollment, status=status, completed_at=None, dropped_at=None
                )

        updated = self._repos.enrollments.update(updated)
        self._certificates.invalidate_for_enrollment(
            enrollment.id, f"enrollment status changed to {status.value}"
        )
        self._cache.delete(progress_key(enrollment.id))
        logger.info(
            "Enrollment status %s -> %s",
            enrollment.status.value,
            status.value,
            extra={"enrollment_id": enrollment.id, "course_id": enrollment.course_id},
        )
        return updated

    def get(self, enrollment_id: int, *, for_update: bool = False) -> Enrollment:
        repo = self._repos.enrollments
        enrollment = (
            repo.get_for_update(enrollment_id) if for_update else repo.get(enrollment_id)
        )
        if enrollment is None:
            raise NotFoundError("enrollment", enrollment_id)
        return enrollment

    def get_active(self, enrollment_id: int) -> Enrollment:
        enrollment = self.get(enrollment_id)
        if not enrollment.is_active:
            raise RuleViolationError(f"enrollment is {enrollment.status.value}")
        return enrollment

    def get_open(self, enrollment_id: int, *, for_update: bool = False) -> Enrollment:
        """Active or completed; a dropped enrollment takes no new grades."""
        enrollment = self.get(enrollment_id, for_update=for_update)
        if enrollment.status is EnrollmentStatus.DROPPED:
            raise RuleViolationError("enrollment is dropped")
        return enrollment

    # ---- progress ----

    def complete_component(self, enrollment_id: int, component_id: int) -> ProgressUpdate:
        enrollment = self.get_active(enrollment_id)
        component = self._repos.catalog.get_component(component_id)
        module = (
            self._repos.catalog.get_module(component.module_id)
            if component is not None
            else None
        )
        if component is None or module is None or module.course_id != enrollment.course_id:
            raise NotFoundError("component", component_id)

        record = self._tracker.track_progress(
            enrollment.id,
            TrackableType.COMPONENT,
            component.id,
            module_id=module.id,
            component_id=component.id,
        )
        record = self._tracker.mark_started(record)
        self._tracker.mark_completed(record)
        return self.refresh_progress(enrollment.id)

    def start_component(self, enrollment_id: int, component_id: int) -> None:
        enrollment = self.get_active(enrollment_id)
        component = self._repos.catalog.get_component(component_id)
        if component is None:
            raise NotFoundError("component", component_id)
        module = self._repos.catalog.get_module(component.module_id)
        if module is None or module.course_id != enrollment.course_id:
            raise NotFoundError("component", component_id)
        record = self._tracker.track_progress(
            enrollment.id,
            TrackableType.COMPONENT,
            component.id,
            module_id=module.id,
            component_id=component.id,
        )
        self._tracker.mark_started(record)

    def refresh_progress(self, enrollment_id: int) -> ProgressUpdate:
        enrollment = self.get(enrollment_id, for_update=True)
        summary = self._tracker.calculate_progress(enrollment)
        PROGRESS_RECALCULATIONS.inc()

        updated = replace(enrollment, progress_percentage=summary.overall)
        if summary.overall >= 100 and enrollment.is_active:
            updated = replace(
                updated,
                status=EnrollmentStatus.COMPLETED,
                completed_at=self._now(),
                progress_percentage=100.0,
            )
            logger.info(
                "Enrollment completed",
                extra={"enrollment_id": enrollment.id, "course_id": enrollment.course_id},
            )
        updated = self._repos.enrollments.update(updated)
        self._cache.delete(progress_key(enrollment.id))

        issued = (
            {}
            if updated.status is EnrollmentStatus.DROPPED
            else self._certificates.check_and_generate(enrollment.id)
        )
        return ProgressUpdate(enrollment=updated, summary=summary, certificates=issued)

    def progress_summary(self, enrollment_id: int) -> ProgressSummary:
        key = progress_key(enrollment_id)
        cached = self._cache.get(key)
        if cached is not None:
            return ProgressSummary(**json.loads(cached))

        summary = self._tracker.calculate_progress(self.get(enrollment_id))
        self._cache.set(key, json.dumps(summary.to_dict()), PROGRESS_CACHE_TTL)
        return summary
