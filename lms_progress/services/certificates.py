"""Certificate eligibility and issuance.

LIFECYCLE PER (ENROLLMENT, TYPE)
---------------------------------

  NotEligible --thresholds met--> Eligible --generate()--> Issued
                                                             |
                                                   invalidate(reason)
                                                             v
                                                        Invalidated

  virtual:  overall_progress >= virtual threshold        (default 80)
  complete: virtual eligible AND final_score >= complete
            threshold                                     (default 70)

overall_progress is the freshly calculated value, except when that
value is 0: then the enrollment's cached progress_percentage is used.
Legacy enrollments whose progress was recorded before the current
course structure still qualify this way.

IDEMPOTENT GENERATION
----------------------
generate() first looks for a VALID certificate of the same type and
returns it unchanged.  "At most one valid certificate per (enrollment,
type)" is therefore enforced here, not by a unique constraint: after an
invalidation the old row stays for audit, and the next generate() call
evaluates from scratch and may issue a new one.

PARTIAL FAILURE
----------------
The row is committed BEFORE the document is rendered.  If the renderer
fails, the error is logged and re-raised, but the certificate exists;
ensure_document() (called on download) renders the missing file later
without creating another row.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, replace

from lms_progress.core.clock import Clock, epoch_now, format_epoch
from lms_progress.core.metrics import (
    CERTIFICATE_RENDER_FAILURES,
    CERTIFICATES_INVALIDATED,
    CERTIFICATES_ISSUED,
)
from lms_progress.models.certificate import (
    Certificate,
    CertificateType,
    certificate_number,
)
from lms_progress.models.enrollment import Enrollment, EnrollmentStatus
from lms_progress.repos.bundle import Repositories
from lms_progress.services.course_config import CourseConfig
from lms_progress.services.errors import (
    CertificateRenderError,
    NotFoundError,
    RuleViolationError,
)
from lms_progress.services.grading import GradingAggregator
from lms_progress.services.progress_tracker import ProgressTracker
from lms_progress.services.renderer import CertificateRenderer

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class EligibilityResult:
    type: CertificateType
    eligible: bool
    reason: str
    overall_progress: float
    final_score: float
    interactive_average: float
    activities_average: float
    virtual_threshold: float
    complete_threshold: float
    modules_completed: int
    total_modules: int

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class CourseCertificateStats:
    course_id: int
    total_enrollments: int
    virtual_certificates: int
    complete_certificates: int
    virtual_rate: float
    complete_rate: float

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


class CertificateService:
    def __init__(
        self,
        repos: Repositories,
        config: CourseConfig,
        tracker: ProgressTracker,
        grading: GradingAggregator,
        renderer: CertificateRenderer,
        *,
        clock: Clock = epoch_now,
    ) -> None:
        self._repos = repos
        self._config = config
        self._tracker = tracker
        self._grading = grading
        self._renderer = renderer
        self._now = clock

    # ---- eligibility ----

    def evaluate(self, enrollment: Enrollment, type: CertificateType) -> EligibilityResult:
        summary = self._tracker.calculate_progress(enrollment)
        overall = (
            summary.overall if summary.overall > 0 else enrollment.progress_percentage
        )
        grades = self._grading.report(enrollment)
        virtual_threshold = self._config.virtual_threshold()
        complete_threshold = self._config.complete_threshold()

        virtual_ok = overall >= virtual_threshold
        match type:
            case CertificateType.VIRTUAL:
                eligible = virtual_ok
                reason = (
                    "progress threshold met"
                    if eligible
                    else f"progress {overall:.2f}% is below {virtual_threshold:g}%"
                )
            case CertificateType.COMPLETE:
                score_ok = grades.final_score >= complete_threshold
                eligible = virtual_ok and score_ok
                if not virtual_ok:
                    reason = f"progress {overall:.2f}% is below {virtual_threshold:g}%"
                elif not score_ok:
                    reason = (
                        f"final score {grades.final_score:.2f} is below "
                        f"{complete_threshold:g}"
                    )
                else:
                    reason = "progress and score thresholds met"

        if enrollment.status is EnrollmentStatus.DROPPED:
            eligible, reason = False, "enrollment is dropped"

        return EligibilityResult(
            type=type,
            eligible=eligible,
            reason=reason,
            overall_progress=overall,
            final_score=grades.final_score,
            interactive_average=grades.interactive_average,
            activities_average=grades.activities_average,
            virtual_threshold=virtual_threshold,
            complete_threshold=complete_threshold,
            modules_completed=summary.modules_completed,
            total_modules=summary.total_modules,
        )

    def is_eligible(self, enrollment: Enrollment, type: CertificateType) -> bool:
        return self.evaluate(enrollment, type).eligible

    def eligibility(self, enrollment_id: int, type: CertificateType) -> EligibilityResult:
        return self.evaluate(self._enrollment(enrollment_id), type)

    # ---- issuance ----

    def generate(self, enrollment_id: int, type: CertificateType) -> Certificate | None:
        """Issue (or return the already issued) certificate; None if not eligible."""
        enrollment = self._enrollment(enrollment_id, for_update=True)

        existing = self._repos.certificates.find_valid(enrollment.id, type)
        if existing is not None:
            return existing

        result = self.evaluate(enrollment, type)
        if not result.eligible:
            logger.info(
                "Enrollment %d not eligible for %s certificate: %s",
                enrollment.id,
                type.value,
                result.reason,
                extra={"enrollment_id": enrollment.id, "course_id": enrollment.course_id},
            )
            return None

        course = self._repos.catalog.get_course(enrollment.course_id)
        now = self._now()
        issued_at = self._unused_issue_time(enrollment, type, now)
        certificate = self._repos.certificates.add(
            Certificate.new(
                enrollment_id=enrollment.id,
                student_id=enrollment.student_id,
                course_id=enrollment.course_id,
                type=type,
                issued_at=issued_at,
                final_score=result.final_score,
                course_progress=result.overall_progress,
                interactive_average=result.interactive_average,
                activities_average=result.activities_average,
                metadata={
                    "course_title": course.title if course is not None else "",
                    "completion_date": format_epoch(
                        enrollment.completed_at or now, "%Y-%m-%d"
                    ),
                    "modules_completed": result.modules_completed,
                    "total_modules": result.total_modules,
                },
            )
        )
        self._repos.commit()
        CERTIFICATES_ISSUED.labels(type=type.value).inc()
        logger.info(
            "Issued %s certificate %s",
            type.value,
            certificate.certificate_number,
            extra={
                "enrollment_id": enrollment.id,
                "course_id": enrollment.course_id,
                "certificate_id": certificate.id,
            },
        )
        return self._render(certificate)

    def _unused_issue_time(
        self, enrollment: Enrollment, type: CertificateType, now: int
    ) -> int:
        # Reissue after an invalidation in the same second: take the next free second
        issued_at = now
        while self._repos.certificates.get_by_number(
            certificate_number(
                type,
                course_id=enrollment.course_id,
                student_id=enrollment.student_id,
                issued_at=issued_at,
            )
        ) is not None:
            issued_at += 1
        return issued_at

    def generate_virtual(self, enrollment_id: int) -> Certificate | None:
        return self.generate(enrollment_id, CertificateType.VIRTUAL)

    def generate_complete(self, enrollment_id: int) -> Certificate | None:
        return self.generate(enrollment_id, CertificateType.COMPLETE)

    def check_and_generate(
        self, enrollment_id: int
    ) -> dict[CertificateType, Certificate | None]:
        """Opportunistic issuance after a progress change.

        Render failures are logged and swallowed here: the certificate row
        is already committed, and a progress update must not fail because
        a document could not be written.
        """
        if not self._config.auto_generate_certificates():
            return {}

        issued: dict[CertificateType, Certificate | None] = {}
        for type in (CertificateType.VIRTUAL, CertificateType.COMPLETE):
            try:
                issued[type] = self.generate(enrollment_id, type)
            except CertificateRenderError as exc:
                logger.warning(
                    "Auto-generated certificate %s has no document yet",
                    exc.certificate_number,
                    extra={
                        "enrollment_id": enrollment_id,
                        "certificate_id": exc.certificate_id,
                    },
                )
                issued[type] = self._repos.certificates.get(exc.certificate_id)
        return issued

    def ensure_document(self, certificate_id: int) -> Certificate:
        """Return a certificate whose document exists, rendering it if needed."""
        certificate = self.get(certificate_id)
        if not certificate.is_valid:
            raise RuleViolationError("certificate has been invalidated")
        if certificate.file_path and self._renderer.exists(certificate.file_path):
            return certificate
        logger.info(
            "Re-rendering missing document for %s",
            certificate.certificate_number,
            extra={"certificate_id": certificate.id},
        )
        return self._render(certificate)

    def _render(self, certificate: Certificate) -> Certificate:
        try:
            path = self._renderer.render(certificate)
        except Exception as exc:
            CERTIFICATE_RENDER_FAILURES.inc()
            logger.exception(
                "Rendering certificate %s failed",
                certificate.certificate_number,
                extra={
                    "enrollment_id": certificate.enrollment_id,
                    "certificate_id": certificate.id,
                },
            )
            raise CertificateRenderError(
                certificate.id, certificate.certificate_number
            ) from exc
        return self._repos.certificates.update(replace(certificate, file_path=path))

    # ---- invalidation ----

    def invalidate(self, certificate_id: int, reason: str) -> Certificate:
        certificate = self.get(certificate_id)
        if not certificate.is_valid:
            return certificate
        updated = self._repos.certificates.update(
            replace(certificate, is_valid=False, invalidation_reason=reason)
        )
        CERTIFICATES_INVALIDATED.inc()
        logger.info(
            "Invalidated certificate %s: %s",
            certificate.certificate_number,
            reason,
            extra={
                "enrollment_id": certificate.enrollment_id,
                "certificate_id": certificate.id,
            },
        )
        return updated

    def invalidate_for_enrollment(self, enrollment_id: int, reason: str) -> list[Certificate]:
        return [
            self.invalidate(c.id, reason)
            for c in self._repos.certificates.list_for_enrollment(enrollment_id)
            if c.is_valid
        ]

    # ---- queries ----

    def get(self, certificate_id: int) -> Certificate:
        certificate = self._repos.certificates.get(certificate_id)
        if certificate is None:
            raise NotFoundError("certificate", certificate_id)
        return certificate

    def verify(self, certificate_number: str) -> Certificate:
        certificate = self._repos.certificates.get_by_number(certificate_number)
        if certificate is None:
            raise NotFoundError("certificate", certificate_number)
        return certificate

    def certificates_for_enrollment(self, enrollment_id: int) -> list[Certificate]:
        self._enrollment(enrollment_id)
        return self._repos.certificates.list_for_enrollment(enrollment_id)

    def course_stats(self, course_id: int) -> CourseCertificateStats:
        if self._repos.catalog.get_course(course_id) is None:
            raise NotFoundError("course", course_id)
        total = self._repos.enrollments.count_by_status(
            course_id, EnrollmentStatus.ACTIVE
        )
        virtual = self._repos.certificates.count_valid(course_id, CertificateType.VIRTUAL)
        complete = self._repos.certificates.count_valid(
            course_id, CertificateType.COMPLETE
        )
        return CourseCertificateStats(
            course_id=course_id,
            total_enrollments=total,
            virtual_certificates=virtual,
            complete_certificates=complete,
            virtual_rate=round(virtual / total * 100, 1) if total else 0.0,
            complete_rate=round(complete / total * 100, 1) if total else 0.0,
        )

    def _enrollment(self, enrollment_id: int, *, for_update: bool = False) -> Enrollment:
        repo = self._repos.enrollments
        enrollment = (
            repo.get_for_update(enrollment_id) if for_update else repo.get(enrollment_id)
        )
        if enrollment is None:
            raise NotFoundError("enrollment", enrollment_id)
        return enrollment
