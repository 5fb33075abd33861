"""Wires the service graph for one unit of work.

    ProgressTracker --+--> GradingAggregator --+
                      |                        +--> CertificateService
    CourseConfig -----+------------------------+          |
                                                          v
                      EnrollmentService <------------- (auto-issue)
                         ^          ^
                QuizService    ActivityService

UnitProgressService stands alone: breakpoints never feed course
progress or certificates.
"""

from __future__ import annotations

from dataclasses import dataclass

from lms_progress.core.clock import Clock, epoch_now
from lms_progress.core.config import Settings
from lms_progress.repos.bundle import Repositories
from lms_progress.services.activities import ActivityService
from lms_progress.services.cache import CacheService
from lms_progress.services.certificates import CertificateService
from lms_progress.services.course_config import CourseConfig
from lms_progress.services.enrollments import EnrollmentService
from lms_progress.services.grading import GradingAggregator
from lms_progress.services.progress_tracker import ProgressTracker
from lms_progress.services.quizzes import QuizService
from lms_progress.services.renderer import CertificateRenderer
from lms_progress.services.unit_progress import UnitProgressService


@dataclass(frozen=True, slots=True)
class Services:
    repos: Repositories
    config: CourseConfig
    tracker: ProgressTracker
    grading: GradingAggregator
    certificates: CertificateService
    enrollments: EnrollmentService
    quizzes: QuizService
    activities: ActivityService
    units: UnitProgressService


def build_services(
    repos: Repositories,
    settings: Settings,
    renderer: CertificateRenderer,
    cache: CacheService,
    *,
    clock: Clock = epoch_now,
) -> Services:
    config = CourseConfig(repos.settings, settings)
    tracker = ProgressTracker(repos, clock=clock)
    grading = GradingAggregator(repos, config)
    certificates = CertificateService(
        repos, config, tracker, grading, renderer, clock=clock
    )
    enrollments = EnrollmentService(repos, tracker, certificates, cache, clock=clock)
    return Services(
        repos=repos,
        config=config,
        tracker=tracker,
        grading=grading,
        certificates=certificates,
        enrollments=enrollments,
        quizzes=QuizService(repos, tracker, enrollments, clock=clock),
        activities=ActivityService(repos, tracker, enrollments, clock=clock),
        units=UnitProgressService(repos, clock=clock),
    )
