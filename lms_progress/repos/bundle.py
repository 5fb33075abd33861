"""One object carrying every repository a service needs.

Services take a `Repositories` instead of eight constructor arguments.
Two builders exist:

  in_memory_repositories() -> dict-backed repos, used in dev and tests
  sql_repositories(session) -> SQLAlchemy repos bound to one session

`commit()` makes the work so far durable.  The certificate issuer uses
it so an issued certificate survives a failed document render.  With
in-memory repos every write is already "committed", so it does nothing.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from sqlalchemy.orm import Session

from lms_progress.repos.breakpoint_repo import BreakpointRepo, InMemoryBreakpointRepo
from lms_progress.repos.catalog_repo import CatalogRepo, InMemoryCatalogRepo
from lms_progress.repos.certificate_repo import (
    CertificateRepo,
    InMemoryCertificateRepo,
)
from lms_progress.repos.enrollment_repo import EnrollmentRepo, InMemoryEnrollmentRepo
from lms_progress.repos.progress_repo import (
    InMemoryProgressRecordRepo,
    ProgressRecordRepo,
)
from lms_progress.repos.quiz_attempt_repo import (
    InMemoryQuizAttemptRepo,
    QuizAttemptRepo,
)
from lms_progress.repos.settings_repo import InMemorySettingsRepo, SettingsRepo
from lms_progress.repos.sql_breakpoint_repo import SqlBreakpointRepo
from lms_progress.repos.sql_catalog_repo import SqlCatalogRepo
from lms_progress.repos.sql_certificate_repo import SqlCertificateRepo
from lms_progress.repos.sql_enrollment_repo import SqlEnrollmentRepo
from lms_progress.repos.sql_progress_repo import SqlProgressRecordRepo
from lms_progress.repos.sql_quiz_attempt_repo import SqlQuizAttemptRepo
from lms_progress.repos.sql_settings_repo import SqlSettingsRepo
from lms_progress.repos.sql_submission_repo import SqlActivitySubmissionRepo
from lms_progress.repos.submission_repo import (
    ActivitySubmissionRepo,
    InMemoryActivitySubmissionRepo,
)


def _noop() -> None:
    return None


@dataclass
class Repositories:
    catalog: CatalogRepo
    enrollments: EnrollmentRepo
    progress: ProgressRecordRepo
    quiz_attempts: QuizAttemptRepo
    submissions: ActivitySubmissionRepo
    certificates: CertificateRepo
    breakpoints: BreakpointRepo
    settings: SettingsRepo
    commit: Callable[[], None] = _noop
    rollback: Callable[[], None] = _noop

    @contextmanager
    def atomic(self) -> Iterator[None]:
        """Group writes: if the block raises, none of them stay pending."""
        try:
            yield
        except Exception:
            self.rollback()
            raise


def in_memory_repositories() -> Repositories:
    return Repositories(
        catalog=InMemoryCatalogRepo(),
        enrollments=InMemoryEnrollmentRepo(),
        progress=InMemoryProgressRecordRepo(),
        quiz_attempts=InMemoryQuizAttemptRepo(),
        submissions=InMemoryActivitySubmissionRepo(),
        certificates=InMemoryCertificateRepo(),
        breakpoints=InMemoryBreakpointRepo(),
        settings=InMemorySettingsRepo(),
    )


def sql_repositories(session: Session) -> Repositories:
    return Repositories(
        catalog=SqlCatalogRepo(session),
        enrollments=SqlEnrollmentRepo(session),
        progress=SqlProgressRecordRepo(session),
        quiz_attempts=SqlQuizAttemptRepo(session),
        submissions=SqlActivitySubmissionRepo(session),
        certificates=SqlCertificateRepo(session),
        breakpoints=SqlBreakpointRepo(session),
        settings=SqlSettingsRepo(session),
        commit=session.commit,
        rollback=session.rollback,
    )
