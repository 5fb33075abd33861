"""SQLAlchemy implementation of CertificateRepo."""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from lms_progress.db.tables import CertificateRow
from lms_progress.models.certificate import Certificate, CertificateType


class SqlCertificateRepo:
    """Satisfies the CertificateRepo Protocol via a SQLAlchemy session."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, certificate_id: int) -> Certificate | None:
        row = self._session.get(CertificateRow, certificate_id)
        return _row_to_certificate(row) if row is not None else None

    def get_by_number(self, certificate_number: str) -> Certificate | None:
        stmt = select(CertificateRow).where(
            CertificateRow.certificate_number == certificate_number
        )
        row = self._session.scalars(stmt).one_or_none()
        return _row_to_certificate(row) if row is not None else None

    def find_valid(
        self, enrollment_id: int, type: CertificateType
    ) -> Certificate | None:
        stmt = (
            select(CertificateRow)
            .where(
                CertificateRow.enrollment_id == enrollment_id,
                CertificateRow.type == type.value,
                CertificateRow.is_valid.is_(True),
            )
            .order_by(CertificateRow.id)
            .limit(1)
        )
        row = self._session.scalars(stmt).first()
        return _row_to_certificate(row) if row is not None else None

    def list_for_enrollment(self, enrollment_id: int) -> list[Certificate]:
        stmt = (
            select(CertificateRow)
            .where(CertificateRow.enrollment_id == enrollment_id)
            .order_by(CertificateRow.id)
        )
        return [_row_to_certificate(r) for r in self._session.scalars(stmt)]

    def add(self, certificate: Certificate) -> Certificate:
        row = CertificateRow(
            enrollment_id=certificate.enrollment_id,
            student_id=certificate.student_id,
            course_id=certificate.course_id,
            type=certificate.type.value,
            certificate_number=certificate.certificate_number,
            issued_at=certificate.issued_at,
            final_score=certificate.final_score,
            course_progress=certificate.course_progress,
            interactive_average=certificate.interactive_average,
            activities_average=certificate.activities_average,
            is_valid=certificate.is_valid,
            invalidation_reason=certificate.invalidation_reason,
            file_path=certificate.file_path,
            metadata_json=dict(certificate.metadata),
        )
        self._session.add(row)
        self._session.flush()
        return _row_to_certificate(row)

    def update(self, certificate: Certificate) -> Certificate:
        row = self._session.get(CertificateRow, certificate.id)
        if row is None:
            raise KeyError("certificate not found")
        row.is_valid = certificate.is_valid
        row.invalidation_reason = certificate.invalidation_reason
        row.file_path = certificate.file_path
        row.metadata_json = dict(certificate.metadata)
        self._session.flush()
        return _row_to_certificate(row)

    def count_valid(self, course_id: int, type: CertificateType) -> int:
        stmt = (
            select(func.count())
            .select_from(CertificateRow)
            .where(
                CertificateRow.course_id == course_id,
                CertificateRow.type == type.value,
                CertificateRow.is_valid.is_(True),
            )
        )
        return self._session.scalar(stmt) or 0


def _row_to_certificate(row: CertificateRow) -> Certificate:
    return Certificate(
        id=row.id,
        enrollment_id=row.enrollment_id,
        student_id=row.student_id,
        course_id=row.course_id,
        type=CertificateType(row.type),
        certificate_number=row.certificate_number,
        issued_at=row.issued_at,
        final_score=row.final_score,
        course_progress=row.course_progress,
        interactive_average=row.interactive_average,
        activities_average=row.activities_average,
        is_valid=row.is_valid,
        invalidation_reason=row.invalidation_reason,
        file_path=row.file_path,
        metadata=dict(row.metadata_json or {}),
    )
