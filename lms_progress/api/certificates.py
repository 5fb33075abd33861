"""Certificate endpoints: eligibility, issuance, download, verification.

  GET  /v1/enrollments/{id}/certificates                  list (valid and invalidated)
  GET  /v1/enrollments/{id}/certificates/eligibility      ?type=virtual|complete
  POST /v1/enrollments/{id}/certificates/{type}           issue (idempotent)
  GET  /v1/certificates/config                            thresholds and weights in effect
  GET  /v1/certificates/verify/{certificate_number}       public verification
  GET  /v1/certificates/{id}
  GET  /v1/certificates/{id}/download                     rendered document
  POST /v1/certificates/{id}/invalidate

Issuing when not eligible answers 409 with the evaluator's reason; the
service itself returns None for that case.
"""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import FileResponse
from pydantic import BaseModel, Field

from lms_progress.api.dependencies import get_renderer, get_services
from lms_progress.models.certificate import Certificate, CertificateType
from lms_progress.services.container import Services
from lms_progress.services.renderer import CertificateRenderer

router = APIRouter(tags=["certificates"])


class CertificateOut(BaseModel):
    id: int
    enrollment_id: int
    student_id: int
    course_id: int
    type: CertificateType
    certificate_number: str
    issued_at: int
    final_score: float
    course_progress: float
    interactive_average: float
    activities_average: float
    is_valid: bool
    invalidation_reason: str | None
    has_document: bool
    metadata: dict[str, Any]


class EligibilityOut(BaseModel):
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


class VerificationOut(BaseModel):
    certificate_number: str
    valid: bool
    type: CertificateType
    course_id: int
    student_id: int
    issued_at: int
    invalidation_reason: str | None


class InvalidateIn(BaseModel):
    reason: str = Field(min_length=1, max_length=500)


class CertificateConfigOut(BaseModel):
    virtual_threshold: float
    complete_threshold: float
    interactive_weight: float
    activities_weight: float
    auto_generate: bool


def certificate_out(certificate: Certificate) -> CertificateOut:
    return CertificateOut(
        id=certificate.id,
        enrollment_id=certificate.enrollment_id,
        student_id=certificate.student_id,
        course_id=certificate.course_id,
        type=certificate.type,
        certificate_number=certificate.certificate_number,
        issued_at=certificate.issued_at,
        final_score=certificate.final_score,
        course_progress=certificate.course_progress,
        interactive_average=certificate.interactive_average,
        activities_average=certificate.activities_average,
        is_valid=certificate.is_valid,
        invalidation_reason=certificate.invalidation_reason,
        has_document=certificate.file_path is not None,
        metadata=certificate.metadata,
    )


@router.get(
    "/v1/enrollments/{enrollment_id}/certificates",
    response_model=list[CertificateOut],
)
def list_certificates(
    enrollment_id: int,
    services: Annotated[Services, Depends(get_services)],
) -> list[CertificateOut]:
    return [
        certificate_out(c)
        for c in services.certificates.certificates_for_enrollment(enrollment_id)
    ]


@router.get(
    "/v1/enrollments/{enrollment_id}/certificates/eligibility",
    response_model=EligibilityOut,
)
def check_eligibility(
    enrollment_id: int,
    services: Annotated[Services, Depends(get_services)],
    type: CertificateType = CertificateType.VIRTUAL,
) -> EligibilityOut:
    result = services.certificates.eligibility(enrollment_id, type)
    return EligibilityOut(**result.to_dict())


@router.post(
    "/v1/enrollments/{enrollment_id}/certificates/{type}",
    response_model=CertificateOut,
)
def issue_certificate(
    enrollment_id: int,
    type: CertificateType,
    services: Annotated[Services, Depends(get_services)],
) -> CertificateOut:
    certificate = services.certificates.generate(enrollment_id, type)
    if certificate is None:
        result = services.certificates.eligibility(enrollment_id, type)
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"not eligible for a {type.value} certificate: {result.reason}",
        )
    return certificate_out(certificate)


@router.get("/v1/certificates/config", response_model=CertificateConfigOut)
def certificate_config(
    services: Annotated[Services, Depends(get_services)],
) -> CertificateConfigOut:
    return CertificateConfigOut(**services.config.as_dict())


@router.get(
    "/v1/certificates/verify/{certificate_number}",
    response_model=VerificationOut,
)
def verify_certificate(
    certificate_number: str,
    services: Annotated[Services, Depends(get_services)],
) -> VerificationOut:
    certificate = services.certificates.verify(certificate_number)
    return VerificationOut(
        certificate_number=certificate.certificate_number,
        valid=certificate.is_valid,
        type=certificate.type,
        course_id=certificate.course_id,
        student_id=certificate.student_id,
        issued_at=certificate.issued_at,
        invalidation_reason=certificate.invalidation_reason,
    )


@router.get("/v1/certificates/{certificate_id}", response_model=CertificateOut)
def get_certificate(
    certificate_id: int,
    services: Annotated[Services, Depends(get_services)],
) -> CertificateOut:
    return certificate_out(services.certificates.get(certificate_id))


@router.get("/v1/certificates/{certificate_id}/download")
def download_certificate(
    certificate_id: int,
    services: Annotated[Services, Depends(get_services)],
    renderer: Annotated[CertificateRenderer, Depends(get_renderer)],
) -> FileResponse:
    certificate = services.certificates.ensure_document(certificate_id)
    assert certificate.file_path is not None
    return FileResponse(
        renderer.open_path(certificate.file_path),
        media_type="text/html",
        filename=f"{certificate.certificate_number}.html",
    )


@router.post(
    "/v1/certificates/{certificate_id}/invalidate",
    response_model=CertificateOut,
)
def invalidate_certificate(
    certificate_id: int,
    body: InvalidateIn,
    services: Annotated[Services, Depends(get_services)],
) -> CertificateOut:
    return certificate_out(services.certificates.invalidate(certificate_id, body.reason))
