"""Enrollment lifecycle and course progress endpoints.

  POST /v1/enrollments                                       enroll (or reactivate)
  GET  /v1/enrollments/{id}
  POST /v1/enrollments/{id}/drop
  PUT  /v1/enrollments/{id}/status
  GET  /v1/enrollments/{id}/progress                         read-through cached
  POST /v1/enrollments/{id}/progress/refresh
  GET  /v1/enrollments/{id}/records                          ?type=component|quiz|activity
  GET  /v1/enrollments/{id}/grades
  POST /v1/enrollments/{id}/components/{component_id}/start
  POST /v1/enrollments/{id}/components/{component_id}/complete

Every call that changes graded data answers with a ProgressUpdateOut:
the new enrollment state, the recomputed summary, and any certificates
the auto-generation policy issued along the way.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from lms_progress.api.certificates import CertificateOut, certificate_out
from lms_progress.api.dependencies import get_services
from lms_progress.models.enrollment import Enrollment, EnrollmentStatus
from lms_progress.models.progress import ProgressRecord, TrackableType
from lms_progress.services.container import Services
from lms_progress.services.enrollments import ProgressUpdate

router = APIRouter(prefix="/v1/enrollments", tags=["enrollments"])


class EnrollIn(BaseModel):
    course_id: int = Field(gt=0)
    student_id: int = Field(gt=0)


class StatusIn(BaseModel):
    status: EnrollmentStatus


class EnrollmentOut(BaseModel):
    id: int
    course_id: int
    student_id: int
    status: EnrollmentStatus
    enrolled_at: int
    progress_percentage: float
    completed_at: int | None
    dropped_at: int | None


class ProgressOut(BaseModel):
    overall: float
    modules_completed: int
    total_modules: int
    components_completed: int
    total_components: int
    quiz_average: float | None
    activities_average: float | None


class ProgressUpdateOut(BaseModel):
    enrollment: EnrollmentOut
    progress: ProgressOut
    certificates: dict[str, CertificateOut | None]


class ProgressRecordOut(BaseModel):
    id: int
    type: TrackableType
    reference_id: int
    module_id: int | None
    component_id: int | None
    is_completed: bool
    started_at: int | None
    completed_at: int | None
    time_spent: int
    formatted_time_spent: str
    score: float | None


class GradesOut(BaseModel):
    interactive_average: float
    activities_average: float
    final_score: float
    interactive_weight: float
    activities_weight: float


def enrollment_out(enrollment: Enrollment) -> EnrollmentOut:
    return EnrollmentOut(
        id=enrollment.id,
        course_id=enrollment.course_id,
        student_id=enrollment.student_id,
        status=enrollment.status,
        enrolled_at=enrollment.enrolled_at,
        progress_percentage=enrollment.progress_percentage,
        completed_at=enrollment.completed_at,
        dropped_at=enrollment.dropped_at,
    )


def progress_update_out(update: ProgressUpdate) -> ProgressUpdateOut:
    return ProgressUpdateOut(
        enrollment=enrollment_out(update.enrollment),
        progress=ProgressOut(**update.summary.to_dict()),
        certificates={
            type.value: certificate_out(c) if c is not None else None
            for type, c in update.certificates.items()
        },
    )


def _record_out(record: ProgressRecord) -> ProgressRecordOut:
    return ProgressRecordOut(
        id=record.id,
        type=record.type,
        reference_id=record.reference_id,
        module_id=record.module_id,
        component_id=record.component_id,
        is_completed=record.is_completed,
        started_at=record.started_at,
        completed_at=record.completed_at,
        time_spent=record.time_spent,
        formatted_time_spent=record.formatted_time_spent,
        score=record.score,
    )


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


@router.post("", response_model=EnrollmentOut, status_code=status.HTTP_201_CREATED)
def enroll(
    body: EnrollIn,
    services: Annotated[Services, Depends(get_services)],
) -> EnrollmentOut:
    return enrollment_out(services.enrollments.enroll(body.course_id, body.student_id))


@router.get("/{enrollment_id}", response_model=EnrollmentOut)
def get_enrollment(
    enrollment_id: int,
    services: Annotated[Services, Depends(get_services)],
) -> EnrollmentOut:
    return enrollment_out(services.enrollments.get(enrollment_id))


@router.post("/{enrollment_id}/drop", response_model=EnrollmentOut)
def drop_enrollment(
    enrollment_id: int,
    services: Annotated[Services, Depends(get_services)],
) -> EnrollmentOut:
    return enrollment_out(services.enrollments.drop(enrollment_id))


@router.put("/{enrollment_id}/status", response_model=EnrollmentOut)
def set_enrollment_status(
    enrollment_id: int,
    body: StatusIn,
    services: Annotated[Services, Depends(get_services)],
) -> EnrollmentOut:
    return enrollment_out(services.enrollments.set_status(enrollment_id, body.status))


# ---------------------------------------------------------------------------
# Progress
# ---------------------------------------------------------------------------


@router.get("/{enrollment_id}/progress", response_model=ProgressOut)
def get_progress(
    enrollment_id: int,
    services: Annotated[Services, Depends(get_services)],
) -> ProgressOut:
    return ProgressOut(**services.enrollments.progress_summary(enrollment_id).to_dict())


@router.post("/{enrollment_id}/progress/refresh", response_model=ProgressUpdateOut)
def refresh_progress(
    enrollment_id: int,
    services: Annotated[Services, Depends(get_services)],
) -> ProgressUpdateOut:
    return progress_update_out(services.enrollments.refresh_progress(enrollment_id))


@router.get("/{enrollment_id}/records", response_model=list[ProgressRecordOut])
def list_records(
    enrollment_id: int,
    services: Annotated[Services, Depends(get_services)],
    type: TrackableType | None = None,
) -> list[ProgressRecordOut]:
    services.enrollments.get(enrollment_id)
    return [
        _record_out(r) for r in services.tracker.records_for_enrollment(enrollment_id, type)
    ]


@router.get("/{enrollment_id}/grades", response_model=GradesOut)
def get_grades(
    enrollment_id: int,
    services: Annotated[Services, Depends(get_services)],
) -> GradesOut:
    report = services.grading.report(services.enrollments.get(enrollment_id))
    return GradesOut(**report.to_dict())


@router.post(
    "/{enrollment_id}/components/{component_id}/start",
    status_code=status.HTTP_204_NO_CONTENT,
)
def start_component(
    enrollment_id: int,
    component_id: int,
    services: Annotated[Services, Depends(get_services)],
) -> None:
    services.enrollments.start_component(enrollment_id, component_id)


@router.post(
    "/{enrollment_id}/components/{component_id}/complete",
    response_model=ProgressUpdateOut,
)
def complete_component(
    enrollment_id: int,
    component_id: int,
    services: Annotated[Services, Depends(get_services)],
) -> ProgressUpdateOut:
    update = services.enrollments.complete_component(enrollment_id, component_id)
    return progress_update_out(update)
