"""Unit breakpoint endpoints, called by the unit reader in the frontend.

  PUT    /v1/enrollments/{id}/units/{unit_id}/progress            report scroll/activities
  GET    /v1/enrollments/{id}/units/{unit_id}/progress            unit summary
  DELETE /v1/enrollments/{id}/units/{unit_id}/progress            reset (remove breakpoints)
  GET    /v1/enrollments/{id}/units/{unit_id}/breakpoints
  GET    /v1/enrollments/{id}/units/{unit_id}/final-quiz-access
  GET    /v1/enrollments/{id}/units                               all units of the course
"""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from lms_progress.api.dependencies import get_services
from lms_progress.models.progress import UnitProgressBreakpoint
from lms_progress.services.container import Services

router = APIRouter(prefix="/v1/enrollments/{enrollment_id}/units", tags=["units"])


class UnitProgressIn(BaseModel):
    scroll_progress: float = Field(ge=0, le=100)
    activities_progress: float = Field(default=0.0, ge=0, le=100)
    completed_components: int = Field(default=0, ge=0)
    total_components: int = Field(default=0, ge=0)


class BreakpointOut(BaseModel):
    id: int
    breakpoint_percentage: int
    scroll_progress: float
    activities_progress: float
    combined_progress: float
    intelligent_progress_enabled: bool
    reached_at: int
    metadata: dict[str, Any]


class UnitSummaryOut(BaseModel):
    enrollment_id: int
    unit_id: int
    highest_breakpoint_reached: int
    current_scroll_progress: float
    current_activities_progress: float
    current_combined_progress: float
    intelligent_progress_enabled: bool
    can_access_final_quiz: bool
    breakpoints_reached: list[int]
    last_update: int | None


class UnitUpdateOut(BaseModel):
    breakpoint: BreakpointOut | None
    summary: UnitSummaryOut
    can_access_final_quiz: bool


class UnitRowOut(BaseModel):
    unit_id: int
    unit_title: str
    highest_breakpoint_reached: int
    current_combined_progress: float
    is_completed: bool


class CourseUnitsOut(BaseModel):
    enrollment_id: int
    course_id: int
    total_units: int
    completed_units: int
    overall_progress: float
    units: list[UnitRowOut]


class FinalQuizAccessOut(BaseModel):
    unit_id: int
    can_access_final_quiz: bool


class ResetOut(BaseModel):
    unit_id: int
    breakpoints_removed: int


def _breakpoint_out(row: UnitProgressBreakpoint) -> BreakpointOut:
    return BreakpointOut(
        id=row.id,
        breakpoint_percentage=row.breakpoint_percentage,
        scroll_progress=row.scroll_progress,
        activities_progress=row.activities_progress,
        combined_progress=row.combined_progress,
        intelligent_progress_enabled=row.intelligent_progress_enabled,
        reached_at=row.reached_at,
        metadata=row.metadata,
    )


@router.put("/{unit_id}/progress", response_model=UnitUpdateOut)
def update_unit_progress(
    enrollment_id: int,
    unit_id: int,
    body: UnitProgressIn,
    services: Annotated[Services, Depends(get_services)],
) -> UnitUpdateOut:
    update = services.units.update_unit_progress(
        enrollment_id,
        unit_id,
        body.scroll_progress,
        body.activities_progress,
        completed_components=body.completed_components,
        total_components=body.total_components,
    )
    return UnitUpdateOut(
        breakpoint=_breakpoint_out(update.breakpoint) if update.breakpoint else None,
        summary=UnitSummaryOut(**update.summary.to_dict()),
        can_access_final_quiz=update.can_access_final_quiz,
    )


@router.get("/{unit_id}/progress", response_model=UnitSummaryOut)
def get_unit_progress(
    enrollment_id: int,
    unit_id: int,
    services: Annotated[Services, Depends(get_services)],
) -> UnitSummaryOut:
    return UnitSummaryOut(**services.units.unit_summary(enrollment_id, unit_id).to_dict())


@router.delete("/{unit_id}/progress", response_model=ResetOut)
def reset_unit_progress(
    enrollment_id: int,
    unit_id: int,
    services: Annotated[Services, Depends(get_services)],
) -> ResetOut:
    removed = services.units.reset_unit_progress(enrollment_id, unit_id)
    return ResetOut(unit_id=unit_id, breakpoints_removed=removed)


@router.get("/{unit_id}/breakpoints", response_model=list[BreakpointOut])
def list_breakpoints(
    enrollment_id: int,
    unit_id: int,
    services: Annotated[Services, Depends(get_services)],
) -> list[BreakpointOut]:
    return [
        _breakpoint_out(b) for b in services.units.breakpoints(enrollment_id, unit_id)
    ]


@router.get("/{unit_id}/final-quiz-access", response_model=FinalQuizAccessOut)
def final_quiz_access(
    enrollment_id: int,
    unit_id: int,
    services: Annotated[Services, Depends(get_services)],
) -> FinalQuizAccessOut:
    return FinalQuizAccessOut(
        unit_id=unit_id,
        can_access_final_quiz=services.units.can_access_final_quiz(enrollment_id, unit_id),
    )


@router.get("", response_model=CourseUnitsOut)
def course_units(
    enrollment_id: int,
    services: Annotated[Services, Depends(get_services)],
) -> CourseUnitsOut:
    return CourseUnitsOut(**services.units.course_summary(enrollment_id).to_dict())
