from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any

from lms_progress.core.clock import format_epoch


class CertificateType(enum.StrEnum):
    VIRTUAL = "virtual"
    COMPLETE = "complete"

    @property
    def prefix(self) -> str:
        match self:
            case CertificateType.VIRTUAL:
                return "VRT"
            case CertificateType.COMPLETE:
                return "CMP"


def certificate_number(
    type: CertificateType, *, course_id: int, student_id: int, issued_at: int
) -> str:
    """VRT-0007-00042-20260102153000: prefix, course, student, UTC issue time."""
    stamp = format_epoch(issued_at, "%Y%m%d%H%M%S")
    return f"{type.prefix}-{course_id:04d}-{student_id:05d}-{stamp}"


@dataclass(frozen=True, slots=True)
class Certificate:
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
    is_valid: bool = True
    invalidation_reason: str | None = None
    file_path: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def new(
        *,
        enrollment_id: int,
        student_id: int,
        course_id: int,
        type: CertificateType,
        issued_at: int,
        final_score: float,
        course_progress: float,
        interactive_average: float,
        activities_average: float,
        metadata: dict[str, Any] | None = None,
    ) -> Certificate:
        return Certificate(
            id=0,
            enrollment_id=enrollment_id,
            student_id=student_id,
            course_id=course_id,
            type=type,
            certificate_number=certificate_number(
                type, course_id=course_id, student_id=student_id, issued_at=issued_at
            ),
            issued_at=issued_at,
            final_score=final_score,
            course_progress=course_progress,
            interactive_average=interactive_average,
            activities_average=activities_average,
            metadata=dict(metadata or {}),
        )
