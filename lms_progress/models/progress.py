from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any

BREAKPOINTS: tuple[int, ...] = (25, 50, 75, 100)


class TrackableType(enum.StrEnum):
    """What a progress record points at."""

    COMPONENT = "component"
    QUIZ = "quiz"
    ACTIVITY = "activity"


def format_duration(seconds: int) -> str:
    """Render seconds as h:mm:ss."""
    hours, rest = divmod(max(seconds, 0), 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours}:{minutes:02d}:{secs:02d}"


@dataclass(frozen=True, slots=True)
class ProgressRecord:
    id: int
    enrollment_id: int
    type: TrackableType
    reference_id: int
    module_id: int | None = None
    component_id: int | None = None
    is_completed: bool = False
    started_at: int | None = None
    completed_at: int | None = None
    time_spent: int = 0
    score: float | None = None

    @staticmethod
    def new(
        *,
        enrollment_id: int,
        type: TrackableType,
        reference_id: int,
        module_id: int | None = None,
        component_id: int | None = None,
    ) -> ProgressRecord:
        return ProgressRecord(
            id=0,
            enrollment_id=enrollment_id,
            type=type,
            reference_id=reference_id,
            module_id=module_id,
            component_id=component_id,
        )

    @property
    def formatted_time_spent(self) -> str:
        return format_duration(self.time_spent)


@dataclass(frozen=True, slots=True)
class UnitProgressBreakpoint:
    """A discrete milestone (25/50/75/100) reached inside one unit."""

    id: int
    enrollment_id: int
    unit_id: int
    breakpoint_percentage: int
    scroll_progress: float
    activities_progress: float
    combined_progress: float
    intelligent_progress_enabled: bool
    reached_at: int
    metadata: dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def new(
        *,
        enrollment_id: int,
        unit_id: int,
        breakpoint_percentage: int,
        scroll_progress: float,
        activities_progress: float,
        combined_progress: float,
        intelligent_progress_enabled: bool,
        reached_at: int,
        metadata: dict[str, Any] | None = None,
    ) -> UnitProgressBreakpoint:
        if breakpoint_percentage not in BREAKPOINTS:
            raise ValueError(f"breakpoint must be one of {BREAKPOINTS}")
        return UnitProgressBreakpoint(
            id=0,
            enrollment_id=enrollment_id,
            unit_id=unit_id,
            breakpoint_percentage=breakpoint_percentage,
            scroll_progress=scroll_progress,
            activities_progress=activities_progress,
            combined_progress=combined_progress,
            intelligent_progress_enabled=intelligent_progress_enabled,
            reached_at=reached_at,
            metadata=dict(metadata or {}),
        )
