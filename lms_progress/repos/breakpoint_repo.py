from __future__ import annotations

import itertools
from dataclasses import replace
from typing import Protocol

from lms_progress.models.progress import UnitProgressBreakpoint


class BreakpointRepo(Protocol):
    def list_for_unit(
        self, enrollment_id: int, unit_id: int
    ) -> list[UnitProgressBreakpoint]: ...
    def exists(self, enrollment_id: int, unit_id: int, breakpoint: int) -> bool: ...
    def latest(self, enrollment_id: int, unit_id: int) -> UnitProgressBreakpoint | None: ...
    def add(self, breakpoint: UnitProgressBreakpoint) -> UnitProgressBreakpoint: ...
    def delete_for_unit(self, enrollment_id: int, unit_id: int) -> int: ...


class InMemoryBreakpointRepo:
    def __init__(self) -> None:
        self._ids = itertools.count(1)
        self._by_key: dict[tuple[int, int, int], UnitProgressBreakpoint] = {}

    def list_for_unit(
        self, enrollment_id: int, unit_id: int
    ) -> list[UnitProgressBreakpoint]:
        rows = [
            b
            for (e, u, _), b in self._by_key.items()
            if e == enrollment_id and u == unit_id
        ]
        return sorted(rows, key=lambda b: b.breakpoint_percentage)

    def exists(self, enrollment_id: int, unit_id: int, breakpoint: int) -> bool:
        return (enrollment_id, unit_id, breakpoint) in self._by_key

    def latest(self, enrollment_id: int, unit_id: int) -> UnitProgressBreakpoint | None:
        rows = self.list_for_unit(enrollment_id, unit_id)
        return max(rows, key=lambda b: (b.reached_at, b.id), default=None)

    def add(self, breakpoint: UnitProgressBreakpoint) -> UnitProgressBreakpoint:
        key = (breakpoint.enrollment_id, breakpoint.unit_id, breakpoint.breakpoint_percentage)
        if key in self._by_key:
            raise ValueError("breakpoint already recorded")
        stored = replace(breakpoint, id=next(self._ids))
        self._by_key[key] = stored
        return stored

    def delete_for_unit(self, enrollment_id: int, unit_id: int) -> int:
        keys = [k for k in self._by_key if k[0] == enrollment_id and k[1] == unit_id]
        for k in keys:
            del self._by_key[k]
        return len(keys)
