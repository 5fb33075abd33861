from __future__ import annotations

import itertools
from dataclasses import replace
from typing import Protocol

from lms_progress.models.enrollment import Enrollment, EnrollmentStatus


class EnrollmentRepo(Protocol):
    def get(self, enrollment_id: int) -> Enrollment | None: ...
    def get_for_update(self, enrollment_id: int) -> Enrollment | None: ...
    def find(self, course_id: int, student_id: int) -> Enrollment | None: ...
    def add(self, enrollment: Enrollment) -> Enrollment: ...
    def update(self, enrollment: Enrollment) -> Enrollment: ...
    def list_for_course(self, course_id: int) -> list[Enrollment]: ...
    def count_by_status(self, course_id: int, status: EnrollmentStatus) -> int: ...


class InMemoryEnrollmentRepo:
    def __init__(self) -> None:
        self._ids = itertools.count(1)
        self._by_id: dict[int, Enrollment] = {}

    def get(self, enrollment_id: int) -> Enrollment | None:
        return self._by_id.get(enrollment_id)

    def get_for_update(self, enrollment_id: int) -> Enrollment | None:
        # Single-process store: a plain read is already serialized
        return self._by_id.get(enrollment_id)

    def find(self, course_id: int, student_id: int) -> Enrollment | None:
        for e in self._by_id.values():
            if e.course_id == course_id and e.student_id == student_id:
                return e
        return None

    def add(self, enrollment: Enrollment) -> Enrollment:
        if self.find(enrollment.course_id, enrollment.student_id) is not None:
            raise ValueError("enrollment already exists")
        stored = replace(enrollment, id=next(self._ids))
        self._by_id[stored.id] = stored
        return stored

    def update(self, enrollment: Enrollment) -> Enrollment:
        if enrollment.id not in self._by_id:
            raise KeyError("enrollment not found")
        self._by_id[enrollment.id] = enrollment
        return enrollment

    def list_for_course(self, course_id: int) -> list[Enrollment]:
        return [e for e in self._by_id.values() if e.course_id == course_id]

    def count_by_status(self, course_id: int, status: EnrollmentStatus) -> int:
        return sum(
            1
            for e in self._by_id.values()
            if e.course_id == course_id and e.status is status
        )
