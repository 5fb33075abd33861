from __future__ import annotations

import itertools
from dataclasses import replace
from typing import Protocol

from lms_progress.models.assessment import AttemptStatus, QuizAttempt


class QuizAttemptRepo(Protocol):
    def get(self, attempt_id: int) -> QuizAttempt | None: ...
    def add(self, attempt: QuizAttempt) -> QuizAttempt: ...
    def update(self, attempt: QuizAttempt) -> QuizAttempt: ...
    def list_for_student(self, quiz_id: int, student_id: int) -> list[QuizAttempt]: ...
    def count_completed(self, quiz_id: int, student_id: int) -> int: ...
    def max_attempt_number(self, quiz_id: int, student_id: int) -> int: ...
    def completed_for_enrollment(self, enrollment_id: int) -> list[QuizAttempt]: ...


class InMemoryQuizAttemptRepo:
    def __init__(self) -> None:
        self._ids = itertools.count(1)
        self._by_id: dict[int, QuizAttempt] = {}

    def get(self, attempt_id: int) -> QuizAttempt | None:
        return self._by_id.get(attempt_id)

    def add(self, attempt: QuizAttempt) -> QuizAttempt:
        for a in self._by_id.values():
            if (a.quiz_id, a.student_id, a.attempt_number) == (
                attempt.quiz_id,
                attempt.student_id,
                attempt.attempt_number,
            ):
                raise ValueError("attempt number already used")
        stored = replace(attempt, id=next(self._ids))
        self._by_id[stored.id] = stored
        return stored

    def update(self, attempt: QuizAttempt) -> QuizAttempt:
        if attempt.id not in self._by_id:
            raise KeyError("quiz attempt not found")
        self._by_id[attempt.id] = attempt
        return attempt

    def list_for_student(self, quiz_id: int, student_id: int) -> list[QuizAttempt]:
        return sorted(
            (
                a
                for a in self._by_id.values()
                if a.quiz_id == quiz_id and a.student_id == student_id
            ),
            key=lambda a: a.attempt_number,
        )

    def count_completed(self, quiz_id: int, student_id: int) -> int:
        return sum(
            1
            for a in self.list_for_student(quiz_id, student_id)
            if a.status is AttemptStatus.COMPLETED
        )

    def max_attempt_number(self, quiz_id: int, student_id: int) -> int:
        return max(
            (a.attempt_number for a in self.list_for_student(quiz_id, student_id)),
            default=0,
        )

    def completed_for_enrollment(self, enrollment_id: int) -> list[QuizAttempt]:
        return [
            a
            for a in self._by_id.values()
            if a.enrollment_id == enrollment_id and a.status is AttemptStatus.COMPLETED
        ]
