from __future__ import annotations

import itertools
from dataclasses import replace
from typing import Protocol

from lms_progress.models.assessment import ActivitySubmission


class ActivitySubmissionRepo(Protocol):
    def get(self, submission_id: int) -> ActivitySubmission | None: ...
    def find(self, activity_id: int, student_id: int) -> ActivitySubmission | None: ...
    def add(self, submission: ActivitySubmission) -> ActivitySubmission: ...
    def update(self, submission: ActivitySubmission) -> ActivitySubmission: ...
    def list_for_enrollment(self, enrollment_id: int) -> list[ActivitySubmission]: ...


class InMemoryActivitySubmissionRepo:
    def __init__(self) -> None:
        self._ids = itertools.count(1)
        self._by_id: dict[int, ActivitySubmission] = {}

    def get(self, submission_id: int) -> ActivitySubmission | None:
        return self._by_id.get(submission_id)

    def find(self, activity_id: int, student_id: int) -> ActivitySubmission | None:
        for s in self._by_id.values():
            if s.activity_id == activity_id and s.student_id == student_id:
                return s
        return None

    def add(self, submission: ActivitySubmission) -> ActivitySubmission:
        if self.find(submission.activity_id, submission.student_id) is not None:
            raise ValueError("submission already exists")
        stored = replace(submission, id=next(self._ids))
        self._by_id[stored.id] = stored
        return stored

    def update(self, submission: ActivitySubmission) -> ActivitySubmission:
        if submission.id not in self._by_id:
            raise KeyError("submission not found")
        self._by_id[submission.id] = submission
        return submission

    def list_for_enrollment(self, enrollment_id: int) -> list[ActivitySubmission]:
        return [s for s in self._by_id.values() if s.enrollment_id == enrollment_id]
