from __future__ import annotations

import itertools
from dataclasses import replace
from typing import Protocol

from lms_progress.models.progress import ProgressRecord, TrackableType


class ProgressRecordRepo(Protocol):
    def find(
        self, enrollment_id: int, type: TrackableType, reference_id: int
    ) -> ProgressRecord | None: ...
    def add(self, record: ProgressRecord) -> ProgressRecord: ...
    def update(self, record: ProgressRecord) -> ProgressRecord: ...
    def list_for_enrollment(
        self, enrollment_id: int, type: TrackableType | None = None
    ) -> list[ProgressRecord]: ...


class InMemoryProgressRecordRepo:
    def __init__(self) -> None:
        self._ids = itertools.count(1)
        self._by_key: dict[tuple[int, TrackableType, int], ProgressRecord] = {}

    def find(
        self, enrollment_id: int, type: TrackableType, reference_id: int
    ) -> ProgressRecord | None:
        return self._by_key.get((enrollment_id, type, reference_id))

    def add(self, record: ProgressRecord) -> ProgressRecord:
        key = (record.enrollment_id, record.type, record.reference_id)
        if key in self._by_key:
            raise ValueError("progress record already exists")
        stored = replace(record, id=next(self._ids))
        self._by_key[key] = stored
        return stored

    def update(self, record: ProgressRecord) -> ProgressRecord:
        key = (record.enrollment_id, record.type, record.reference_id)
        if key not in self._by_key:
            raise KeyError("progress record not found")
        self._by_key[key] = record
        return record

    def list_for_enrollment(
        self, enrollment_id: int, type: TrackableType | None = None
    ) -> list[ProgressRecord]:
        return sorted(
            (
                r
                for r in self._by_key.values()
                if r.enrollment_id == enrollment_id and (type is None or r.type is type)
            ),
            key=lambda r: r.id,
        )
