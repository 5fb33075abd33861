from __future__ import annotations

import itertools
from dataclasses import replace
from typing import Protocol

from lms_progress.models.certificate import Certificate, CertificateType


class CertificateRepo(Protocol):
    def get(self, certificate_id: int) -> Certificate | None: ...
    def get_by_number(self, certificate_number: str) -> Certificate | None: ...
    def find_valid(
        self, enrollment_id: int, type: CertificateType
    ) -> Certificate | None: ...
    def list_for_enrollment(self, enrollment_id: int) -> list[Certificate]: ...
    def add(self, certificate: Certificate) -> Certificate: ...
    def update(self, certificate: Certificate) -> Certificate: ...
    def count_valid(self, course_id: int, type: CertificateType) -> int: ...


class InMemoryCertificateRepo:
    def __init__(self) -> None:
        self._ids = itertools.count(1)
        self._by_id: dict[int, Certificate] = {}

    def get(self, certificate_id: int) -> Certificate | None:
        return self._by_id.get(certificate_id)

    def get_by_number(self, certificate_number: str) -> Certificate | None:
        for c in self._by_id.values():
            if c.certificate_number == certificate_number:
                return c
        return None

    def find_valid(
        self, enrollment_id: int, type: CertificateType
    ) -> Certificate | None:
        for c in self._by_id.values():
            if c.enrollment_id == enrollment_id and c.type is type and c.is_valid:
                return c
        return None

    def list_for_enrollment(self, enrollment_id: int) -> list[Certificate]:
        return sorted(
            (c for c in self._by_id.values() if c.enrollment_id == enrollment_id),
            key=lambda c: c.id,
        )

    def add(self, certificate: Certificate) -> Certificate:
        if self.get_by_number(certificate.certificate_number) is not None:
            raise ValueError("certificate number already exists")
        stored = replace(certificate, id=next(self._ids))
        self._by_id[stored.id] = stored
        return stored

    def update(self, certificate: Certificate) -> Certificate:
        if certificate.id not in self._by_id:
            raise KeyError("certificate not found")
        self._by_id[certificate.id] = certificate
        return certificate

    def count_valid(self, course_id: int, type: CertificateType) -> int:
        return sum(
            1
            for c in self._by_id.values()
            if c.course_id == course_id and c.type is type and c.is_valid
        )
