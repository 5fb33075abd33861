"""Domain errors raised by the services and mapped to HTTP in main.py.

  NotFoundError          -> 404  (enrollment, unit, quiz, ... missing)
  RuleViolationError     -> 409  (max attempts reached, already enrolled, ...)
  CertificateRenderError -> 502  (document renderer failed)

"Not eligible for a certificate" is NOT an error: generation returns
None and callers check for it.
"""

from __future__ import annotations


class NotFoundError(LookupError):
    def __init__(self, entity: str, entity_id: object) -> None:
        super().__init__(f"{entity} not found")
        self.entity = entity
        self.entity_id = entity_id


class RuleViolationError(ValueError):
    """A request that is well-formed but breaks a domain rule."""


class MaxAttemptsExceededError(RuleViolationError):
    def __init__(self, quiz_id: int, max_attempts: int) -> None:
        super().__init__(f"maximum attempts ({max_attempts}) reached for this quiz")
        self.quiz_id = quiz_id
        self.max_attempts = max_attempts


class CertificateRenderError(RuntimeError):
    """The certificate row exists, but its document could not be produced."""

    def __init__(self, certificate_id: int, certificate_number: str) -> None:
        super().__init__(f"failed to render certificate {certificate_number}")
        self.certificate_id = certificate_id
        self.certificate_number = certificate_number
