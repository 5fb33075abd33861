"""JSON log output: the fields an operator filters on must survive."""

from __future__ import annotations

import json
import logging
import sys

from lms_progress.core.logging import _ContainerFormatter, _JsonFormatter


def _record(msg: str, *args: object, level: int = logging.INFO, exc_info=None):
    return logging.LogRecord(
        name="lms_progress.services.enrollments",
        level=level,
        pathname="enrollments.py",
        lineno=42,
        msg=msg,
        args=args,
        exc_info=exc_info,
    )


def test_json_formatter_produces_valid_json() -> None:
    parsed = json.loads(_JsonFormatter().format(_record("Enrolled student %d", 7)))
    assert parsed["level"] == "INFO"
    assert parsed["logger"] == "lms_progress.services.enrollments"
    assert parsed["message"] == "Enrolled student 7"
    assert "timestamp" in parsed


def test_json_formatter_includes_request_fields() -> None:
    record = _record("request")
    record.request_id = "abc-123"  # type: ignore[attr-defined]
    record.method = "GET"  # type: ignore[attr-defined]
    record.path = "/health"  # type: ignore[attr-defined]
    record.duration_ms = 12.5  # type: ignore[attr-defined]

    parsed = json.loads(_JsonFormatter().format(record))
    assert parsed["request_id"] == "abc-123"
    assert parsed["method"] == "GET"
    assert parsed["path"] == "/health"
    assert parsed["duration_ms"] == 12.5


def test_json_formatter_includes_domain_fields() -> None:
    logger = logging.getLogger("lms_progress.test")
    captured: list[logging.LogRecord] = []

    class _Capture(logging.Handler):
        def emit(self, record: logging.LogRecord) -> None:
            captured.append(record)

    handler = _Capture()
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    try:
        logger.info(
            "Issued certificate",
            extra={"enrollment_id": 12, "course_id": 3, "certificate_id": 9},
        )
    finally:
        logger.removeHandler(handler)

    parsed = json.loads(_JsonFormatter().format(captured[0]))
    assert parsed["enrollment_id"] == 12
    assert parsed["course_id"] == 3
    assert parsed["certificate_id"] == 9
    assert "status_code" not in parsed


def test_json_formatter_includes_exception_info() -> None:
    try:
        raise OSError("disk full")
    except OSError:
        record = _record("Rendering failed", level=logging.ERROR, exc_info=sys.exc_info())

    parsed = json.loads(_JsonFormatter().format(record))
    assert "OSError: disk full" in parsed["exception"]


def test_container_formatter_is_not_json() -> None:
    output = _ContainerFormatter().format(_record("server started"))
    assert "INFO" in output
    assert "server started" in output
    assert not output.startswith("{")
