from __future__ import annotations

import logging

from lms_progress.core.logging import (
    _ContainerFormatter,
    _RequestIdFilter,
    request_id_var,
    setup_logging,
)


def _record(level: int, msg: str, pathname: str = "test.py", lineno: int = 1):
    return logging.LogRecord(
        name="lms_progress.services.certificates",
        level=level,
        pathname=pathname,
        lineno=lineno,
        msg=msg,
        args=(),
        exc_info=None,
    )


def test_setup_logging_sets_root_level() -> None:
    setup_logging("debug")
    assert logging.getLogger().level == logging.DEBUG

    setup_logging("warning")
    assert logging.getLogger().level == logging.WARNING


def test_setup_logging_defaults_to_info_for_unknown_level() -> None:
    setup_logging("nonexistent")
    assert logging.getLogger().level == logging.INFO


def test_setup_logging_quiets_noisy_loggers_at_debug() -> None:
    setup_logging("debug")
    assert logging.getLogger("uvicorn").level == logging.WARNING
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING


def test_setup_logging_allows_uvicorn_at_error() -> None:
    setup_logging("error")
    assert logging.getLogger("uvicorn").level == logging.ERROR


def test_formatter_excludes_location_for_info() -> None:
    output = _ContainerFormatter().format(_record(logging.INFO, "certificate issued"))
    assert "certificate issued" in output
    assert "[test.py:" not in output


def test_formatter_includes_location_for_warning() -> None:
    output = _ContainerFormatter().format(
        _record(logging.WARNING, "render failed", "certificates.py", 42)
    )
    assert "render failed" in output
    assert "[certificates.py:42]" in output


def test_formatter_shows_enrollment_id() -> None:
    record = _record(logging.INFO, "progress recalculated")
    record.enrollment_id = 12  # type: ignore[attr-defined]
    assert "[enrollment=12]" in _ContainerFormatter().format(record)


# ---- request id stamping ----


def test_filter_stamps_current_request_id() -> None:
    token = request_id_var.set("req-7")
    try:
        record = _record(logging.INFO, "breakpoint recorded")
        assert _RequestIdFilter().filter(record) is True
    finally:
        request_id_var.reset(token)
    assert record.request_id == "req-7"  # type: ignore[attr-defined]


def test_filter_defaults_outside_a_request() -> None:
    record = _record(logging.INFO, "startup")
    _RequestIdFilter().filter(record)
    assert record.request_id == "-"  # type: ignore[attr-defined]


def test_filter_keeps_explicit_request_id() -> None:
    record = _record(logging.INFO, "GET /health -> 200")
    record.request_id = "from-middleware"  # type: ignore[attr-defined]
    _RequestIdFilter().filter(record)
    assert record.request_id == "from-middleware"  # type: ignore[attr-defined]


def test_handler_filter_applies_to_child_loggers() -> None:
    setup_logging("info")
    (handler,) = logging.getLogger().handlers
    assert any(isinstance(f, _RequestIdFilter) for f in handler.filters)
