"""Logging configuration for lms-progress-service.

LOGS vs METRICS
----------------
The service emits two complementary signals:

  1. LOGS: "what happened, in words".
     One line per event: "certificate VRT-0007-00042-... issued",
     "breakpoint 75 reached for enrollment 12".  Good for answering
     "why did this learner NOT get a certificate?"

  2. METRICS: "what happened, in numbers".
     certificates_issued_total, unit_breakpoints_recorded_total.
     Good for dashboards and alerts.  See lms_progress/core/metrics.py.

TWO FORMATTERS
---------------
  _ContainerFormatter: human-readable, single-line, for local dev.
    Lines that carry an enrollment id show it as `[enrollment=12]`.

  _JsonFormatter: machine-parseable JSON lines, for production log
    aggregation.  The domain services attach enrollment_id, course_id
    and certificate_id through `extra=`, so an operator can filter for
    every event of one enrollment:

      enrollment_id == 42 AND level == "WARNING"

    Set LOG_JSON=true in production to switch to JSON output.

REQUEST CONTEXT
----------------
RequestContextMiddleware stores the current request id in
`request_id_var`.  _RequestIdFilter sits on the stdout handler, not on
a logger, so it stamps records from every logger in the process,
including the ones that propagate up from lms_progress.services.*.
Outside a request the id is "-".
"""

from __future__ import annotations

import json
import logging
import sys
from contextvars import ContextVar

request_id_var: ContextVar[str] = ContextVar("request_id", default="-")

# Fields copied from LogRecord attributes into JSON output when present
_CONTEXT_FIELDS = (
    "request_id",
    "method",
    "path",
    "status_code",
    "duration_ms",
    "enrollment_id",
    "course_id",
    "certificate_id",
)

_QUIET_LOGGERS = (
    "uvicorn",
    "uvicorn.access",
    "uvicorn.error",
    "httpcore",
    "httpx",
    "sqlalchemy.engine",
)


class _RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "request_id", None) is None:
            record.request_id = request_id_var.get()  # type: ignore[attr-defined]
        return True


class _ContainerFormatter(logging.Formatter):
    """Single-line formatter tuned for container stdout.

    - Always: ISO-8601 timestamp with milliseconds, level, logger, message
    - With an enrollment_id: appends [enrollment=N]
    - WARNING+: appends [filename:lineno]
    """

    _BASE_FMT = "%(asctime)s %(levelname)-8s %(name)s  %(message)s"
    _LOC_SUFFIX = "  [%(filename)s:%(lineno)d]"

    def __init__(self) -> None:
        super().__init__(datefmt="%Y-%m-%dT%H:%M:%S%z")

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        base = super().formatTime(record, datefmt)
        # .NNN goes before the +0000 offset
        return f"{base[:-5]}.{int(record.msecs):03d}{base[-5:]}"

    def format(self, record: logging.LogRecord) -> str:
        fmt = self._BASE_FMT
        enrollment_id = getattr(record, "enrollment_id", None)
        if enrollment_id is not None:
            fmt += f"  [enrollment={enrollment_id}]"
        if record.levelno >= logging.WARNING:
            fmt += self._LOC_SUFFIX
        self._style._fmt = fmt
        return super().format(record)


class _JsonFormatter(logging.Formatter):
    """JSON-lines formatter; one object per record."""

    def __init__(self) -> None:
        super().__init__(datefmt="%Y-%m-%dT%H:%M:%S%z")

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, object] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        log_entry.update(
            (key, value)
            for key in _CONTEXT_FIELDS
            if (value := getattr(record, key, None)) is not None
        )
        if record.exc_info and record.exc_info[0] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, default=str)


def setup_logging(level_name: str, *, json_format: bool = False) -> None:
    """Configure the root logger for container environments.

    Args:
        level_name: Log level string (debug/info/warning/error)
        json_format: If True, emit JSON lines. If False, human-readable.
                     Controlled by LOG_JSON env var in Settings.
    """
    level = getattr(logging, level_name.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_JsonFormatter() if json_format else _ContainerFormatter())
    handler.addFilter(_RequestIdFilter())

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(handler)

    # SQL echo and HTTP client chatter stay at WARNING unless asked for
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
