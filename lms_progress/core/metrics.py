"""Prometheus metric inventory for lms-progress-service.

Every metric the service exposes is defined here, in one inventory.
Other modules import a specific metric and increment or observe it at
the point of action.

METRIC TYPES USED
------------------
  COUNTER: only goes up.  Certificates issued, breakpoints recorded,
    progress recalculations.  Dashboards use rate() over these.

  GAUGE: goes up and down.  In-flight HTTP requests.

  HISTOGRAM: observations grouped into buckets.  Request durations,
    from which Prometheus derives p95/p99 latency.

Labels are kept low-cardinality: certificate type, breakpoint value,
passed/failed.  Enrollment or student ids never become labels; they
belong in log lines, not in time-series names.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# ---------------------------------------------------------------------------
# HTTP (lms_progress/middleware/metrics.py)
# ---------------------------------------------------------------------------

REQUEST_COUNT = Counter(
    "http_requests_total",
    "HTTP requests handled, by method, route template and status code",
    ["method", "endpoint", "status_code"],
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "Time from request received to response sent, in seconds",
    ["method", "endpoint"],
    # Certificate generation renders inline, so the tail is longer
    # than a plain CRUD service would need.
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

ACTIVE_REQUESTS = Gauge(
    "http_active_requests",
    "HTTP requests in flight",
)

# ---------------------------------------------------------------------------
# Progress, grading and certificates (lms_progress/services/)
# ---------------------------------------------------------------------------

PROGRESS_RECALCULATIONS = Counter(
    "progress_recalculations_total",
    "Enrollment progress recalculations",
)

CERTIFICATES_ISSUED = Counter(
    "certificates_issued_total",
    "Certificates created, by certificate type",
    ["type"],  # "virtual" or "complete"
)

CERTIFICATES_INVALIDATED = Counter(
    "certificates_invalidated_total",
    "Certificates marked invalid",
)

CERTIFICATE_RENDER_FAILURES = Counter(
    "certificate_render_failures_total",
    "Certificate documents that failed to render",
)

BREAKPOINTS_RECORDED = Counter(
    "unit_breakpoints_recorded_total",
    "Unit progress breakpoints recorded, by breakpoint value",
    ["breakpoint"],  # "25", "50", "75", "100"
)

QUIZ_ATTEMPTS_COMPLETED = Counter(
    "quiz_attempts_completed_total",
    "Completed quiz attempts, by pass/fail outcome",
    ["passed"],  # "true" or "false"
)

CACHE_OPERATIONS = Counter(
    "cache_operations_total",
    "Progress summary cache lookups, by result",
    ["operation"],  # "hit" or "miss"
)
