"""Prometheus metrics middleware: one observation per HTTP request.

Each request moves three series:

  http_active_requests            +1 while the handler runs
  http_requests_total             by method, route template, status
  http_request_duration_seconds   by method, route template

ROUTE TEMPLATES, NOT PATHS
---------------------------
Almost every path here embeds an id (/v1/enrollments/42/progress,
/v1/certificates/verify/CMP-0003-00042-...).  The raw path would mint
a new time series per enrollment and per certificate, so the label is
the template Starlette matched (/v1/enrollments/{enrollment_id}/progress).
Unmatched paths (404s from the router itself) keep the raw path.

/metrics is skipped so Prometheus scrapes never show up in the numbers.
"""

from __future__ import annotations

import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from lms_progress.core.metrics import ACTIVE_REQUESTS, REQUEST_COUNT, REQUEST_DURATION

_UNINSTRUMENTED = frozenset({"/metrics"})


def _endpoint_label(request: Request) -> str:
    template = getattr(request.scope.get("route"), "path", None)
    return template if isinstance(template, str) else request.url.path


def _record(request: Request, status_code: int, elapsed: float) -> None:
    endpoint = _endpoint_label(request)
    REQUEST_COUNT.labels(
        method=request.method, endpoint=endpoint, status_code=str(status_code)
    ).inc()
    REQUEST_DURATION.labels(method=request.method, endpoint=endpoint).observe(elapsed)


class MetricsMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in _UNINSTRUMENTED:
            return await call_next(request)

        start = time.monotonic()
        status_code = 500  # unhandled exceptions surface as 500
        with ACTIVE_REQUESTS.track_inprogress():
            try:
                response = await call_next(request)
                status_code = response.status_code
                return response
            finally:
                _record(request, status_code, time.monotonic() - start)
