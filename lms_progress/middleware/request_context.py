"""Request context middleware: one id per request, on every log line.

Concurrent requests interleave their log lines:

  INFO  Issued complete certificate CMP-0003-00042-20260105093000
  INFO  Breakpoint 75% reached in unit 9 (combined 76.00)
  ERROR Rendering certificate CMP-0003-00042-20260105093000 failed

The request id ties each line back to the call that produced it.  A
client may send its own X-Request-ID (an LMS frontend that already tags
its calls, say); otherwise a UUID is generated.  The id is echoed back
on the response.

The id is stored in lms_progress.core.logging.request_id_var.  Starlette
copies the context into the threadpool that runs the sync route
handlers, so service code logging from those threads sees the id of its
own request.
"""

from __future__ import annotations

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from lms_progress.core.logging import request_id_var

logger = logging.getLogger(__name__)

_HEADER = "X-Request-ID"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Assign a request id, time the request, log one summary line."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        req_id = request.headers.get(_HEADER) or str(uuid.uuid4())
        token = request_id_var.set(req_id)
        start = time.monotonic()
        try:
            response = await call_next(request)
            duration_ms = round((time.monotonic() - start) * 1000, 1)
            # 4xx/5xx at WARNING so an error-only log stream still shows them
            level = logging.WARNING if response.status_code >= 400 else logging.INFO
            logger.log(
                level,
                "%s %s -> %d (%.1fms)",
                request.method,
                request.url.path,
                response.status_code,
                duration_ms,
                extra={
                    "request_id": req_id,
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": response.status_code,
                    "duration_ms": duration_ms,
                },
            )
            response.headers[_HEADER] = req_id
            return response
        finally:
            request_id_var.reset(token)
