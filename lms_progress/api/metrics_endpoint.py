"""GET /metrics for the Prometheus scraper.

Plain-text exposition format, not JSON:

  # HELP certificates_issued_total Certificates created, by certificate type
  # TYPE certificates_issued_total counter
  certificates_issued_total{type="virtual"} 118.0
  certificates_issued_total{type="complete"} 64.0

The numbers reveal enrollment and completion volumes, so keep the
endpoint off the public ingress in production.
"""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, generate_latest

router = APIRouter(tags=["observability"])


@router.get("/metrics", include_in_schema=False)
def metrics() -> Response:
    return Response(content=generate_latest(REGISTRY), media_type=CONTENT_TYPE_LATEST)
