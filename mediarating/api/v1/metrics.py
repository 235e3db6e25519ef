"""
Prometheus metrics endpoint.

This module provides a /metrics endpoint compatible with Prometheus scraping.
"""
import logging
from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.status import HTTP_503_SERVICE_UNAVAILABLE

from mediarating.core.config import settings
from mediarating.observability import REGISTRY

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/metrics",
    include_in_schema=False,
    response_class=Response,
)
async def prometheus_metrics() -> Response:
    """
    Prometheus metrics endpoint.

    Note: This endpoint is intentionally unauthenticated to allow Prometheus
    scrapers to collect metrics. No respondent emails or tokens are ever used
    as metric labels.
    """
    if not settings.PROMETHEUS_METRICS_ENABLED:
        return Response(
            content="# Prometheus endpoint not enabled (set PROMETHEUS_METRICS_ENABLED=true)\n",
            media_type="text/plain; version=0.0.4",
            status_code=HTTP_503_SERVICE_UNAVAILABLE,
        )

    return Response(content=generate_latest(REGISTRY), media_type=CONTENT_TYPE_LATEST)
