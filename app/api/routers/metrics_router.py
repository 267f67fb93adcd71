# app/api/routers/metrics_router.py
"""
Prometheus metrics endpoint
"""

from fastapi import APIRouter, Response
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
import logging

# Registers the service counters with the default registry
import app.infra.metrics.message_metrics  # noqa: F401

log = logging.getLogger("message_service.metrics")

router = APIRouter(tags=["Monitoring"])


@router.get("/metrics")
async def prometheus_metrics():
    """
    Prometheus metrics endpoint

    Exposes in Prometheus text format:
    - Cache hits/misses/errors per key family
    - Published and consumed message events
    - Throttled HTTP requests

    Usage:
        curl http://localhost:3000/metrics
    """
    try:
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
    except Exception as e:
        log.error(f"Failed to generate metrics: {e}", exc_info=True)
        return Response(
            content=f"# Error generating metrics: {str(e)}\n",
            media_type="text/plain",
            status_code=500
        )
