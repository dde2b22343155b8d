# ============================================================================
# HEALTH CHECK ROUTER
# ============================================================================
# EPOCH: 1 - HEALTH AGGREGATION
# STATUS: Infrastructure - FastAPI health endpoint
# PURPOSE: Kubernetes probe endpoint serving the plain-text report
# CREATED: 19 OCT 2026
# ============================================================================
"""
Health Check Router

Endpoints:
    GET /health        - Consolidated health report (plain text)
    GET /health/{any}  - Same report; probes may append any sub-path

Response Codes:
    200 - Healthy, or still inside the startup grace window
    5xx - Unhealthy (errorStatusCode, 501 by default)

Body:
    time: 1760875200000 Sun Oct 19 12:00:00 UTC 2026
    Bundle: worker
    Log: .*MemoryError.*
    memory: INFO 41.2% used
    status: error
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import PlainTextResponse

from health.service import HealthService

logger = logging.getLogger(__name__)

health_router = APIRouter(tags=["Health"])

_service: Optional[HealthService] = None


def set_health_service(service: Optional[HealthService]) -> None:
    """Set the service answering probe requests (called by main app)."""
    global _service
    _service = service


def get_health_service() -> HealthService:
    if _service is None:
        raise HTTPException(status_code=503, detail="Health service not initialized")
    return _service


async def _respond(service: HealthService) -> PlainTextResponse:
    report = await service.evaluate()
    return PlainTextResponse(report.render(), status_code=report.status_code)


@health_router.get("/health", response_class=PlainTextResponse)
async def health_probe(service: HealthService = Depends(get_health_service)):
    """
    Kubernetes liveness/readiness probe.

    Returns the consolidated report. Orchestrators only look at the
    status code; the body explains a failure to humans.
    """
    return await _respond(service)


@health_router.get("/health/{probe_path:path}", response_class=PlainTextResponse)
async def health_probe_path(
    probe_path: str,
    service: HealthService = Depends(get_health_service),
):
    """Same report for any sub-path below /health."""
    return await _respond(service)


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "health_router",
    "set_health_service",
    "get_health_service",
]
