"""
GrocerHub Backend — Health Check Route
========================================

What:  Health check endpoint for monitoring and load balancer health checks.
How:   Pings the database and reports each feed provider's circuit breaker.
Who:   Docker health checks, load balancers, monitoring.

Status levels:
    - healthy:   database reachable, every feed circuit closed (HTTP 200)
    - degraded:  database reachable, at least one feed circuit not closed
                 (HTTP 200; syncs for that provider fail fast)
    - unhealthy: database unreachable (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter, Request, Response, status

from grocerhub import __version__
from grocerhub.schemas.common import HealthResponse
from grocerhub.services.circuit_breaker import CircuitBreaker

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    description=(
        "Returns the health of the service and its dependencies: database "
        "connectivity and the circuit breaker state of every partner feed."
    ),
)
async def health_check(request: Request, response: Response) -> HealthResponse:
    overall = "healthy"

    database = request.app.state.database
    db_status = "connected" if await database.ping() else "disconnected"
    if db_status == "disconnected":
        overall = "unhealthy"
        logger.warning("Health check: database unreachable")

    feeds = request.app.state.feed_registry.states()
    if overall == "healthy" and any(state != CircuitBreaker.CLOSED for state in feeds.values()):
        overall = "degraded"

    if overall == "unhealthy":
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        feeds=feeds,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
