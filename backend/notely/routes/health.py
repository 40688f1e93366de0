"""
Notely Backend - Health Check Routes
=====================================

What:  GET / (liveness ping) and GET /health (dependency status).
How:   /health runs SELECT 1 against the database and pings the rate-limit
       window store.
Who:   Called by Docker health checks, load balancers, and monitoring systems.

Status levels:
    - healthy:   database and window store reachable
    - unhealthy: either one unreachable; every API request would fail
                 (the distributed limiter fails closed without its store)
"""

import logging
import time

from fastapi import APIRouter, Request
from sqlalchemy import text

from notely import __version__
from notely.database import engine
from notely.schemas.note import HealthResponse, MessageResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get("/", response_model=MessageResponse, summary="API liveness ping")
async def root() -> MessageResponse:
    return MessageResponse(message="API is Running")


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    description=(
        "Returns the health status of the backend service and its dependencies. "
        "Excluded from rate limiting."
    ),
)
async def health_check(request: Request) -> HealthResponse:
    db_status = "connected"
    store_status = "connected"
    overall = "healthy"

    # ── Check Database ────────────────────────────────────────────────────
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    # ── Check Rate Limit Store ────────────────────────────────────────────
    store = request.app.state.window_store
    if not await store.ping():
        store_status = "disconnected"
        overall = "unhealthy"

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        rate_limit_store=store_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
