"""
Brewprint Backend — Health Check Route
=======================================

What:  Health check endpoint for monitoring and load balancer checks.
How:   Checks the database (critical) and the backup directory (non-critical).
Who:   Called by Docker health checks, load balancers, and monitoring systems.

Status levels:
    - healthy:   All dependencies operational
    - degraded:  Backup directory not writable; recipes still work (HTTP 200)
    - unhealthy: Database unreachable (HTTP 200 with status flag, stop routing traffic)
"""

import logging
import os
import time

from fastapi import APIRouter
from sqlalchemy import text

from brewprint import __version__
from brewprint.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

# Initialized once when the module loads
_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check() -> HealthResponse:
    """
    Ping the database with SELECT 1 and check the backup directory is writable.
    """
    db_status = "connected"
    storage_status = "writable"
    overall = "healthy"

    # ── Check Database ────────────────────────────────────────────────────
    try:
        from brewprint.database import engine
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    # ── Check Backup Storage ──────────────────────────────────────────────
    from brewprint.services.backup_file_service import backup_file_service
    if not os.access(backup_file_service.backup_dir, os.W_OK):
        storage_status = "unavailable"
        overall = "degraded" if overall != "unhealthy" else overall
        logger.warning("Health check: backup directory not writable: %s", backup_file_service.backup_dir)

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        storage=storage_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
