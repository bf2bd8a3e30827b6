"""
Health Check Endpoints.

    GET /health        liveness, answers while the process is up
    GET /health/ready  readiness, 503 unless the notes database answers
"""

import asyncio
import time
from typing import Any

from fastapi import APIRouter, HTTPException
from sqlalchemy import text

from modules.backend.core.config import get_app_config
from modules.backend.core.database import get_engine
from modules.backend.core.logging import get_logger
from modules.backend.core.utils import utc_now

router = APIRouter()
logger = get_logger(__name__)


async def check_database() -> dict[str, Any]:
    """Run SELECT 1 on a pooled connection and report status with latency."""
    started = time.perf_counter()
    try:
        async with get_engine().connect() as connection:
            await connection.execute(text("SELECT 1"))
    except Exception as e:
        logger.warning("Database health check failed", extra={"error": str(e)})
        return {"status": "unhealthy", "error": str(e)}

    return {
        "status": "healthy",
        "latency_ms": int((time.perf_counter() - started) * 1000),
    }


def _report(checks: dict[str, dict[str, Any]]) -> dict[str, Any]:
    healthy = all(check["status"] == "healthy" for check in checks.values())
    return {
        "status": "healthy" if healthy else "unhealthy",
        "checks": checks,
        "timestamp": utc_now().isoformat(),
    }


@router.get("/health")
async def health_check() -> dict[str, str]:
    """Liveness check. No dependencies are touched."""
    return {"status": "healthy"}


@router.get("/health/ready")
async def readiness_check() -> dict[str, Any]:
    """
    Readiness check.

    The database probe is bounded by application.yaml timeouts.ready_check;
    a probe that does not finish in time counts as unhealthy.
    """
    timeout = get_app_config().application.timeouts.ready_check

    try:
        async with asyncio.timeout(timeout):
            database = await check_database()
    except TimeoutError:
        database = {"status": "unhealthy", "error": f"timed out after {timeout}s"}

    report = _report({"database": database})
    if report["status"] != "healthy":
        logger.warning("Readiness check failed", extra={"checks": report["checks"]})
        raise HTTPException(status_code=503, detail=report)
    return report
