"""
Health check endpoints.

We provide two endpoints:
- /api/health: Liveness plus a database round trip (SELECT 1)
- /api/health/ready: Readiness check across configuration, database and
  storage; 503 if any of them fails

The distinction matters in orchestration systems like Kubernetes
where liveness and readiness have different behaviors.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ...core.timestamps import isoformat_utc
from ..dependencies import DatabaseDep, SettingsDep, StorageClientDep
from ..errors import ApiError, error_response, success_response

logger = logging.getLogger(__name__)

router = APIRouter()


class ReadinessCheck(BaseModel):
    """Individual readiness check result."""
    name: str
    status: str  # "ok" or "error"
    error: Optional[str] = None


@router.get("", summary="Basic health check")
async def health_check(database: DatabaseDep) -> JSONResponse:
    """
    Is the process alive and can it reach the database?

    Returns 500 HEALTH_CHECK_FAILED if SELECT 1 fails.
    """
    try:
        await run_in_threadpool(database.ping)
    except Exception as e:
        logger.error("Health check failed", extra={"error": str(e)})
        raise ApiError(
            500,
            "HEALTH_CHECK_FAILED",
            "Database connection failed",
            debug=str(e),
        )

    return success_response({
        "status": "ok",
        "database": "connected",
        "timestamp": isoformat_utc(datetime.now(timezone.utc)),
    })


@router.get(
    "/ready",
    summary="Readiness check",
    responses={503: {"description": "Service not ready"}},
)
async def readiness_check(
    settings: SettingsDep,
    database: DatabaseDep,
    storage: StorageClientDep,
) -> JSONResponse:
    """
    Readiness check - can we serve traffic?

    Returns 503 SERVICE_NOT_READY if any check fails, which tells load
    balancers not to route traffic here. The per-check results are in
    the error details.
    """
    checks: list[ReadinessCheck] = []

    missing_fields = settings.validate_required_fields()
    if missing_fields:
        checks.append(ReadinessCheck(
            name="configuration",
            status="error",
            error=f"Missing required fields: {', '.join(missing_fields)}",
        ))
    else:
        checks.append(ReadinessCheck(name="configuration", status="ok"))

    try:
        await run_in_threadpool(database.ping)
        checks.append(ReadinessCheck(name="database", status="ok"))
    except Exception as e:
        logger.error("Database readiness check failed", extra={"error": str(e)})
        checks.append(ReadinessCheck(name="database", status="error", error=str(e)))

    if await storage.test_connection():
        checks.append(ReadinessCheck(name="storage", status="ok"))
    else:
        checks.append(ReadinessCheck(
            name="storage",
            status="error",
            error="Bucket not reachable",
        ))

    all_ok = all(check.status == "ok" for check in checks)
    data = {
        "status": "ready" if all_ok else "not_ready",
        "version": settings.api_version,
        "checks": [check.model_dump(exclude_none=True) for check in checks],
    }

    if not all_ok:
        logger.warning(
            "Readiness check failed",
            extra={"checks": data["checks"]},
        )
        return error_response(
            status.HTTP_503_SERVICE_UNAVAILABLE,
            "SERVICE_NOT_READY",
            "Service not ready",
            details=data,
        )

    return success_response(data)
