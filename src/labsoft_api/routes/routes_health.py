"""Health check endpoints for monitoring application status."""

from datetime import datetime
from datetime import timezone

from fastapi import APIRouter
from fastapi import Request
from fastapi import status
from fastapi.responses import JSONResponse
from loguru import logger

ROUTER_HEALTH = APIRouter(tags=["Health"])

SERVICE_NAME = "Lab Software Requests API"
SERVICE_VERSION = "v1"


@ROUTER_HEALTH.get(
    "/health",
    summary="Health check endpoint",
    description="Basic health check that returns application status and metadata",
    responses={
        status.HTTP_200_OK: {
            "description": "Application is healthy",
            "content": {
                "application/json": {
                    "example": {
                        "status": "healthy",
                        "timestamp": "2026-01-05T12:00:00.000000Z",
                        "service": SERVICE_NAME,
                        "version": SERVICE_VERSION,
                    }
                }
            },
        }
    },
)
async def health_check(request: Request):
    """
    Basic health check endpoint.

    Returns application status and metadata. This endpoint is lightweight
    and does not perform any external dependency checks.
    """
    response_data = {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "storage": "postgresql" if hasattr(request.app.state, "domain_db_pool") else "in-memory",
    }

    logger.debug("Health check requested", status="healthy")

    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content=response_data,
    )


@ROUTER_HEALTH.get(
    "/health/live",
    summary="Liveness probe",
    description="Returns 200 as long as the process is serving requests",
)
async def liveness_check():
    """Liveness probe used by container orchestrators."""
    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content={"status": "alive", "timestamp": datetime.now(timezone.utc).isoformat()},
    )


@ROUTER_HEALTH.get(
    "/health/ready",
    summary="Readiness probe",
    description="Checks configuration, token verification and request storage",
    responses={
        status.HTTP_200_OK: {"description": "Application is ready to serve requests"},
        status.HTTP_503_SERVICE_UNAVAILABLE: {"description": "One or more checks failed"},
    },
)
async def readiness_check(request: Request):
    """
    Readiness probe.

    Checks:
    - settings: application settings are loaded
    - authentication: at least one token key source is configured
    - storage: the database answers (always ok for the in-memory store)
    """
    settings = getattr(request.app.state, "settings", None)

    checks = {
        "settings": "ok" if settings is not None else "missing",
        "authentication": "ok" if settings is not None and settings.token_verification_configured else "not configured",
    }

    domain_db_pool = getattr(request.app.state, "domain_db_pool", None)
    if domain_db_pool is None:
        checks["storage"] = "ok"
    else:
        checks["storage"] = "ok" if await domain_db_pool.health_check() else "unavailable"

    ready = all(result == "ok" for result in checks.values())
    if not ready:
        logger.warning("Readiness check failed", checks=checks)

    return JSONResponse(
        status_code=status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "ready" if ready else "not ready",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "checks": checks,
        },
    )
