"""
Health check endpoints.

Neither endpoint requires the API key:
- /health: Basic liveness check (is the process running?)
- /health/ready: Readiness check (is the configuration complete?)

Readiness deliberately makes no bucket call: probes run often and must
not spend provider requests or depend on provider latency.
"""

import logging

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..dependencies import SettingsDep

logger = logging.getLogger(__name__)

router = APIRouter()

SERVICE_NAME = "s3-proxy"


class HealthResponse(BaseModel):
    """Static liveness payload."""
    status: str
    service: str


class ReadinessCheck(BaseModel):
    """Individual readiness check result."""
    name: str
    status: str  # "ok" or "error"
    error: str | None = None


class ReadinessResponse(BaseModel):
    """Readiness check response with details."""
    status: str  # "ready" or "not_ready"
    service: str
    version: str
    checks: list[ReadinessCheck]


@router.get(
    "",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Basic health check",
    description="Returns 200 if the service is running. Does not check dependencies.",
)
async def health_check() -> HealthResponse:
    return HealthResponse(status="ok", service=SERVICE_NAME)


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    status_code=status.HTTP_200_OK,
    summary="Readiness check",
    description="Returns 200 if the configuration is complete, 503 otherwise.",
    responses={
        503: {
            "description": "Service not ready",
            "model": ReadinessResponse,
        }
    },
)
async def readiness_check(settings: SettingsDep):
    """
    Readiness check - can we serve traffic?

    Reports which settings are missing without revealing any values.
    """
    checks: list[ReadinessCheck] = []

    if settings.api_key:
        checks.append(ReadinessCheck(name="authentication", status="ok"))
    else:
        checks.append(ReadinessCheck(
            name="authentication",
            status="error",
            error="API_KEY not configured",
        ))

    missing = settings.missing_bucket_fields()
    if missing:
        checks.append(ReadinessCheck(
            name="bucket",
            status="error",
            error=f"Missing required fields: {', '.join(missing)}",
        ))
    else:
        checks.append(ReadinessCheck(
            name="bucket",
            status="ok",
            error="mock mode" if settings.s3_mock_mode else None,
        ))

    all_ok = all(check.status == "ok" for check in checks)

    response = ReadinessResponse(
        status="ready" if all_ok else "not_ready",
        service=SERVICE_NAME,
        version=settings.api_version,
        checks=checks,
    )

    if not all_ok:
        logger.warning(
            "Readiness check failed",
            extra={
                "checks": [
                    {"name": c.name, "status": c.status, "error": c.error}
                    for c in checks
                ]
            }
        )
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=response.model_dump(),
        )

    return response
