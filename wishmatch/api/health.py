"""
Health check endpoints.

Provides liveness and readiness probes. Readiness reflects whether the
oracle backend can answer lookups without first loading the card dataset.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel

from wishmatch.services.oracle_resolver import OracleBackend, get_oracle_backend

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    resolver: str | None = None


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """
    Liveness probe.

    Returns healthy if the service is running.
    Does not check dependencies.
    """
    return HealthResponse(status="healthy")


@router.get(
    "/ready",
    response_model=HealthResponse,
    responses={503: {"model": HealthResponse}},
)
async def ready(
    response: Response,
    backend: Annotated[OracleBackend, Depends(get_oracle_backend)],
) -> HealthResponse:
    """
    Readiness probe.

    Returns 503 until the reference index has been built (local mode).
    Remote mode is always ready.
    """
    if backend.ready:
        return HealthResponse(status="ready", resolver="loaded")
    response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return HealthResponse(status="not ready", resolver="loading")
