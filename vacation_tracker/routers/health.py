"""
Health check endpoints.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Request
from pydantic import BaseModel

from vacation_tracker import __version__

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    version: str
    backend: str
    auth_provider: str
    repository: str | None
    timestamp: str


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request):
    """
    Health check endpoint.
    Reports configuration only; GitHub is not called so health checks
    do not spend API quota.
    """
    settings = request.app.state.settings
    repository = (
        f"{settings.github_owner}/{settings.github_repo}"
        if settings.repository_configured
        else None
    )

    return HealthResponse(
        status="ok",
        version=__version__,
        backend="python-fastapi",
        auth_provider=request.app.state.credentials.provider,
        repository=repository,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )


@router.get("/api/health")
async def api_health_check(request: Request):
    """
    API prefixed health check (for consistency with /api/* routes).
    """
    return await health_check(request)
