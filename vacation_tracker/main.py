"""
Main FastAPI application entry point.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from vacation_tracker import __version__
from vacation_tracker.config import Settings, get_settings
from vacation_tracker.exceptions import AppError, CredentialError, ValidationError
from vacation_tracker.schemas.base import format_error_messages
from vacation_tracker.services.cache import TimedValue, VacationCache
from vacation_tracker.services.credentials import build_credential_router
from vacation_tracker.services.github_client import build_http_client
from vacation_tracker.services.reauth import ReauthSignal

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    level = logging.DEBUG if settings.debug else getattr(
        logging, settings.log_level.upper(), logging.INFO
    )
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def error_response(exc: AppError, **extra) -> JSONResponse:
    content = {"error": exc.message}
    if exc.extra_detail:
        content["detail"] = exc.extra_detail
    content.update(extra)
    return JSONResponse(
        status_code=exc.status_code,
        content=content,
        headers=getattr(exc, "headers", None),
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan handler.
    Closes the shared GitHub connection pool on shutdown.
    """
    settings = app.state.settings
    logger.info("Starting Vacation Tracker API v%s", __version__)
    logger.info("Auth provider: %s", app.state.credentials.provider)
    if not settings.repository_configured:
        logger.warning("GITHUB_OWNER / GITHUB_REPO are not set; GitHub calls will fail")

    yield

    await app.state.http.aclose()
    logger.info("Vacation Tracker API shutdown complete")


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(CredentialError)
    async def credential_error_handler(request: Request, exc: CredentialError):
        """Ask for re-authentication once, however many requests fail together."""
        first = request.app.state.reauth.trigger()
        return error_response(exc, reauth=first)

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        return error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        """Every violated field, joined into one message."""
        return error_response(ValidationError.from_messages(format_error_messages(exc.errors())))

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Handle uncaught exceptions."""
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error"},
        )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title=settings.app_name,
        version=__version__,
        description="Team vacation board backed by GitHub Issues",
        lifespan=lifespan,
        docs_url="/api/docs" if settings.debug else None,
        redoc_url="/api/redoc" if settings.debug else None,
        openapi_url="/api/openapi.json" if settings.debug else None,
    )

    # Shared state: one connection pool, one credential strategy, app-wide caches
    app.state.settings = settings
    app.state.http = build_http_client(settings.github_api_url, settings.http_timeout)
    app.state.credentials = build_credential_router(settings, app.state.http)
    app.state.vacation_cache = VacationCache(settings.cache_max_windows)
    app.state.team_cache = TimedValue(settings.team_config_ttl_seconds)
    app.state.reauth = ReauthSignal(settings.reauth_reset_seconds)
    app.state.reauth.subscribe(
        lambda: logger.warning("GitHub rejected the user token; re-authentication requested")
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$",
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from vacation_tracker.routers import health, team, vacations

    app.include_router(health.router, tags=["Health"])
    app.include_router(team.router, prefix="/api", tags=["Team"])
    app.include_router(vacations.router, prefix="/api", tags=["Vacations"])

    register_exception_handlers(app)

    return app


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "vacation_tracker.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=settings.port,
        reload=settings.debug,
    )
