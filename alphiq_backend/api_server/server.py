"""
FastAPI server: dashboard backend API.

Mounts the score, AI analysis, blog, network and quest routers under /api,
wires per-endpoint rate limiters and renders every error as {"error": ...}.
Config via env (see alphiq_backend.config).
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from alphiq_backend.alphiq_logging import get_logger
from alphiq_backend.api_server.middleware import ApiError, log_requests
from alphiq_backend.api_server.rate_limit import build_rate_limiter
from alphiq_backend.api_server.routes import ai_analysis, blogs, network, quests, score
from alphiq_backend.config import Settings, get_settings, validate_settings
from alphiq_backend.database import init_db

logger = get_logger(__name__)


# -----------------------------------------------------------------------------
# Lifespan: create tables, report configuration gaps (never blocks startup)
# -----------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    for warning in validate_settings(settings):
        logger.warning("config_warning", message=warning)
    try:
        init_db()
    except Exception as e:
        logger.warning("database_init_skip", error=str(e))
    logger.info("api_started", environment=settings.environment, version=settings.version)
    yield
    logger.info("api_stopped")


# -----------------------------------------------------------------------------
# Error handlers
# -----------------------------------------------------------------------------


def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Consistent JSON error response for HTTPException (404 routes, 405, ...)."""
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})


def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last resort: unexpected failures still answer {"error": ...} with 500."""
    logger.error("unhandled_exception", path=request.url.path, error_type=type(exc).__name__, error=str(exc))
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path"))
    message = f"Invalid {field}" if field else "Invalid request"
    logger.info("request_validation_failed", path=request.url.path, errors=len(errors))
    return JSONResponse(status_code=400, content={"error": message})


# -----------------------------------------------------------------------------
# App factory
# -----------------------------------------------------------------------------


def create_app(
    settings: Settings | None = None,
    upstream_transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Build the ASGI app. upstream_transport replaces outbound HTTP (tests)."""
    settings = settings or get_settings()
    app = FastAPI(
        title="AlphIQ Dashboard API",
        description="On-chain scores, AI wallet summaries, blog feed and quest XP for Alephium wallets.",
        version=settings.version,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.upstream_transport = upstream_transport
    app.state.rate_limiters = {
        "ai_analysis": build_rate_limiter(
            settings.rate_limit_ai_analysis, settings.rate_limit_window_sec, settings.redis_url, name="ai_analysis"
        ),
        "blogs": build_rate_limiter(
            settings.rate_limit_default, settings.rate_limit_window_sec, settings.redis_url, name="blogs"
        ),
    }

    app.middleware("http")(log_requests)
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    for module in (score, ai_analysis, blogs, network, quests):
        app.include_router(module.router, prefix="/api")

    @app.get("/health")
    def health() -> dict[str, Any]:
        """Liveness check: API is up."""
        return {"status": "ok", "version": settings.version, "environment": settings.environment}

    return app


app = create_app()
