"""
HTTP middleware: request logging, client identification, rate limiting.

Responsibilities:
- Request/response logging with timing.
- Client IP resolution (first x-forwarded-for entry).
- Per-endpoint rate limiting through app.state.rate_limiters.
- ApiError: raised by routes, rendered as {"error": message} by the server.
"""

from __future__ import annotations

import time
from typing import Awaitable, Callable

from fastapi import Request, Response

from alphiq_backend.alphiq_logging import bind_request_context, clear_request_context, get_logger

logger = get_logger(__name__)

UNKNOWN_CLIENT = "unknown"


class ApiError(Exception):
    """HTTP error with a client-facing message."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for", "")
    first = forwarded.split(",")[0].strip()
    return first or UNKNOWN_CLIENT


async def enforce_rate_limit(request: Request, name: str, message: str = "Too many requests") -> None:
    """Raise ApiError(429) when the named limiter rejects this client."""
    limiter = request.app.state.rate_limiters[name]
    ip = client_ip(request)
    if not await limiter.allow(ip):
        logger.warning("rate_limit_exceeded", limiter=name, client_ip=ip)
        raise ApiError(429, message)


async def log_requests(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    clear_request_context()
    bind_request_context(method=request.method, path=request.url.path, client_ip=client_ip(request))
    start = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception:
        logger.exception("http_request_failed")
        raise
    duration_ms = (time.perf_counter() - start) * 1000
    logger.info(
        "http_request",
        status=response.status_code,
        duration_ms=round(duration_ms, 2),
    )
    return response
