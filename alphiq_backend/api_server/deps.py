"""Request-scoped helpers shared by the routers."""

from __future__ import annotations

import httpx
from fastapi import Request

from alphiq_backend.config import Settings
from alphiq_backend.explorer import ExplorerClient


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def upstream_transport(request: Request) -> httpx.AsyncBaseTransport | None:
    """Transport override for outbound HTTP (tests inject httpx.MockTransport)."""
    return getattr(request.app.state, "upstream_transport", None)


def explorer_client(request: Request, timeout: float | None = None) -> ExplorerClient:
    return ExplorerClient(
        get_app_settings(request),
        timeout=timeout,
        transport=upstream_transport(request),
    )
