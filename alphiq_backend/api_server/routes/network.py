"""
FastAPI router: network-wide explorer statistics.

GET /network-stats        total tx, hashrate, supply (zeros when the explorer is down)
GET /token-distribution   top ALPH holders with share of total supply
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request

from alphiq_backend.alphiq_logging import get_logger
from alphiq_backend.api_server.deps import explorer_client
from alphiq_backend.api_server.middleware import ApiError
from alphiq_backend.explorer import ExplorerError
from alphiq_backend.explorer.stats import fetch_network_stats, fetch_token_distribution

logger = get_logger(__name__)

router = APIRouter(tags=["network"])


@router.get("/network-stats")
async def get_network_stats(request: Request) -> dict[str, Any]:
    async with explorer_client(request) as client:
        stats = await fetch_network_stats(client)
    return stats.to_dict()


@router.get("/token-distribution")
async def get_token_distribution(request: Request) -> dict[str, Any]:
    try:
        async with explorer_client(request) as client:
            holders = await fetch_token_distribution(client)
    except ExplorerError as e:
        logger.error("token_distribution_failed", error=str(e), status=e.status_code)
        raise ApiError(502, "Failed to fetch token distribution") from e
    return {"holders": [h.to_dict() for h in holders]}
