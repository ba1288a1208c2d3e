"""
FastAPI router: on-chain score endpoints.

GET  /score-breakdown?address=  documented balance + tenure breakdown
GET  /score?address=            weighted six-component breakdown
POST /score                     compute, persist and return {score, title}
GET  /score-history/{address}   daily snapshots for the history chart
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Query, Request
from pydantic import BaseModel, Field

from alphiq_backend.alphiq_logging import get_logger
from alphiq_backend.analytics.score_service import (
    compute_and_store_score,
    compute_score_breakdown,
    compute_simple_breakdown,
)
from alphiq_backend.api_server.deps import explorer_client
from alphiq_backend.api_server.middleware import ApiError
from alphiq_backend.database import repositories
from alphiq_backend.explorer import ExplorerError

logger = get_logger(__name__)

router = APIRouter(tags=["score"])


class ScoreRequest(BaseModel):
    """POST /score body."""

    address: str = Field(..., min_length=1, max_length=128, description="Alephium address")


def _require_address(address: str | None) -> str:
    address = (address or "").strip()
    if not address:
        raise ApiError(400, "Address parameter is required")
    return address


@router.get("/score-breakdown")
async def get_score_breakdown(request: Request, address: str | None = None) -> dict[str, Any]:
    address = _require_address(address)
    try:
        async with explorer_client(request) as client:
            result = await compute_simple_breakdown(address, client)
    except ExplorerError as e:
        logger.error("score_breakdown_failed", address=address, error=str(e))
        raise ApiError(500, "Failed to compute score breakdown") from e
    return result.to_dict()


@router.get("/score")
async def get_score(request: Request, address: str | None = None) -> dict[str, Any]:
    address = _require_address(address)
    try:
        async with explorer_client(request) as client:
            result = await compute_score_breakdown(address, client)
    except ExplorerError as e:
        logger.error("score_fetch_failed", address=address, error=str(e), status=e.status_code)
        raise ApiError(502, "Failed to fetch address data") from e
    return result.to_dict()


@router.post("/score")
async def post_score(request: Request, body: ScoreRequest) -> dict[str, Any]:
    """Never fails once an address is given: upstream errors yield the zero score."""
    address = _require_address(body.address)
    async with explorer_client(request) as client:
        return await compute_and_store_score(address, client)


@router.get("/score-history/{address}")
def get_score_history(address: str, limit: int = Query(30, ge=1, le=365)) -> dict[str, Any]:
    address = _require_address(address)
    try:
        history = repositories.get_score_history(address, limit=limit)
    except Exception as e:
        logger.exception("score_history_failed", address=address, error=str(e))
        raise ApiError(500, "Failed to load score history") from e
    return {"address": address, "history": history}
