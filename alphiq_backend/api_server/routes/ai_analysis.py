"""
FastAPI router: POST /ai-analysis.

Rate-limited per client IP, validates the address, pulls the wallet's recent
transactions from the explorer and asks the chat-completion API for a
Markdown summary. The body is parsed by hand so every validation failure
maps to a 400 with a specific message.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request

from alphiq_backend.ai import CompletionClient, CompletionError, build_prompt, summarize_recent_transactions
from alphiq_backend.alphiq_logging import get_logger
from alphiq_backend.analytics.activity import now_millis
from alphiq_backend.api_server.deps import explorer_client, get_app_settings, upstream_transport
from alphiq_backend.api_server.middleware import ApiError, enforce_rate_limit
from alphiq_backend.explorer import ExplorerError
from alphiq_backend.utils.wallet_utils import is_valid_wallet

logger = get_logger(__name__)

router = APIRouter(tags=["ai"])


async def _read_address(request: Request) -> str:
    try:
        body = await request.json()
    except ValueError as e:
        raise ApiError(400, "Invalid JSON body") from e
    address = body.get("address") if isinstance(body, dict) else None
    if not address or not isinstance(address, str):
        raise ApiError(400, "Address is required")
    address = address.strip()
    if not is_valid_wallet(address):
        raise ApiError(400, "Invalid address format")
    return address


@router.post("/ai-analysis")
async def ai_analysis(request: Request) -> dict[str, Any]:
    await enforce_rate_limit(request, "ai_analysis", "Too many requests. Please try again later.")
    address = await _read_address(request)

    settings = get_app_settings(request)
    if not settings.aiml_api_key:
        logger.error("ai_analysis_missing_api_key")
        raise ApiError(503, "Service temporarily unavailable")

    try:
        async with explorer_client(request, timeout=settings.timeout_ai_analysis) as client:
            raw_txs = await client.get_transactions(address)
    except ExplorerError as e:
        logger.error("ai_analysis_tx_fetch_failed", address=address, status=e.status_code, error=str(e))
        raise ApiError(502, "Failed to fetch transaction data") from e

    try:
        recent = summarize_recent_transactions(raw_txs, now_millis())
        logger.info("ai_analysis_prompt_built", address=address, tx_count=len(recent))
        completion = CompletionClient(settings, transport=upstream_transport(request))
        summary = await completion.complete(build_prompt(recent))
    except CompletionError as e:
        if e.status_code == 401:
            raise ApiError(401, "AI API key is invalid or missing") from e
        raise ApiError(502, "AI analysis service unavailable") from e
    except Exception as e:
        logger.exception("ai_analysis_failed", address=address, error=str(e))
        raise ApiError(500, "Internal server error") from e

    logger.info("ai_analysis_completed", address=address, summary_len=len(summary))
    return {"summary": summary}
