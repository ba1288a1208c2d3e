"""
Score service: fetch explorer data for an address, run the score engine, persist.

compute_simple_breakdown / compute_score_breakdown raise ExplorerError when the
address itself cannot be fetched; a missing transaction history only zeroes
the activity components. compute_and_store_score never raises: any failure
yields the zero-score fallback so the dashboard always has something to render.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from alphiq_backend.alphiq_logging import bind_address, get_logger
from alphiq_backend.analytics.activity import compute_activity, extract_timestamps, months_since, now_millis
from alphiq_backend.analytics.score_engine import (
    LOWEST_TITLE,
    ScoreBreakdown,
    SimpleBreakdown,
    simple_breakdown,
    weighted_breakdown,
)
from alphiq_backend.database import repositories
from alphiq_backend.explorer.client import ExplorerClient, ExplorerError

logger = get_logger(__name__)

MAX_SCORED_TRANSACTIONS = 300


async def _fetch_timestamps(client: ExplorerClient, address: str, limit: int | None = None) -> list[int]:
    """Best-effort transaction timestamps; [] on any explorer failure."""
    try:
        txs = await client.get_transactions(address, limit=limit)
    except ExplorerError as e:
        logger.error("score_tx_history_failed", address=address, error=str(e))
        return []
    return extract_timestamps(txs)


async def compute_simple_breakdown(
    address: str,
    client: ExplorerClient,
    now_ms: int | None = None,
) -> SimpleBreakdown:
    now_ms = now_ms if now_ms is not None else now_millis()
    info = await client.get_address(address)
    logger.info("score_breakdown_address", address=address, balance=info.balance_alph, tx_number=info.tx_number)

    timestamps = await _fetch_timestamps(client, address)
    months = months_since(min(timestamps), now_ms) if timestamps else 0
    result = simple_breakdown(info.balance_alph, info.tx_number, months)
    logger.info(
        "score_breakdown_computed",
        address=address,
        balance_score=result.balance_score,
        age_score=result.age_score,
        total_score=result.total_score,
    )
    return result


async def compute_score_breakdown(
    address: str,
    client: ExplorerClient,
    now_ms: int | None = None,
) -> ScoreBreakdown:
    """Single source of truth for the weighted score shown in the UI and persisted."""
    now_ms = now_ms if now_ms is not None else now_millis()
    info = await client.get_address(address)
    timestamps = await _fetch_timestamps(client, address, limit=MAX_SCORED_TRANSACTIONS)
    stats = compute_activity(timestamps, now_ms)
    breakdown = weighted_breakdown(address, info.balance_alph, info.tx_number, stats, now_ms)
    logger.info(
        "score_computed",
        address=address,
        total_score=breakdown.total_score,
        title=breakdown.title,
        parts={k: round(v, 2) for k, v in vars(breakdown.parts).items()},
    )
    return breakdown


def _persist(address: str, score: int, title: str, now: datetime) -> None:
    """Write users + daily snapshot; failures are logged and swallowed."""
    log = bind_address(address, __name__)
    try:
        repositories.upsert_user_score(address, score, title, now=now)
    except Exception as e:
        log.error("score_users_upsert_error", error=str(e))
    try:
        repositories.upsert_score_snapshot(address, now.date(), score, title, now=now)
    except Exception as e:
        log.error("score_history_upsert_error", error=str(e))


async def compute_and_store_score(
    address: str,
    client: ExplorerClient,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Compute the weighted score, persist it, and return {score, title}. Never raises."""
    now = now or datetime.now(timezone.utc)
    log = bind_address(address, __name__)
    try:
        detail = await compute_score_breakdown(address, client, now_ms=int(now.timestamp() * 1000))
    except Exception as e:
        log.error("compute_and_store_score_failed", error=str(e))
        return {"score": 0, "title": LOWEST_TITLE}
    _persist(address, detail.total_score, detail.title, now)
    log.info("score_stored", total_score=detail.total_score, title=detail.title)
    return {"score": detail.total_score, "title": detail.title}
