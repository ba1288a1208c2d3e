"""
Network-wide statistics and ALPH holder distribution from the explorer.

Network stats degrade to zeros on any upstream failure (dashboard ticker).
Token distribution raises ExplorerError; the route maps it to 502.
"""

from __future__ import annotations

import time
from dataclasses import asdict, dataclass
from typing import Any

from alphiq_backend.alphiq_logging import get_logger
from alphiq_backend.explorer.client import ATTO_PER_ALPH, ExplorerClient, ExplorerError, parse_atto

logger = get_logger(__name__)

HASHRATE_WINDOW_MS = 60 * 60 * 1000
TOP_HOLDERS = 7


@dataclass
class NetworkStats:
    total_tx: int = 0
    hashrate_ph: float = 0.0
    total_alph: float = 0.0
    circulating_alph: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalTx": self.total_tx,
            "hashratePh": self.hashrate_ph,
            "totalAlph": self.total_alph,
            "circulatingAlph": self.circulating_alph,
        }


@dataclass
class HolderInfo:
    address: str
    short: str
    balance: float
    pct: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


async def fetch_network_stats(client: ExplorerClient, now_ms: int | None = None) -> NetworkStats:
    """Total tx, current hashrate (PH/s) and supply. Any failure → all zeros."""
    to_ts = now_ms if now_ms is not None else int(time.time() * 1000)
    from_ts = to_ts - HASHRATE_WINDOW_MS
    try:
        total_tx = await client.get_total_transactions()
        rates = await client.get_hashrates(from_ts, to_ts)
        last_rate = float(rates[-1].get("value") or 0) if rates else 0.0
        total_alph = await client.get_total_alph()
        circulating_alph = await client.get_circulating_alph()
    except (ExplorerError, TypeError, ValueError, AttributeError) as e:
        logger.error("network_stats_fetch_error", error=str(e))
        return NetworkStats()
    return NetworkStats(
        total_tx=total_tx,
        hashrate_ph=round(last_rate / 1e15, 2),
        total_alph=round(total_alph, 2),
        circulating_alph=round(circulating_alph, 2),
    )


def shorten_address(address: str) -> str:
    return f"{address[:6]}…{address[-6:]}"


async def fetch_token_distribution(client: ExplorerClient, top: int = TOP_HOLDERS) -> list[HolderInfo]:
    """Top ALPH holders with balance in ALPH and share of total supply (percent)."""
    holders = await client.get_alph_holders()
    supply = await client.get_total_alph()
    out: list[HolderInfo] = []
    for h in holders[:top]:
        if not isinstance(h, dict) or not h.get("address"):
            continue
        try:
            alph = parse_atto(h.get("balance")) / ATTO_PER_ALPH
        except ValueError as e:
            raise ExplorerError(f"malformed holder balance: {e}") from e
        pct = alph / supply * 100 if supply else 0.0
        addr = str(h["address"])
        out.append(
            HolderInfo(
                address=addr,
                short=shorten_address(addr),
                balance=round(alph, 2),
                pct=round(pct, 2),
            )
        )
    return out
