"""
Activity aggregates from transaction timestamps (epoch milliseconds).

Recency windows (7/30/90 days), first/last activity, and the 12-month
consistency picture (active UTC months and evenness of monthly counts).
Pure functions; `now_ms` is injected so results are reproducible.
"""

from __future__ import annotations

import math
import time
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable

MS_PER_DAY = 24 * 60 * 60 * 1000
MS_PER_MONTH = 30 * MS_PER_DAY
MS_PER_YEAR = 365 * MS_PER_DAY

# Sentinel for "never transacted"
NO_ACTIVITY_DAYS = 1_000_000_000


def now_millis() -> int:
    return int(time.time() * 1000)


def extract_timestamps(txs: Iterable[Any]) -> list[int]:
    """Numeric, non-zero `timestamp` values from raw explorer tx dicts; everything else is skipped."""
    out: list[int] = []
    for tx in txs:
        ts = tx.get("timestamp") if isinstance(tx, dict) else None
        if isinstance(ts, bool) or not isinstance(ts, (int, float)):
            continue
        if ts:
            out.append(int(ts))
    return out


def days_between(now_ms: int, ts: int) -> int:
    return math.floor((now_ms - ts) / MS_PER_DAY)


def months_since(first_ts: int | None, now_ms: int) -> int:
    """Whole 30-day months since first_ts; 0 when there is no history."""
    if not first_ts:
        return 0
    return math.floor((now_ms - first_ts) / MS_PER_MONTH)


def month_key(ts: int) -> str:
    d = datetime.fromtimestamp(ts / 1000, tz=timezone.utc)
    return f"{d.year}-{d.month:02d}"


def evenness(counts: Iterable[int]) -> float:
    """1 - coefficient of variation of monthly counts, clamped to 0..1 (1 = perfectly even)."""
    values = list(counts)
    if not values:
        return 0.0
    avg = sum(values) / len(values)
    if avg <= 0:
        return 0.0
    variance = sum((v - avg) ** 2 for v in values) / len(values)
    std = math.sqrt(variance)
    return min(1.0, max(0.0, 1 - std / (avg + 1e-6)))


@dataclass
class ActivityStats:
    first_ts: int | None = None
    last_ts: int | None = None
    last7: int = 0
    last30: int = 0
    last90: int = 0
    days_since_last: int = NO_ACTIVITY_DAYS
    month_counts: dict[str, int] = field(default_factory=dict)
    evenness: float = 0.0

    @property
    def active_months_12(self) -> int:
        return len(self.month_counts)


def compute_activity(timestamps: list[int], now_ms: int) -> ActivityStats:
    if not timestamps:
        return ActivityStats()

    first_ts = min(timestamps)
    last_ts = max(timestamps)
    ages = [days_between(now_ms, ts) for ts in timestamps]

    cut = now_ms - MS_PER_YEAR
    by_month = Counter(month_key(ts) for ts in timestamps if ts >= cut)

    return ActivityStats(
        first_ts=first_ts,
        last_ts=last_ts,
        last7=sum(1 for a in ages if a <= 7),
        last30=sum(1 for a in ages if a <= 30),
        last90=sum(1 for a in ages if a <= 90),
        days_since_last=days_between(now_ms, last_ts),
        month_counts=dict(by_month),
        evenness=evenness(by_month.values()),
    )
