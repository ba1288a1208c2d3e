"""
Score engine: on-chain reputation score (0-1000) from balance, tenure and activity.

Two variants share the same primitives:

- Simple breakdown: documented piecewise balance rule + tiered tenure rule,
  summed and clamped to 0..1000.
- Weighted model: six components with fixed caps that sum to 1000
  (balance 260, tenure 190, lifetime 180, recent 210, consistency 110,
  health 50), soft-capped for diminishing returns, plus a deterministic
  per-address jitter to break ties.

Rounding follows the dashboard's JS Math.round (halves round up).
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from alphiq_backend.analytics.activity import ActivityStats, months_since

SCORE_MIN = 0
SCORE_MAX = 1000

W_BALANCE = 260
W_TENURE = 190
W_LIFETIME = 180
W_RECENT = 210
W_CONSIST = 110
W_HEALTH = 50

BALANCE_RAW_CAP = 320

# Title buckets: first limit >= score wins
TITLE_BUCKETS: tuple[tuple[int, str], ...] = (
    (200, "Chain Novice"),
    (400, "Contract Cadet"),
    (600, "Security Scout"),
    (800, "Transaction Tactician"),
    (1000, "Onchain Overlord"),
)
LOWEST_TITLE = TITLE_BUCKETS[0][1]

_U32 = 0xFFFFFFFF


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------


def js_round(x: float) -> int:
    return math.floor(x + 0.5)


def clamp(x: float, lo: float, hi: float) -> float:
    return min(hi, max(lo, x))


def lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


def soft_cap(value: float, half: float, cap: float) -> float:
    """Diminishing-returns curve: reaches cap/2 at value == half, approaches cap."""
    t = value / (value + half)
    return clamp(t * cap, 0, cap)


def hash01(s: str) -> float:
    """Deterministic 0..1 hash of a string (FNV-1a 32-bit + avalanche mix)."""
    h = 2166136261
    for ch in s:
        h ^= ord(ch)
        h = (h * 16777619) & _U32
    h = (h + (h << 13)) & _U32
    h ^= h >> 7
    h = (h + (h << 3)) & _U32
    h ^= h >> 17
    h = (h + (h << 5)) & _U32
    return h / _U32


def jitter(address: str, magnitude: float) -> float:
    return (hash01(address) * 2 - 1) * magnitude


def title_for_score(score: float) -> str:
    for limit, name in TITLE_BUCKETS:
        if limit >= score:
            return name
    return TITLE_BUCKETS[-1][1]


# -----------------------------------------------------------------------------
# Simple breakdown
# -----------------------------------------------------------------------------


def _first_two_digits(n: float) -> int:
    digits = str(int(math.floor(n)))[:2]
    return int(digits) if digits.isdigit() else 0


def balance_component(balance: float, tx_number: int) -> int:
    """
    Piecewise balance rule (whole ALPH):
      1..200      round(b/20)
      200..1000   round(b/10)
      1000..8000  round(b/15) + tx * first two digits of b
      8000..10000 500 + tx
      >10000      -100 if tx < 10 else 700 + tx
    Anything below 1 ALPH scores 0. The >10000 penalty may go negative; callers clamp the total.
    """
    b = balance
    if 1 <= b <= 200:
        return js_round(b / 20)
    if 200 < b <= 1000:
        return js_round(b / 10)
    if 1000 < b <= 8000:
        return js_round(b / 15) + tx_number * _first_two_digits(b)
    if 8000 < b <= 10000:
        return 500 + tx_number
    if b > 10000:
        return -100 if tx_number < 10 else 700 + tx_number
    return 0


def tenure_component(months: int) -> int:
    """15/month for the first year, 7/month through month 36, then 5/month."""
    if months <= 12:
        return months * 15
    if months <= 36:
        return 12 * 15 + (months - 12) * 7
    return 12 * 15 + 24 * 7 + (months - 36) * 5


@dataclass
class SimpleBreakdown:
    balance_score: int
    age_score: int
    total_score: int
    balance: int
    tx_number: int
    months_active: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "balanceScore": self.balance_score,
            "ageScore": self.age_score,
            "totalScore": self.total_score,
            "balance": self.balance,
            "txNumber": self.tx_number,
            "monthsActive": self.months_active,
        }


def simple_breakdown(balance: int, tx_number: int, months_active: int) -> SimpleBreakdown:
    bal = balance_component(balance, tx_number)
    age = tenure_component(months_active) if months_active > 0 else 0
    total = int(clamp(bal + age, SCORE_MIN, SCORE_MAX))
    return SimpleBreakdown(
        balance_score=bal,
        age_score=age,
        total_score=total,
        balance=balance,
        tx_number=tx_number,
        months_active=months_active,
    )


# -----------------------------------------------------------------------------
# Weighted model
# -----------------------------------------------------------------------------


def balance_quality_score(balance: float, tx_number: int, address: str) -> float:
    """
    Balance quality, 0..W_BALANCE.

    Soft-capped tiers plus log-scaled richness, coupled to activity so parked
    whales don't dominate: a Gaussian sweet spot around 1500 ALPH, idle-whale
    damping above 10000 ALPH, spam damping for empty wallets with many tx,
    and an efficiency multiplier. Micro-jitter breaks ties.
    """
    b = max(0.0, float(balance))
    t = max(0, tx_number)

    base_piecewise = soft_cap(b, 120, 70)
    if b > 200:
        base_piecewise += soft_cap(b - 200, 450, 70)
    if b > 1000:
        base_piecewise += soft_cap(b - 1000, 1800, 55)
    if b > 8000:
        base_piecewise += soft_cap(b - 8000, 600, 25)

    log_comp = soft_cap(math.log10(b + 1) * 45, 30, 60)

    activity_factor = soft_cap(t, 25, 1)
    activity_boost = activity_factor * 15

    gauss = math.exp(-(((b - 1500) / 1000) ** 2))
    sweet_boost = gauss * (10 + 25 * activity_factor)

    idle_penalty = 0.0
    if b > 10000:
        whale_scale = soft_cap(math.log10(b - 9999), 0.5, 1)
        idle_penalty = whale_scale * (1 - activity_factor) * 70

    thin_penalty = 0.0
    if b < 1 and t > 50:
        thin_penalty = min(45.0, (t - 50) * 0.25)

    denom = math.log10(b + 10)
    efficiency = clamp(t / (denom * 14), 0.6, 1.4) if denom > 0 else 0.6
    efficiency_mult = lerp(0.9, 1.1, clamp((efficiency - 0.6) / 0.8, 0, 1))

    raw = (
        base_piecewise + log_comp + activity_boost + sweet_boost - idle_penalty - thin_penalty
    ) * efficiency_mult + jitter(address, 6)
    raw = clamp(raw, 0, BALANCE_RAW_CAP)
    return clamp(raw * (W_BALANCE / BALANCE_RAW_CAP), 0, W_BALANCE)


def tenure_score(first_ts: int | None, now_ms: int) -> float:
    if not first_ts:
        return 0.0
    raw = tenure_component(months_since(first_ts, now_ms))
    return clamp(soft_cap(raw, 240, W_TENURE), 0, W_TENURE)


def lifetime_activity_score(tx_number: int) -> float:
    # half of the cap around ~256 tx
    raw = math.sqrt(max(0, tx_number))
    return clamp(soft_cap(raw, 16, W_LIFETIME), 0, W_LIFETIME)


def recent_activity_score(stats: ActivityStats) -> float:
    base = soft_cap(stats.last30, 10, 120)
    base += soft_cap(max(0, stats.last90 - stats.last30), 20, 60)
    base += soft_cap(stats.last7, 5, 30)
    return clamp(base * (W_RECENT / 210), 0, W_RECENT)


def consistency_score(stats: ActivityStats) -> float:
    if not stats.month_counts:
        return 0.0
    active_part = soft_cap(stats.active_months_12, 6, 70)
    even_part = stats.evenness * 40
    return clamp((active_part + even_part) * (W_CONSIST / 110), 0, W_CONSIST)


def health_score(balance: float, tx_number: int, stats: ActivityStats, now_ms: int) -> float:
    """Centered at W_HEALTH/2: dormancy and dust penalties, new-and-active bonus."""
    score = 0.0
    if stats.last_ts:
        if stats.days_since_last > 180:
            score -= lerp(0, 25, clamp((stats.days_since_last - 180) / 180, 0, 1))
    if stats.first_ts:
        if months_since(stats.first_ts, now_ms) <= 3 and tx_number >= 5:
            score += 15
    if balance < 0.5 and tx_number < 3:
        score -= 5
    return clamp(score + W_HEALTH / 2, 0, W_HEALTH)


@dataclass
class ScoreParts:
    balance: float
    tenure: float
    lifetime: float
    recent: float
    consist: float
    health: float

    def total(self) -> float:
        return self.balance + self.tenure + self.lifetime + self.recent + self.consist + self.health


@dataclass
class ScoreBreakdown:
    parts: ScoreParts
    total_score: int
    title: str
    balance_alph: int
    tx_number: int
    months_active: int
    stats: ActivityStats

    def to_dict(self) -> dict[str, Any]:
        return {
            "balance": self.parts.balance,
            "tenure": self.parts.tenure,
            "lifetime": self.parts.lifetime,
            "recent": self.parts.recent,
            "consist": self.parts.consist,
            "health": self.parts.health,
            "totalScore": self.total_score,
            "title": self.title,
            "balanceALPH": self.balance_alph,
            "txNumber": self.tx_number,
            "monthsActive": self.months_active,
            "activeMonths12": self.stats.active_months_12,
            "last7": self.stats.last7,
            "last30": self.stats.last30,
            "last90": self.stats.last90,
            "daysSinceLast": self.stats.days_since_last,
            "evenness": self.stats.evenness,
        }


def weighted_breakdown(
    address: str,
    balance_alph: int,
    tx_number: int,
    stats: ActivityStats,
    now_ms: int,
) -> ScoreBreakdown:
    parts = ScoreParts(
        balance=balance_quality_score(balance_alph, tx_number, address),
        tenure=tenure_score(stats.first_ts, now_ms),
        lifetime=lifetime_activity_score(tx_number),
        recent=recent_activity_score(stats),
        consist=consistency_score(stats),
        health=health_score(balance_alph, tx_number, stats, now_ms),
    )
    total = int(clamp(js_round(parts.total() + jitter(address, 4)), SCORE_MIN, SCORE_MAX))
    return ScoreBreakdown(
        parts=parts,
        total_score=total,
        title=title_for_score(total),
        balance_alph=balance_alph,
        tx_number=tx_number,
        months_active=months_since(stats.first_ts, now_ms),
        stats=stats,
    )
