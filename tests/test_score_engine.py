"""
Pytest tests for the score engine: balance and tenure rules, title buckets,
weighted model bounds and determinism.
"""

from __future__ import annotations

import pytest

from alphiq_backend.analytics.activity import MS_PER_DAY, MS_PER_MONTH, ActivityStats, compute_activity
from alphiq_backend.analytics.score_engine import (
    LOWEST_TITLE,
    TITLE_BUCKETS,
    W_BALANCE,
    W_HEALTH,
    balance_component,
    hash01,
    js_round,
    simple_breakdown,
    tenure_component,
    title_for_score,
    weighted_breakdown,
)

NOW_MS = 1_760_000_000_000
ADDRESS = "1DrDyTr9RpRsQnDnXo2YRiPzPW4ooHX5LLoqXrqfMrpQH"


def test_js_round_rounds_halves_up():
    assert js_round(7.5) == 8
    assert js_round(2.5) == 3
    assert js_round(-0.5) == 0
    assert js_round(1.49) == 1


@pytest.mark.parametrize(
    "balance,tx,expected",
    [
        (0, 0, 0),
        (0.5, 100, 0),
        (1, 0, 0),
        (150, 0, 8),
        (200, 3, 10),
        (500, 0, 50),
        (1500, 2, 100 + 2 * 15),
        (9000, 7, 507),
        (10001, 5, -100),
        (20000, 10, 710),
    ],
)
def test_balance_component(balance, tx, expected):
    """Documented piecewise rule, including the low-activity whale penalty."""
    assert balance_component(balance, tx) == expected


def test_tenure_component_tiers():
    assert tenure_component(0) == 0
    assert tenure_component(12) == 180
    assert tenure_component(13) == 187
    assert tenure_component(36) == 180 + 24 * 7
    assert tenure_component(40) == 180 + 168 + 20


def test_simple_breakdown_clamps_negative_total_to_zero():
    result = simple_breakdown(10001, 5, 0)
    assert result.balance_score == -100
    assert result.age_score == 0
    assert result.total_score == 0


def test_simple_breakdown_clamps_to_max():
    result = simple_breakdown(20000, 500, 120)
    assert result.total_score == 1000
    d = result.to_dict()
    assert set(d) == {"balanceScore", "ageScore", "totalScore", "balance", "txNumber", "monthsActive"}


def test_simple_breakdown_non_positive_months_give_zero_tenure():
    assert simple_breakdown(150, 0, -3).age_score == 0


def test_title_buckets_boundaries():
    assert title_for_score(0) == "Chain Novice"
    assert title_for_score(200) == "Chain Novice"
    assert title_for_score(201) == "Contract Cadet"
    assert title_for_score(600) == "Security Scout"
    assert title_for_score(800) == "Transaction Tactician"
    assert title_for_score(1000) == "Onchain Overlord"
    assert LOWEST_TITLE == "Chain Novice"


def test_title_prestige_is_monotonic():
    """A higher score never maps to a less prestigious title."""
    order = [name for _, name in TITLE_BUCKETS]
    ranks = [order.index(title_for_score(s)) for s in range(0, 1001)]
    assert ranks == sorted(ranks)


def test_hash01_is_deterministic_and_bounded():
    assert hash01(ADDRESS) == hash01(ADDRESS)
    assert 0.0 <= hash01(ADDRESS) <= 1.0
    assert hash01("a") != hash01("b")


def _active_stats() -> ActivityStats:
    timestamps = [NOW_MS - d * MS_PER_DAY for d in range(0, 400, 3)]
    return compute_activity(timestamps, NOW_MS)


@pytest.mark.parametrize("balance,tx", [(0, 0), (1, 1), (150, 3), (1500, 40), (9500, 200), (10_000_000, 2), (50_000, 5000)])
def test_weighted_total_stays_in_range(balance, tx):
    for stats in (ActivityStats(), _active_stats()):
        result = weighted_breakdown(ADDRESS, balance, tx, stats, NOW_MS)
        assert 0 <= result.total_score <= 1000
        assert 0 <= result.parts.balance <= W_BALANCE
        assert 0 <= result.parts.health <= W_HEALTH
        assert result.title == title_for_score(result.total_score)


def test_weighted_breakdown_is_deterministic():
    stats = _active_stats()
    a = weighted_breakdown(ADDRESS, 1500, 40, stats, NOW_MS)
    b = weighted_breakdown(ADDRESS, 1500, 40, stats, NOW_MS)
    assert a.to_dict() == b.to_dict()


def test_active_wallet_outscores_empty_wallet():
    empty = weighted_breakdown(ADDRESS, 0, 0, ActivityStats(), NOW_MS)
    active = weighted_breakdown(ADDRESS, 1500, 150, _active_stats(), NOW_MS)
    assert active.total_score > empty.total_score


def test_compute_activity_windows():
    timestamps = [NOW_MS - 1 * MS_PER_DAY, NOW_MS - 20 * MS_PER_DAY, NOW_MS - 60 * MS_PER_DAY, NOW_MS - 24 * MS_PER_MONTH]
    stats = compute_activity(timestamps, NOW_MS)
    assert stats.last7 == 1
    assert stats.last30 == 2
    assert stats.last90 == 3
    assert stats.days_since_last == 1
    assert stats.first_ts == min(timestamps)
    assert 1 <= stats.active_months_12 <= 3
