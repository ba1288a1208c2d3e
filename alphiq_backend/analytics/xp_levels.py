"""
XP levels, leaderboard ranking and month filters.

Quest XP is distinct from the on-chain score: it accrues from approved quest
submissions and maps onto admin-configured levels (xp_min..xp_max ranges).
"""

from __future__ import annotations

import calendar
from datetime import date, datetime, timezone
from typing import Any

FALLBACK_LEVEL: dict[str, Any] = {"level": 1, "name": "Novice", "color_hex": "#00E6B0"}

MONTH_ALL = "all"


def resolve_level(total_xp: int, levels: list[dict[str, Any]]) -> dict[str, Any]:
    """
    Level whose [xp_min, xp_max] contains total_xp. Below the lowest level →
    first level; above every level (or in a gap) → highest level.
    """
    if not levels:
        return dict(FALLBACK_LEVEL)
    ordered = sorted(levels, key=lambda lv: lv["xp_min"])
    for lv in ordered:
        if lv["xp_min"] <= total_xp <= lv["xp_max"]:
            return lv
    if total_xp < ordered[0]["xp_min"]:
        return ordered[0]
    return ordered[-1]


def rank_users(users: list[dict[str, Any]], levels: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Attach level info and 1-based rank; input is expected sorted by XP descending."""
    ranked: list[dict[str, Any]] = []
    for i, user in enumerate(users):
        xp = int(user.get("admin_total_xp") or 0)
        lv = resolve_level(xp, levels)
        ranked.append(
            {
                "address": user["address"],
                "title": user.get("title") or "",
                "admin_total_xp": xp,
                "level": lv["level"],
                "levelName": lv["name"],
                "levelColor": lv["color_hex"],
                "rank": i + 1,
            }
        )
    return ranked


def month_filters(today: date) -> list[dict[str, str]]:
    """
    "All Time", then this year's months from the current one backwards. In the
    first half of the year, also the previous year's July..December as "M-YYYY".
    """
    months = [{"value": MONTH_ALL, "label": "All Time"}]
    for m in range(today.month, 0, -1):
        months.append({"value": str(m), "label": calendar.month_name[m]})
    if today.month <= 6:
        prev = today.year - 1
        for m in range(12, 6, -1):
            months.append({"value": f"{m}-{prev}", "label": f"{calendar.month_name[m]} {prev}"})
    return months


def month_range(value: str, today: date) -> tuple[datetime, datetime]:
    """
    UTC [start, end] of a month filter value: "M" (current year) or "M-YYYY".
    Raises ValueError for anything else, including "all".
    """
    if "-" in value:
        month_s, year_s = value.split("-", 1)
        month, year = int(month_s), int(year_s)
    else:
        month, year = int(value), today.year
    if not 1 <= month <= 12:
        raise ValueError(f"month out of range: {value}")
    last_day = calendar.monthrange(year, month)[1]
    start = datetime(year, month, 1, tzinfo=timezone.utc)
    end = datetime(year, month, last_day, 23, 59, 59, tzinfo=timezone.utc)
    return start, end
