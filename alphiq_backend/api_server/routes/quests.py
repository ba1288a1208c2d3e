"""
FastAPI router: quests, submissions, XP, leaderboard and login streaks.

GET  /quests?address=                  active quests + the wallet's submissions
GET  /quests/{quest_id}?address=       one quest + the wallet's submission
POST /quests/{quest_id}/submissions    submit proof (pending review)
GET  /xp/{address}                     total XP, level and recent XP history
GET  /leaderboard?month=&address=      top 10 by XP, optional month filter
GET  /streak/{address}                 login streak
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel, Field

from alphiq_backend.alphiq_logging import get_logger
from alphiq_backend.analytics.quests import prepare_submission
from alphiq_backend.analytics.xp_levels import MONTH_ALL, month_filters, month_range, rank_users, resolve_level
from alphiq_backend.api_server.middleware import ApiError
from alphiq_backend.core.exceptions import DuplicateSubmissionError, InvalidSubmissionError, QuestNotFoundError
from alphiq_backend.database import repositories

logger = get_logger(__name__)

router = APIRouter(tags=["quests"])

LEADERBOARD_SIZE = 10
XP_HISTORY_LIMIT = 10


class SubmissionRequest(BaseModel):
    """POST /quests/{quest_id}/submissions body."""

    address: str | None = Field(None, max_length=128, description="Submitting wallet")
    proof_url: str | None = Field(None, max_length=2048, description="Link to the proof")
    proof_data: dict[str, Any] | None = Field(None, description="Participation data by section")


@router.get("/quests")
def list_quests(address: str | None = None) -> dict[str, Any]:
    quests = repositories.list_active_quests()
    submissions: dict[str, Any] = {}
    if address and address.strip():
        submissions = {str(qid): s for qid, s in repositories.list_user_submissions(address.strip()).items()}
    return {"quests": quests, "submissions": submissions}


@router.get("/quests/{quest_id}")
def get_quest(quest_id: int, address: str | None = None) -> dict[str, Any]:
    quest = repositories.get_quest(quest_id)
    if quest is None:
        raise ApiError(404, "Quest not found")
    submission = None
    if address and address.strip():
        submission = repositories.get_user_submission(quest_id, address.strip())
    return {"quest": quest, "submission": submission}


@router.post("/quests/{quest_id}/submissions", status_code=201)
def submit_quest(quest_id: int, body: SubmissionRequest) -> dict[str, Any]:
    try:
        address, proof_url, proof_data = prepare_submission(body.address, body.proof_url, body.proof_data)
        submission = repositories.create_submission(quest_id, address, proof_url, proof_data)
    except InvalidSubmissionError as e:
        raise ApiError(400, str(e)) from e
    except QuestNotFoundError as e:
        raise ApiError(404, "Quest not found") from e
    except DuplicateSubmissionError as e:
        raise ApiError(409, "You have already submitted this quest") from e
    return {"submission": submission}


@router.get("/xp/{address}")
def get_xp(address: str) -> dict[str, Any]:
    address = address.strip()
    user = repositories.get_user(address)
    total_xp = int(user["admin_total_xp"]) if user else 0
    level = resolve_level(total_xp, repositories.list_xp_levels())
    return {
        "address": address,
        "title": (user or {}).get("title") or "",
        "admin_total_xp": total_xp,
        "level": level["level"],
        "levelName": level["name"],
        "levelColor": level["color_hex"],
        "history": repositories.list_approved_submissions(address, limit=XP_HISTORY_LIMIT),
    }


@router.get("/leaderboard")
def get_leaderboard(month: str = MONTH_ALL, address: str | None = None) -> dict[str, Any]:
    today = datetime.now(timezone.utc).date()
    ranked = rank_users(repositories.list_users_by_xp(), repositories.list_xp_levels())
    top = ranked[:LEADERBOARD_SIZE]

    month = (month or MONTH_ALL).strip()
    if month != MONTH_ALL:
        try:
            start, end = month_range(month, today)
        except ValueError as e:
            raise ApiError(400, "Invalid month filter") from e
        active = repositories.sum_xp_changes_between(start, end)
        # a month with no XP changes at all shows the unfiltered board
        if active:
            top = [u for u in top if u["address"] in active]

    current_rank = None
    current_xp = None
    if address and address.strip():
        wanted = address.strip().lower()
        me = next((u for u in ranked if u["address"].lower() == wanted), None)
        if me is not None:
            current_rank = me["rank"]
            current_xp = me["admin_total_xp"]

    logger.info("leaderboard_served", month=month, count=len(top))
    return {
        "users": top,
        "currentUserRank": current_rank,
        "currentUserXP": current_xp,
        "months": month_filters(today),
    }


@router.get("/streak/{address}")
def get_streak(address: str) -> dict[str, Any]:
    address = address.strip()
    return {"address": address, **repositories.get_streak(address)}
