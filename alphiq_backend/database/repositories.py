"""
Repository functions over the dashboard tables.

Each call opens its own session scope, returns plain dicts, and logs then
re-raises database errors. Upserts are query-then-update-or-insert so they
behave the same on Postgres and SQLite; a concurrent insert of the same key
is retried once through the update branch, so the last write wins.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Callable

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from alphiq_backend.alphiq_logging import get_logger
from alphiq_backend.core.exceptions import DuplicateSubmissionError, QuestNotFoundError
from alphiq_backend.database.database import session_scope
from alphiq_backend.database.models import (
    SUBMISSION_APPROVED,
    SUBMISSION_PENDING,
    Quest,
    QuestSubmission,
    User,
    UserScoreHistory,
    UserStreak,
    XPHistory,
    XPLevel,
    utcnow,
)

logger = get_logger(__name__)


# -----------------------------------------------------------------------------
# Scores
# -----------------------------------------------------------------------------


def _retry_on_conflict(write: Callable[[], None], event: str, address: str) -> None:
    """Run an update-or-insert; a concurrent insert of the same key makes the retry take the update branch."""
    try:
        write()
    except IntegrityError:
        logger.info(event, address=address)
        write()


def upsert_user_score(address: str, score: int, title: str, now: datetime | None = None) -> None:
    """users upsert keyed by address: score, title, updated_at. Last write wins."""
    now = now or utcnow()

    def write() -> None:
        with session_scope() as session:
            user = session.get(User, address)
            if user is None:
                session.add(User(address=address, score=score, title=title, admin_total_xp=0, updated_at=now))
            else:
                user.score = score
                user.title = title
                user.updated_at = now

    try:
        _retry_on_conflict(write, "users_upsert_conflict_retry", address)
    except Exception as e:
        logger.exception("users_upsert_failed", address=address, error=str(e))
        raise


def upsert_score_snapshot(
    address: str,
    snapshot_date: date,
    score: int,
    title: str,
    now: datetime | None = None,
) -> None:
    """user_score_history upsert keyed by (address, snapshot_date)."""
    now = now or utcnow()

    def write() -> None:
        with session_scope() as session:
            row = (
                session.query(UserScoreHistory)
                .filter(
                    UserScoreHistory.address == address,
                    UserScoreHistory.snapshot_date == snapshot_date,
                )
                .first()
            )
            if row is None:
                session.add(
                    UserScoreHistory(
                        address=address,
                        snapshot_date=snapshot_date,
                        score=score,
                        title=title,
                        xp_points=0,
                        created_at=now,
                    )
                )
            else:
                row.score = score
                row.title = title
                row.created_at = now

    try:
        _retry_on_conflict(write, "user_score_history_conflict_retry", address)
    except Exception as e:
        logger.exception("user_score_history_upsert_failed", address=address, error=str(e))
        raise


def get_score_history(address: str, limit: int = 30) -> list[dict[str, Any]]:
    """Most recent `limit` snapshots, returned oldest first (chart order)."""
    with session_scope() as session:
        rows = (
            session.query(UserScoreHistory)
            .filter(UserScoreHistory.address == address)
            .order_by(UserScoreHistory.snapshot_date.desc())
            .limit(limit)
            .all()
        )
        return [r.to_dict() for r in reversed(rows)]


# -----------------------------------------------------------------------------
# Quests and submissions
# -----------------------------------------------------------------------------


def list_active_quests() -> list[dict[str, Any]]:
    with session_scope() as session:
        rows = (
            session.query(Quest)
            .filter(Quest.is_active.is_(True))
            .order_by(Quest.start_at.asc())
            .all()
        )
        return [q.to_dict() for q in rows]


def get_quest(quest_id: int) -> dict[str, Any] | None:
    with session_scope() as session:
        quest = session.get(Quest, quest_id)
        return quest.to_dict() if quest else None


def list_user_submissions(address: str) -> dict[int, dict[str, Any]]:
    """Submissions of one wallet keyed by quest id."""
    with session_scope() as session:
        rows = session.query(QuestSubmission).filter(QuestSubmission.user_address == address).all()
        return {r.quest_id: r.to_dict() for r in rows}


def get_user_submission(quest_id: int, address: str) -> dict[str, Any] | None:
    with session_scope() as session:
        row = (
            session.query(QuestSubmission)
            .filter(QuestSubmission.quest_id == quest_id, QuestSubmission.user_address == address)
            .first()
        )
        return row.to_dict() if row else None


def create_submission(
    quest_id: int,
    address: str,
    proof_url: str | None,
    proof_data: Any | None = None,
) -> dict[str, Any]:
    """
    Insert a pending submission. Raises QuestNotFoundError for an unknown quest
    and DuplicateSubmissionError when the wallet already submitted this quest.
    """
    try:
        with session_scope() as session:
            if session.get(Quest, quest_id) is None:
                raise QuestNotFoundError(quest_id)
            row = QuestSubmission(
                quest_id=quest_id,
                user_address=address,
                proof_url=proof_url,
                proof_data=proof_data,
                status=SUBMISSION_PENDING,
            )
            session.add(row)
            session.flush()
            out = row.to_dict()
        logger.info("quest_submission_created", quest_id=quest_id, address=address)
        return out
    except IntegrityError as e:
        logger.info("quest_submission_duplicate", quest_id=quest_id, address=address)
        raise DuplicateSubmissionError(quest_id, address) from e


def list_approved_submissions(address: str, limit: int = 10) -> list[dict[str, Any]]:
    """Latest approved submissions joined with quest title, XP reward and partner."""
    with session_scope() as session:
        rows = (
            session.query(QuestSubmission)
            .join(Quest, QuestSubmission.quest_id == Quest.id)
            .filter(
                QuestSubmission.user_address == address,
                QuestSubmission.status == SUBMISSION_APPROVED,
            )
            .order_by(QuestSubmission.submitted_at.desc())
            .limit(limit)
            .all()
        )
        out: list[dict[str, Any]] = []
        for r in rows:
            quest = r.quest
            out.append(
                {
                    "id": r.id,
                    "user_address": address,
                    "change": quest.xp_reward if quest else 0,
                    "reason": quest.title if quest else "Unknown Quest",
                    "submission_id": r.id,
                    "created_at": r.to_dict()["submitted_at"],
                    "partner_name": quest.partner.partner_name if quest and quest.partner else "System",
                }
            )
        return out


# -----------------------------------------------------------------------------
# XP, leaderboard, streaks
# -----------------------------------------------------------------------------


def get_user(address: str) -> dict[str, Any] | None:
    with session_scope() as session:
        user = session.get(User, address)
        return user.to_dict() if user else None


def list_xp_levels() -> list[dict[str, Any]]:
    with session_scope() as session:
        rows = session.query(XPLevel).order_by(XPLevel.level.asc()).all()
        return [r.to_dict() for r in rows]


def list_users_by_xp() -> list[dict[str, Any]]:
    """All existing users ordered by XP descending (ties by address for stable ranks)."""
    with session_scope() as session:
        rows = (
            session.query(User)
            .filter(User.exists_flag.is_(True))
            .order_by(User.admin_total_xp.desc(), User.address.asc())
            .all()
        )
        return [r.to_dict() for r in rows]


def sum_xp_changes_between(start: datetime, end: datetime) -> dict[str, int]:
    """Net XP change per wallet with created_at in [start, end]."""
    with session_scope() as session:
        rows = (
            session.query(XPHistory.user_address, func.sum(XPHistory.change))
            .filter(XPHistory.created_at >= start, XPHistory.created_at <= end)
            .group_by(XPHistory.user_address)
            .all()
        )
        return {addr: int(total or 0) for addr, total in rows}


def get_streak(address: str) -> dict[str, Any]:
    """Login streak; wallets without a row have a zero streak."""
    with session_scope() as session:
        row = session.get(UserStreak, address)
        if row is None:
            return {"current_streak": 0, "last_login_date": ""}
        return {
            "current_streak": row.current_streak or 0,
            "last_login_date": row.last_login_date.isoformat() if row.last_login_date else "",
        }
