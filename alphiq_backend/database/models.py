"""
SQLAlchemy models for the dashboard's managed Postgres tables.

Table names match the hosted backend (users, user_score_history, admin_quests,
admin_quest_submissions, admin_xp_levels, admin_user_xp_history, user_streaks)
so the same models work against Supabase Postgres and a local SQLite file.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()

SUBMISSION_PENDING = "pending"
SUBMISSION_APPROVED = "approved"
SUBMISSION_REJECTED = "rejected"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _iso(value: datetime | date | None) -> str | None:
    return value.isoformat() if value is not None else None


class User(Base):
    """One row per wallet: latest on-chain score/title and accumulated quest XP."""

    __tablename__ = "users"

    address = Column(String(128), primary_key=True)
    score = Column(Integer, nullable=True)
    title = Column(String(64), nullable=True)
    admin_total_xp = Column(Integer, nullable=False, default=0)
    exists_flag = Column(Boolean, nullable=False, default=True, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=True)

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "score": self.score,
            "title": self.title,
            "admin_total_xp": self.admin_total_xp or 0,
            "updated_at": _iso(self.updated_at),
        }


class UserScoreHistory(Base):
    """Daily score snapshot per wallet; last write of the day wins."""

    __tablename__ = "user_score_history"
    __table_args__ = (UniqueConstraint("address", "snapshot_date", name="uq_score_history_address_date"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    address = Column(String(128), nullable=False, index=True)
    snapshot_date = Column(Date, nullable=False, index=True)
    score = Column(Integer, nullable=False)
    title = Column(String(64), nullable=True)
    xp_points = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "snapshot_date": _iso(self.snapshot_date),
            "score": self.score,
            "title": self.title,
            "xp_points": self.xp_points,
        }


class PartnerProfile(Base):
    __tablename__ = "admin_user_profiles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    partner_name = Column(String(128), nullable=False)


class QuestCategory(Base):
    __tablename__ = "admin_quest_categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(128), nullable=False)


class Quest(Base):
    __tablename__ = "admin_quests"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(256), nullable=False)
    description = Column(Text, nullable=False, default="")
    xp_reward = Column(Integer, nullable=False, default=0)
    multiplier = Column(Float, nullable=False, default=1.0)
    multiplier_start = Column(DateTime(timezone=True), nullable=True)
    multiplier_end = Column(DateTime(timezone=True), nullable=True)
    comments = Column(Text, nullable=True)
    start_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    end_at = Column(DateTime(timezone=True), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    partner_id = Column(Integer, ForeignKey("admin_user_profiles.id"), nullable=True)
    category_id = Column(Integer, ForeignKey("admin_quest_categories.id"), nullable=True)

    partner = relationship(PartnerProfile, lazy="joined")
    category = relationship(QuestCategory, lazy="joined")

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "xp_reward": self.xp_reward,
            "multiplier": self.multiplier,
            "multiplier_start": _iso(self.multiplier_start),
            "multiplier_end": _iso(self.multiplier_end),
            "comments": self.comments,
            "partner_name": self.partner.partner_name if self.partner else "Unknown",
            "category_name": self.category.name if self.category else None,
            "start_at": _iso(self.start_at),
            "end_at": _iso(self.end_at),
            "is_active": self.is_active,
        }


class QuestSubmission(Base):
    __tablename__ = "admin_quest_submissions"
    __table_args__ = (UniqueConstraint("quest_id", "user_address", name="uq_submission_quest_user"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    quest_id = Column(Integer, ForeignKey("admin_quests.id"), nullable=False, index=True)
    user_address = Column(String(128), nullable=False, index=True)
    proof_url = Column(String(2048), nullable=True)
    proof_data = Column(JSON, nullable=True)
    status = Column(String(16), nullable=False, default=SUBMISSION_PENDING, index=True)
    review_notes = Column(Text, nullable=True)
    submitted_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    quest = relationship(Quest, lazy="joined")

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "quest_id": self.quest_id,
            "status": self.status,
            "proof_url": self.proof_url,
            "proof_data": self.proof_data,
            "review_notes": self.review_notes,
            "submitted_at": _iso(self.submitted_at),
        }


class XPLevel(Base):
    __tablename__ = "admin_xp_levels"

    level = Column(Integer, primary_key=True)
    name = Column(String(64), nullable=False)
    xp_min = Column(Integer, nullable=False)
    xp_max = Column(Integer, nullable=False)
    color_hex = Column(String(16), nullable=False, default="#00E6B0")

    def to_dict(self) -> dict[str, Any]:
        return {
            "level": self.level,
            "name": self.name,
            "xp_min": self.xp_min,
            "xp_max": self.xp_max,
            "color_hex": self.color_hex,
        }


class XPHistory(Base):
    """Append-only XP ledger (quest approvals, bonuses)."""

    __tablename__ = "admin_user_xp_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_address = Column(String(128), nullable=False, index=True)
    change = Column(Integer, nullable=False)
    reason = Column(String(256), nullable=True)
    submission_id = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)


class UserStreak(Base):
    __tablename__ = "user_streaks"

    address = Column(String(128), primary_key=True)
    current_streak = Column(Integer, nullable=False, default=0)
    last_login_date = Column(Date, nullable=True)
