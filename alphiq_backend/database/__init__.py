"""
Database layer: users, score snapshots, quests, submissions, XP levels and streaks.

SQLAlchemy over PostgreSQL (DATABASE_URL) with a SQLite fallback for local runs and tests.
"""

from alphiq_backend.database.database import init_db, reset_engine_for_test, session_scope

__all__ = ["init_db", "reset_engine_for_test", "session_scope"]
