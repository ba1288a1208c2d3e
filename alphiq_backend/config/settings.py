"""
Application settings.

Typed view over config.env: explorer and AI endpoints, database URL, rate
limits and upstream timeouts. Cached for the process lifetime; call
get_settings.cache_clear() to pick up env changes (tests do this).
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from alphiq_backend.config import env


@dataclass(frozen=True)
class Settings:
    """Runtime configuration for the AlphIQ backend."""

    environment: str = "development"
    app_name: str = "AlphIQ Dashboard"
    version: str = "1.0.0"

    # Upstreams
    explorer_base_url: str = env.MAINNET_EXPLORER_URL
    aiml_api_key: str | None = None
    ai_api_url: str = env.AIML_COMPLETIONS_URL
    ai_model: str = env.DEFAULT_AI_MODEL
    feed_url: str = env.DEFAULT_FEED_URL
    user_agent: str = "AlphIQ-Dashboard/1.0"

    # Storage
    database_url: str = f"sqlite:///{env.DEFAULT_SQLITE_PATH}"
    redis_url: str | None = None

    # Requests per minute per client
    rate_limit_default: int = 10
    rate_limit_ai_analysis: int = 5
    rate_limit_window_sec: float = 60.0

    # Seconds
    timeout_default: float = 10.0
    timeout_ai_analysis: float = 15.0


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from environment with defaults."""
    env.load_alphiq_env()
    return Settings(
        environment=env.get_environment(),
        explorer_base_url=env.get_str("EXPLORER_API_URL", env.MAINNET_EXPLORER_URL).rstrip("/"),
        aiml_api_key=env.get_aiml_api_key(),
        ai_api_url=env.get_str("AI_API_URL", env.AIML_COMPLETIONS_URL),
        ai_model=env.get_str("AI_MODEL", env.DEFAULT_AI_MODEL),
        feed_url=env.get_str("BLOG_FEED_URL", env.DEFAULT_FEED_URL),
        database_url=env.get_database_url(),
        redis_url=env.get_str("REDIS_URL") or None,
        rate_limit_default=env.get_int("RATE_LIMIT_DEFAULT", 10),
        rate_limit_ai_analysis=env.get_int("RATE_LIMIT_AI_ANALYSIS", 5),
        rate_limit_window_sec=env.get_float("RATE_LIMIT_WINDOW_SEC", 60.0),
        timeout_default=env.get_float("REQUEST_TIMEOUT_SEC", 10.0),
        timeout_ai_analysis=env.get_float("AI_REQUEST_TIMEOUT_SEC", 15.0),
    )


def validate_settings(settings: Settings) -> list[str]:
    """
    Return human-readable warnings for missing or suspicious configuration.
    Never raises: missing values disable features instead of the process.
    """
    warnings: list[str] = []
    if not settings.aiml_api_key:
        warnings.append("AIML_API_KEY not set; AI analysis will return 503")
    if settings.database_url.startswith("sqlite"):
        warnings.append("DATABASE_URL not set; using local SQLite")
    elif not settings.database_url.startswith(("postgresql", "postgres")):
        warnings.append("DATABASE_URL is not a PostgreSQL URL")
    if not settings.explorer_base_url.startswith("https://"):
        warnings.append("EXPLORER_API_URL is not https")
    return warnings
