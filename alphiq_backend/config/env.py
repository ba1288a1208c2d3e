"""
Environment variable loading for AlphIQ.

- ENVIRONMENT: development | production (default: development)
- EXPLORER_API_URL: Alephium explorer backend (default: mainnet)
- AIML_API_KEY: chat-completion API key (legacy: NEXT_PUBLIC_AIMLAPI_KEY)
- ALPHIQ_DB_URL / DATABASE_URL: Postgres URL; SQLite fallback via ALPHIQ_DB_PATH
- REDIS_URL: shared rate-limit store (optional)
- Loads .env from project root when available.
"""

from __future__ import annotations

import os
from pathlib import Path

# config is alphiq_backend/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_PACKAGE_DIR = _CONFIG_DIR.parent
_ROOT = _PACKAGE_DIR.parent
_ENV_PATH = _ROOT / ".env"

MAINNET_EXPLORER_URL = "https://backend.mainnet.alephium.org"
AIML_COMPLETIONS_URL = "https://api.aimlapi.com/v1/chat/completions"
DEFAULT_AI_MODEL = "google/gemma-3n-e4b-it"
DEFAULT_FEED_URL = "https://medium.com/feed/@alephium"
DEFAULT_SQLITE_PATH = "alphiq.db"


def load_alphiq_env() -> None:
    """Load .env from project root. Safe to call multiple times; never overrides real env."""
    from dotenv import load_dotenv

    load_dotenv(_ENV_PATH, override=False)


def get_str(name: str, default: str = "") -> str:
    return (os.getenv(name) or "").strip() or default


def get_int(name: str, default: int) -> int:
    raw = get_str(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def get_float(name: str, default: float) -> float:
    raw = get_str(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def get_environment() -> str:
    """Return ENVIRONMENT (or NODE_ENV for parity with the dashboard), default development."""
    load_alphiq_env()
    return (get_str("ENVIRONMENT") or get_str("NODE_ENV") or "development").lower()


def get_aiml_api_key() -> str | None:
    """
    Return the completion API key.
    Order: AIML_API_KEY > NEXT_PUBLIC_AIMLAPI_KEY (legacy name kept during transition).
    """
    load_alphiq_env()
    return get_str("AIML_API_KEY") or get_str("NEXT_PUBLIC_AIMLAPI_KEY") or None


def get_database_url() -> str:
    """
    Return ALPHIQ_DB_URL or DATABASE_URL when set (Postgres / Supabase);
    else SQLite at ALPHIQ_DB_PATH (default alphiq.db).
    """
    load_alphiq_env()
    url = get_str("ALPHIQ_DB_URL") or get_str("DATABASE_URL")
    if url:
        return url
    path = get_str("ALPHIQ_DB_PATH", DEFAULT_SQLITE_PATH)
    return f"sqlite:///{path}"


def mask_url(url: str) -> str:
    """Drop credentials and query string from a URL before logging it."""
    base = url.split("?")[0]
    if "@" in base:
        scheme, _, rest = base.partition("://")
        return f"{scheme}://***@{rest.split('@', 1)[1]}"
    return base
