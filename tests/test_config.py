"""
Pytest tests for env-driven configuration and settings validation.
"""

from __future__ import annotations

from dataclasses import replace

import pytest

from alphiq_backend.config import Settings, env, get_settings, validate_settings


@pytest.fixture
def clean_env(monkeypatch):
    for name in (
        "AIML_API_KEY",
        "NEXT_PUBLIC_AIMLAPI_KEY",
        "ALPHIQ_DB_URL",
        "DATABASE_URL",
        "ALPHIQ_DB_PATH",
        "REDIS_URL",
        "ENVIRONMENT",
        "NODE_ENV",
        "RATE_LIMIT_AI_ANALYSIS",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(env, "load_alphiq_env", lambda: None)
    get_settings.cache_clear()
    yield monkeypatch
    get_settings.cache_clear()


def test_defaults(clean_env):
    s = get_settings()
    assert s.environment == "development"
    assert s.aiml_api_key is None
    assert s.database_url == "sqlite:///alphiq.db"
    assert s.redis_url is None
    assert s.rate_limit_ai_analysis == 5
    assert s.rate_limit_default == 10
    assert s.timeout_ai_analysis == 15.0
    assert s.ai_model == "google/gemma-3n-e4b-it"


def test_api_key_fallback_name(clean_env):
    clean_env.setenv("NEXT_PUBLIC_AIMLAPI_KEY", "legacy")
    assert get_settings().aiml_api_key == "legacy"
    get_settings.cache_clear()
    clean_env.setenv("AIML_API_KEY", "primary")
    assert get_settings().aiml_api_key == "primary"


def test_database_url_precedence(clean_env):
    clean_env.setenv("ALPHIQ_DB_PATH", "/tmp/x.db")
    assert env.get_database_url() == "sqlite:////tmp/x.db"
    clean_env.setenv("DATABASE_URL", "postgresql://u:p@db:5432/alphiq")
    assert env.get_database_url() == "postgresql://u:p@db:5432/alphiq"
    clean_env.setenv("ALPHIQ_DB_URL", "postgresql://other/alphiq")
    assert env.get_database_url() == "postgresql://other/alphiq"


def test_invalid_numbers_fall_back_to_default(clean_env):
    clean_env.setenv("RATE_LIMIT_AI_ANALYSIS", "lots")
    assert get_settings().rate_limit_ai_analysis == 5


def test_node_env_is_honoured(clean_env):
    clean_env.setenv("NODE_ENV", "Production")
    assert get_settings().environment == "production"


def test_mask_url_hides_credentials():
    assert env.mask_url("postgresql://user:secret@db:5432/alphiq?sslmode=require") == "postgresql://***@db:5432/alphiq"
    assert env.mask_url("sqlite:///alphiq.db") == "sqlite:///alphiq.db"


def test_validate_settings_reports_missing_pieces():
    warnings = validate_settings(Settings())
    assert any("AIML_API_KEY" in w for w in warnings)
    assert any("SQLite" in w for w in warnings)

    ok = replace(Settings(), aiml_api_key="k", database_url="postgresql://db/alphiq")
    assert validate_settings(ok) == []
