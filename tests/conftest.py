"""
Pytest fixtures for AlphIQ tests. Uses a temporary SQLite DB and a fake upstream.
"""

from __future__ import annotations

import json
import re
from typing import Any, Callable

import httpx
import pytest


class FakeUpstream:
    """
    Route table for httpx.MockTransport: (method, url regex) -> handler.

    Unmatched requests return 404 so a missing stub shows up as an upstream error.
    """

    def __init__(self) -> None:
        self.routes: list[tuple[str, re.Pattern[str], Callable[[httpx.Request], httpx.Response]]] = []
        self.calls: list[httpx.Request] = []

    def add(self, method: str, pattern: str, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.routes.insert(0, (method, re.compile(pattern), handler))

    def json(self, method: str, pattern: str, payload: Any, status: int = 200) -> None:
        body = json.dumps(payload)
        self.add(
            method,
            pattern,
            lambda request: httpx.Response(status, text=body, headers={"Content-Type": "application/json"}),
        )

    def text(self, method: str, pattern: str, body: str, status: int = 200) -> None:
        self.add(method, pattern, lambda request: httpx.Response(status, text=body))

    def fail(self, method: str, pattern: str) -> None:
        def _raise(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        self.add(method, pattern, _raise)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        for method, pattern, handler in self.routes:
            if request.method == method and pattern.search(str(request.url)):
                return handler(request)
        return httpx.Response(404, text="not stubbed")

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)


@pytest.fixture
def alphiq_db(tmp_path, monkeypatch):
    """
    Point the database layer at a temporary SQLite DB and init tables.
    Resets engine and settings caches so each test gets a fresh DB. Unset
    DATABASE_URL so we use SQLite.
    """
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("ALPHIQ_DB_URL", raising=False)
    monkeypatch.delenv("REDIS_URL", raising=False)
    monkeypatch.setenv("ALPHIQ_DB_PATH", str(tmp_path / "alphiq.db"))

    from alphiq_backend.config import get_settings
    from alphiq_backend.database import init_db, reset_engine_for_test

    get_settings.cache_clear()
    reset_engine_for_test()
    init_db()
    yield
    reset_engine_for_test()
    get_settings.cache_clear()


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest.fixture
def settings(alphiq_db):
    from dataclasses import replace

    from alphiq_backend.config import get_settings

    return replace(get_settings(), aiml_api_key="test-key", redis_url=None)


@pytest.fixture
def client(alphiq_db, settings, upstream):
    """FastAPI TestClient. Depends on alphiq_db so the temp DB is set before the app runs."""
    from fastapi.testclient import TestClient

    from alphiq_backend.api_server.server import create_app

    return TestClient(create_app(settings=settings, upstream_transport=upstream.transport()))
