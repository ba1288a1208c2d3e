"""
Pytest tests for POST /api/ai-analysis and the transaction summarizer.

Explorer and chat-completion API are faked with httpx.MockTransport.
"""

from __future__ import annotations

import json
from dataclasses import replace

from fastapi.testclient import TestClient

from alphiq_backend.ai import build_prompt, summarize_recent_transactions
from alphiq_backend.ai.summarizer import NO_INSIGHTS, extract_summary
from alphiq_backend.analytics.activity import MS_PER_DAY, now_millis
from alphiq_backend.api_server.server import create_app

VALID_ADDRESS = "1DrDyTr9RpRsQnDnXo2YRiPzPW4ooHX5LLoqXrqfMrpQH"
ONE_ALPH = 10**18
COMPLETIONS = r"aimlapi\.com/v1/chat/completions"
NOW_MS = 1_750_000_000_000


def _tx(i: int, days_ago: float, now_ms: int = NOW_MS) -> dict:
    return {
        "hash": f"tx{i}",
        "timestamp": int(now_ms - days_ago * MS_PER_DAY),
        "inputs": [{"attoAlphAmount": str(3 * ONE_ALPH)}],
        "outputs": [{"attoAlphAmount": str(2 * ONE_ALPH + 5)}],
        "gasAmount": 20000,
        "gasPrice": str(10**14),
    }


def _stub_txs(upstream, count=3):
    now = now_millis()
    upstream.json("GET", r"/addresses/[^/]+/transactions", [_tx(i, 1, now) for i in range(count)])


def _stub_completion(upstream, content="## Summary\n- **3** transactions", status=200):
    upstream.json("POST", COMPLETIONS, {"choices": [{"message": {"content": content}}]}, status=status)


# -----------------------------------------------------------------------------
# Summarizer
# -----------------------------------------------------------------------------


def test_summarize_keeps_last_30_days_then_last_50():
    txs = [_tx(i, 40) for i in range(5)] + [_tx(100 + i, 10) for i in range(60)]
    recent = summarize_recent_transactions(txs, NOW_MS)
    assert len(recent) == 50
    assert recent[0]["hash"] == "tx110"
    assert recent[-1]["hash"] == "tx159"


def test_summarize_converts_amounts_to_whole_alph():
    recent = summarize_recent_transactions([_tx(1, 1)], NOW_MS)
    assert recent[0]["in"] == 3
    assert recent[0]["out"] == 2
    assert recent[0]["fee"] == 2
    assert recent[0]["date"] == "2025-06-14"


def test_summarize_tolerates_missing_fields():
    recent = summarize_recent_transactions([{"hash": "x", "timestamp": NOW_MS}], NOW_MS)
    assert recent == [{"hash": "x", "date": "2025-06-15", "in": 0, "out": 0, "fee": 0}]


def test_build_prompt_embeds_transactions_json():
    recent = [{"hash": "x", "date": "2025-06-15", "in": 1, "out": 0, "fee": 0}]
    prompt = build_prompt(recent)
    assert "**Markdown**" in prompt
    assert json.dumps(recent, indent=2) in prompt


def test_extract_summary_defaults():
    assert extract_summary({"choices": []}) == NO_INSIGHTS
    assert extract_summary({"choices": [{"message": {"content": ""}}]}) == NO_INSIGHTS
    assert extract_summary(None) == NO_INSIGHTS


# -----------------------------------------------------------------------------
# Endpoint
# -----------------------------------------------------------------------------


def test_ai_analysis_success(client, upstream):
    _stub_txs(upstream)
    _stub_completion(upstream)
    r = client.post("/api/ai-analysis", json={"address": VALID_ADDRESS})
    assert r.status_code == 200
    assert r.json() == {"summary": "## Summary\n- **3** transactions"}

    sent = [c for c in upstream.calls if c.method == "POST"][0]
    body = json.loads(sent.content)
    assert body["model"] == "google/gemma-3n-e4b-it"
    assert body["max_tokens"] == 1000
    assert body["temperature"] == 0.7
    assert sent.headers["Authorization"] == "Bearer test-key"


def test_ai_analysis_empty_content_defaults(client, upstream):
    _stub_txs(upstream)
    _stub_completion(upstream, content="")
    r = client.post("/api/ai-analysis", json={"address": VALID_ADDRESS})
    assert r.status_code == 200
    assert r.json()["summary"] == NO_INSIGHTS


def test_ai_analysis_missing_address(client):
    r = client.post("/api/ai-analysis", json={})
    assert r.status_code == 400
    assert r.json() == {"error": "Address is required"}


def test_ai_analysis_non_string_address(client):
    r = client.post("/api/ai-analysis", json={"address": 12345})
    assert r.status_code == 400
    assert r.json() == {"error": "Address is required"}


def test_ai_analysis_bad_format(client):
    for bad in ("short", "0OIl" * 10):
        r = client.post("/api/ai-analysis", json={"address": bad})
        assert r.status_code == 400
        assert r.json() == {"error": "Invalid address format"}


def test_ai_analysis_invalid_json(client):
    r = client.post("/api/ai-analysis", content=b"{not json", headers={"Content-Type": "application/json"})
    assert r.status_code == 400


def test_ai_analysis_rate_limit(client):
    """5 requests per minute per IP: the 6th gets 429."""
    headers = {"x-forwarded-for": "9.9.9.9, 10.0.0.1"}
    for _ in range(5):
        r = client.post("/api/ai-analysis", json={}, headers=headers)
        assert r.status_code == 400
    r = client.post("/api/ai-analysis", json={}, headers=headers)
    assert r.status_code == 429
    assert r.json() == {"error": "Too many requests. Please try again later."}
    # another client is unaffected
    other = client.post("/api/ai-analysis", json={}, headers={"x-forwarded-for": "8.8.8.8"})
    assert other.status_code == 400


def test_ai_analysis_missing_key_is_503(alphiq_db, settings, upstream):
    app = create_app(settings=replace(settings, aiml_api_key=None), upstream_transport=upstream.transport())
    r = TestClient(app).post("/api/ai-analysis", json={"address": VALID_ADDRESS})
    assert r.status_code == 503
    assert r.json() == {"error": "Service temporarily unavailable"}


def test_ai_analysis_tx_fetch_failure_is_502(client, upstream):
    upstream.json("GET", r"/addresses/[^/]+/transactions", {"detail": "x"}, status=500)
    r = client.post("/api/ai-analysis", json={"address": VALID_ADDRESS})
    assert r.status_code == 502
    assert r.json() == {"error": "Failed to fetch transaction data"}


def test_ai_analysis_upstream_401(client, upstream):
    _stub_txs(upstream)
    _stub_completion(upstream, status=401)
    r = client.post("/api/ai-analysis", json={"address": VALID_ADDRESS})
    assert r.status_code == 401
    assert r.json() == {"error": "AI API key is invalid or missing"}


def test_ai_analysis_upstream_error_is_502(client, upstream):
    _stub_txs(upstream)
    _stub_completion(upstream, status=500)
    r = client.post("/api/ai-analysis", json={"address": VALID_ADDRESS})
    assert r.status_code == 502
    assert r.json() == {"error": "AI analysis service unavailable"}
