"""
AI wallet summary: reshape recent transactions into a compact JSON prompt and
ask a chat-completion endpoint for a Markdown report.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any

import httpx

from alphiq_backend.alphiq_logging import get_logger
from alphiq_backend.analytics.activity import MS_PER_DAY
from alphiq_backend.config import Settings
from alphiq_backend.explorer.client import ATTO_PER_ALPH, parse_atto

logger = get_logger(__name__)

RECENT_WINDOW_DAYS = 30
MAX_PROMPT_TRANSACTIONS = 50
MAX_TOKENS = 1000
TEMPERATURE = 0.7
NO_INSIGHTS = "No insights available."

PROMPT_TEMPLATE = """You are a friendly on-chain AI analyst. Provide a **Markdown** summary of this wallet's past 30 days on Alephium:
- **H2 headings** for sections.
- **Bullet points** with **bold** key figures.
- One "fun fact" or interesting insight at the end.

Here are the transactions JSON:
```json
{transactions}
```"""


class CompletionError(Exception):
    """Chat-completion call failed; status_code is the upstream HTTP status when there was one."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def _whole_alph(value: Any) -> int:
    try:
        return parse_atto(value) // ATTO_PER_ALPH
    except (TypeError, ValueError):
        return 0


def _first_amount(entries: Any) -> Any:
    if isinstance(entries, list) and entries and isinstance(entries[0], dict):
        return entries[0].get("attoAlphAmount", "0")
    return "0"


def summarize_recent_transactions(raw_txs: list[dict[str, Any]], now_ms: int) -> list[dict[str, Any]]:
    """
    Transactions from the last 30 days, then the last 50 of those, each as
    {hash, date, in, out, fee} with amounts in whole ALPH.
    """
    cutoff = now_ms - RECENT_WINDOW_DAYS * MS_PER_DAY
    recent = [
        tx
        for tx in raw_txs
        if isinstance(tx.get("timestamp"), (int, float)) and tx["timestamp"] >= cutoff
    ][-MAX_PROMPT_TRANSACTIONS:]

    out: list[dict[str, Any]] = []
    for tx in recent:
        try:
            fee = int(tx.get("gasAmount") or 0) * parse_atto(tx.get("gasPrice") or "0") // ATTO_PER_ALPH
        except (TypeError, ValueError):
            fee = 0
        out.append(
            {
                "hash": tx.get("hash"),
                "date": datetime.fromtimestamp(tx["timestamp"] / 1000, tz=timezone.utc).date().isoformat(),
                "in": _whole_alph(_first_amount(tx.get("inputs"))),
                "out": _whole_alph(_first_amount(tx.get("outputs"))),
                "fee": fee,
            }
        )
    return out


def build_prompt(recent: list[dict[str, Any]]) -> str:
    return PROMPT_TEMPLATE.format(transactions=json.dumps(recent, indent=2)).strip()


class CompletionClient:
    """Minimal OpenAI-compatible chat-completions client (aimlapi.com by default)."""

    def __init__(
        self,
        settings: Settings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not settings.aiml_api_key:
            raise CompletionError("AIML_API_KEY is not configured")
        self.settings = settings
        self._transport = transport

    async def complete(self, prompt: str) -> str:
        body = {
            "model": self.settings.ai_model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": MAX_TOKENS,
            "temperature": TEMPERATURE,
        }
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.settings.aiml_api_key}",
        }
        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self.settings.timeout_ai_analysis),
                transport=self._transport,
            ) as client:
                resp = await client.post(self.settings.ai_api_url, json=body, headers=headers)
        except httpx.HTTPError as e:
            logger.error("ai_completion_request_error", error=str(e))
            raise CompletionError(f"completion request error: {e}") from e

        if resp.status_code >= 400:
            logger.error("ai_completion_http_error", status=resp.status_code, body=resp.text[:500])
            raise CompletionError(f"completion HTTP {resp.status_code}", resp.status_code)

        try:
            payload = resp.json()
        except ValueError as e:
            raise CompletionError("completion returned non-JSON response") from e
        return extract_summary(payload)


def extract_summary(payload: Any) -> str:
    """choices[0].message.content, or the no-insights placeholder."""
    try:
        content = payload["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        return NO_INSIGHTS
    return content or NO_INSIGHTS
