"""
Async client for the Alephium explorer backend REST API.

Thin wrapper over httpx: one method per endpoint, JSON decoding, and a single
typed error (ExplorerError) for transport failures, non-2xx responses and
malformed payloads. Callers decide whether an error is fatal or degrades to
a default.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx

from alphiq_backend.alphiq_logging import get_logger
from alphiq_backend.config import Settings, get_settings

logger = get_logger(__name__)

ATTO_PER_ALPH = 10**18


class ExplorerError(Exception):
    """Raised when the explorer responds with an error or unexpected payload."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def atto_to_alph(atto: int) -> int:
    """Whole ALPH from atto (integer division, truncates the fractional part)."""
    return atto // ATTO_PER_ALPH


def parse_atto(value: Any) -> int:
    """Parse an atto amount (decimal string or int). Raises ValueError on garbage."""
    if value is None:
        return 0
    if isinstance(value, bool):
        raise ValueError(f"not an atto amount: {value!r}")
    if isinstance(value, int):
        return value
    return int(str(value).strip())


@dataclass
class AddressInfo:
    """GET /addresses/{address}: balance in atto and lifetime tx count."""

    address: str
    balance_atto: int
    locked_atto: int
    tx_number: int

    @property
    def balance_alph(self) -> int:
        return atto_to_alph(self.balance_atto)

    @classmethod
    def from_payload(cls, address: str, payload: Any) -> AddressInfo:
        if not isinstance(payload, dict):
            raise ExplorerError("address payload must be a JSON object")
        try:
            balance = parse_atto(payload.get("balance") or "0")
            locked = parse_atto(payload.get("lockedBalance") or "0")
        except ValueError as e:
            raise ExplorerError(f"malformed balance for {address}: {e}") from e
        try:
            tx_number = int(payload.get("txNumber") or 0)
        except (TypeError, ValueError):
            tx_number = 0
        return cls(address=address, balance_atto=balance, locked_atto=locked, tx_number=tx_number)


class ExplorerClient:
    """Async client for the explorer backend. Use as `async with ExplorerClient() as client`."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._client = httpx.AsyncClient(
            base_url=self.settings.explorer_base_url,
            timeout=httpx.Timeout(timeout if timeout is not None else self.settings.timeout_default),
            headers={"User-Agent": self.settings.user_agent},
            transport=transport,
        )

    async def __aenter__(self) -> ExplorerClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        try:
            resp = await self._client.get(path, params=params)
        except httpx.HTTPError as e:
            logger.warning("explorer_request_error", path=path, error=str(e))
            raise ExplorerError(f"explorer request error for {path}: {e}") from e

        if resp.status_code >= 400:
            logger.warning("explorer_http_error", path=path, status=resp.status_code)
            raise ExplorerError(f"explorer HTTP {resp.status_code} for {path}", resp.status_code)

        try:
            return resp.json()
        except ValueError as e:
            raise ExplorerError(f"explorer returned non-JSON response for {path}") from e

    async def get_address(self, address: str) -> AddressInfo:
        payload = await self._get_json(f"/addresses/{address}")
        return AddressInfo.from_payload(address, payload)

    async def get_transactions(self, address: str, limit: int | None = None) -> list[dict[str, Any]]:
        """Raw transaction dicts as returned by the explorer (newest first), optionally truncated."""
        payload = await self._get_json(f"/addresses/{address}/transactions")
        if not isinstance(payload, list):
            raise ExplorerError("transactions payload must be a JSON array")
        txs = [t for t in payload if isinstance(t, dict)]
        return txs[:limit] if limit is not None else txs

    async def get_total_transactions(self) -> int:
        return int(await self._get_json("/infos/total-transactions"))

    async def get_hashrates(self, from_ts: int, to_ts: int, interval: str = "hourly") -> list[dict[str, Any]]:
        payload = await self._get_json(
            "/charts/hashrates",
            params={"fromTs": from_ts, "toTs": to_ts, "interval-type": interval},
        )
        if not isinstance(payload, list):
            raise ExplorerError("hashrates payload must be a JSON array")
        return payload

    async def get_total_alph(self) -> float:
        return _supply_value(await self._get_json("/infos/supply/total-alph"), "totalAlph")

    async def get_circulating_alph(self) -> float:
        return _supply_value(await self._get_json("/infos/supply/circulating-alph"), "circulatingAlph")

    async def get_alph_holders(self) -> list[dict[str, Any]]:
        payload = await self._get_json("/tokens/holders/alph")
        if not isinstance(payload, list):
            raise ExplorerError("holders payload must be a JSON array")
        return payload


def _supply_value(payload: Any, key: str) -> float:
    """Supply endpoints return a bare number; older deployments wrap it in an object."""
    if isinstance(payload, (int, float)) and not isinstance(payload, bool):
        return float(payload)
    if isinstance(payload, dict) and isinstance(payload.get(key), (int, float)):
        return float(payload[key])
    raise ExplorerError(f"unexpected supply payload: {str(payload)[:100]}")
