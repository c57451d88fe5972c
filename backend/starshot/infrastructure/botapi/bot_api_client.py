"""Trading-bot REST client (freqtrade-style API) using httpx.

Features:
- Basic-Auth from the per-model credential pair
- /trades and /status (or /stats) fetched concurrently
- Cache bypass on every request
- Fail-open: any transport / HTTP / JSON failure resolves to an empty default
"""

from __future__ import annotations

import asyncio
import copy
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import httpx

from starshot.infrastructure.logging.logging import get_logger
from starshot.infrastructure.utils.config import BotApiConfig

JsonDict = Dict[str, Any]

STATUS_DEFAULT: JsonDict = {}
TRADES_DEFAULT: JsonDict = {"trades": []}


class BotApiError(RuntimeError):
    pass


@dataclass(frozen=True)
class UpstreamSnapshot:
    """Raw payloads of one poll; either may be a substituted default."""

    model: str
    trades: Any = field(default_factory=lambda: copy.deepcopy(TRADES_DEFAULT))
    status: Any = field(default_factory=lambda: copy.deepcopy(STATUS_DEFAULT))
    trades_ok: bool = False
    status_ok: bool = False


class BotApiClient:
    def __init__(
        self,
        model: str,
        bot: BotApiConfig,
        *,
        status_path: str = "/status",
        trades_path: str = "/trades",
        timeout_sec: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._logger = get_logger("bot_api", model=model)
        self.model = model
        self._base_url = bot.base_url.rstrip("/")
        self._auth = httpx.BasicAuth(bot.username, bot.password) if bot.password else None
        self._status_path = status_path
        self._trades_path = trades_path
        self._timeout = timeout_sec
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Cache-Control": "no-cache, no-store",
            "Pragma": "no-cache",
        }

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            auth=self._auth,
            headers=self._headers(),
            timeout=self._timeout,
            transport=self._transport,
        )

    async def get_json(self, client: httpx.AsyncClient, path: str) -> Any:
        """GET path and decode JSON. Raises BotApiError on any failure."""
        try:
            resp = await client.get(path)
        except httpx.HTTPError as e:
            raise BotApiError(f"{path} request failed: {type(e).__name__}: {e}") from e

        if resp.status_code < 200 or resp.status_code >= 300:
            raise BotApiError(f"{path} request failed: {resp.status_code} {resp.reason_phrase}")

        try:
            return resp.json()
        except ValueError as e:
            raise BotApiError(f"{path} returned invalid JSON") from e

    async def _get_or_default(self, client: httpx.AsyncClient, path: str, default: JsonDict) -> tuple[Any, bool]:
        try:
            data = await self.get_json(client, path)
        except BotApiError as e:
            self._logger.error("upstream_request_failed", path=path, error=str(e))
            return copy.deepcopy(default), False
        self._logger.debug("upstream_request_ok", path=path)
        return data, True

    async def fetch_snapshot(self) -> UpstreamSnapshot:
        """Fetch trades and status concurrently; never raises for upstream unavailability."""
        async with self._client() as client:
            (trades, trades_ok), (status, status_ok) = await asyncio.gather(
                self._get_or_default(client, self._trades_path, TRADES_DEFAULT),
                self._get_or_default(client, self._status_path, STATUS_DEFAULT),
            )

        return UpstreamSnapshot(
            model=self.model,
            trades=trades,
            status=status,
            trades_ok=trades_ok,
            status_ok=status_ok,
        )
