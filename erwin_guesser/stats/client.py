"""Async client for the read-only stats service.

Thin adapter over the public box explorer API: one GET per call, JSON in,
stats dataclasses out. Every method opens a fresh ``httpx.AsyncClient``;
calls are infrequent (manual commands and a 15-minute poller), so there is
no connection pool to manage.

List endpoints return only the first page in the service's default order.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, TypeVar

import httpx

from erwin_guesser.config import (
    DEFAULT_STATS_URL,
    STATS_PAGE_SIZE,
    STATS_TIMEOUT_S,
)
from erwin_guesser.errors import StatsApiError
from erwin_guesser.stats.models import (
    BoxDetail,
    BoxInfo,
    BoxPage,
    ContributorStats,
    LeaderboardPage,
    WalletBoxPage,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StatsClient:
    def __init__(
        self,
        base_url: str = DEFAULT_STATS_URL,
        timeout_s: float = STATS_TIMEOUT_S,
        page_size: int = STATS_PAGE_SIZE,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._timeout_s = timeout_s
        self._page_size = page_size
        self._transport = transport

    async def _get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        url = f"{self._base_url}{path}"
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout_s, transport=self._transport
            ) as client:
                response = await client.get(url, params=params)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            logger.warning("Stats request %s failed with HTTP %d", path, status)
            raise StatsApiError(
                f"GET {path} returned HTTP {status}", status_code=status
            ) from exc
        except httpx.RequestError as exc:
            logger.warning("Stats request %s failed: %s", path, exc)
            raise StatsApiError(f"GET {path} failed: {exc}") from exc
        except ValueError as exc:
            raise StatsApiError(f"GET {path} returned invalid JSON: {exc}") from exc

    @staticmethod
    def _parse(path: str, factory: Callable[..., T], data: Any, **kwargs: Any) -> T:
        """Build a model from a payload; malformed payloads become StatsApiError."""
        try:
            return factory(data, **kwargs)
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            logger.warning("Stats response for %s has an unexpected shape: %r", path, exc)
            raise StatsApiError(f"GET {path} returned an unexpected payload: {exc!r}") from exc

    def _first_page(self) -> dict[str, Any]:
        return {"limit": self._page_size, "offset": 0}

    async def latest_box(self) -> BoxInfo:
        path = "/box/latest"
        data = await self._get_json(path)
        return self._parse(path, BoxInfo.from_dict, data)

    async def recent_boxes(self) -> BoxPage:
        params = {**self._first_page(), "exclude_burned": "false"}
        data = await self._get_json("/box", params)
        return self._parse("/box", BoxPage.from_dict, data)

    async def box_detail(self, box_id: str) -> BoxDetail:
        params = {"exclude_contributors": "false", "exclude_events": "true"}
        path = f"/box/id/{box_id}"
        data = await self._get_json(path, params)
        return self._parse(path, BoxDetail.from_dict, data)

    async def leaderboard(self) -> LeaderboardPage:
        data = await self._get_json("/leaderboard", self._first_page())
        return self._parse("/leaderboard", LeaderboardPage.from_dict, data)

    async def wallet_stats(self, wallet_address: str) -> ContributorStats:
        if not wallet_address:
            raise StatsApiError("A wallet address is required for wallet stats")
        path = f"/wallet/{wallet_address}"
        data = await self._get_json(path)
        return self._parse(path, ContributorStats.from_dict, data, wallet_id=wallet_address)

    async def wallet_boxes(self, wallet_address: str) -> WalletBoxPage:
        if not wallet_address:
            raise StatsApiError("A wallet address is required for wallet boxes")
        params = {
            **self._first_page(),
            "is_opener": "false",
            "exclude_burned": "false",
        }
        path = f"/wallet/{wallet_address}/boxes"
        data = await self._get_json(path, params)
        return self._parse(path, WalletBoxPage.from_dict, data)
