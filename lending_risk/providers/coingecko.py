"""CoinGecko market-data client."""
from __future__ import annotations

import asyncio
import logging
import ssl
import time
from typing import Any

import aiohttp
import certifi

from ..config import CoinGeckoConfig
from ..exceptions import AssetNotFoundError, CollaboratorError
from ..models import PriceWindow

logger = logging.getLogger(__name__)


def _pairs(raw: list[list[Any]] | None) -> tuple[tuple[int, float], ...]:
    return tuple((int(ts), float(value)) for ts, value in (raw or []))


class CoinGeckoClient:
    """Coin lookup by contract address and daily price history.

    The full coin list is large and changes rarely, so it is cached for
    ``cache_ttl_hours``.
    """

    def __init__(self, config: CoinGeckoConfig) -> None:
        self.base_url = config.base_url.rstrip("/")
        self.api_key = config.api_key
        self.timeout = config.request_timeout
        self.cache_ttl = config.cache_ttl_hours * 3600
        self._coins: list[dict[str, Any]] | None = None
        self._coins_fetched_at = 0.0
        self._coins_lock = asyncio.Lock()

    async def _request(self, endpoint: str, params: dict[str, Any] | None = None) -> Any:
        query = {k: str(v) for k, v in (params or {}).items() if v is not None}
        if self.api_key:
            query["x_cg_demo_api_key"] = self.api_key
        url = f"{self.base_url}{endpoint}"

        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        logger.debug("Requesting %s", url)
        try:
            async with aiohttp.ClientSession(connector=connector) as session:
                async with session.get(
                    url,
                    params=query,
                    headers={"Accept": "application/json"},
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                ) as response:
                    if response.status != 200:
                        text = await response.text()
                        logger.error("CoinGecko API error: %s - %s", response.status, text)
                        raise CollaboratorError(
                            "coingecko", f"HTTP {response.status} for {endpoint}"
                        )
                    try:
                        return await response.json()
                    except ValueError as e:
                        raise CollaboratorError(
                            "coingecko", f"malformed JSON from {endpoint}"
                        ) from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise CollaboratorError("coingecko", f"request to {endpoint} failed: {e}") from e

    # ------------------------------------------------------------------
    # Coin list
    # ------------------------------------------------------------------

    def _cache_valid(self) -> bool:
        return (
            self._coins is not None
            and time.monotonic() - self._coins_fetched_at < self.cache_ttl
        )

    async def get_coins_list(self, force_refresh: bool = False) -> list[dict[str, Any]]:
        async with self._coins_lock:
            if not force_refresh and self._cache_valid():
                return self._coins or []

            logger.info("Fetching fresh coin list from CoinGecko")
            coins = await self._request("/coins/list", {"include_platform": "true"})
            self._coins = list(coins)
            self._coins_fetched_at = time.monotonic()
            logger.info("Cached %d coins", len(self._coins))
            return self._coins

    def clear_cache(self) -> None:
        self._coins = None
        self._coins_fetched_at = 0.0

    def cache_info(self) -> dict[str, Any]:
        if not self._cache_valid():
            return {"exists": False}
        age = time.monotonic() - self._coins_fetched_at
        return {"exists": True, "ttl": self.cache_ttl - age, "coins": len(self._coins or [])}

    async def find_asset_by_chain_address(self, address: str, platform: str) -> str | None:
        """Catalogue id of the coin deployed at ``address`` on ``platform``."""
        wanted = address.lower()
        platform = platform.lower()
        for coin in await self.get_coins_list():
            platforms = coin.get("platforms") or {}
            if str(platforms.get(platform) or "").lower() == wanted:
                return coin.get("id")
        return None

    # ------------------------------------------------------------------
    # Market chart
    # ------------------------------------------------------------------

    async def get_market_chart(
        self, coin_id: str, currency: str, days: int, interval: str | None = "daily"
    ) -> dict[str, Any]:
        logger.info("Fetching market chart for coin: %s", coin_id)
        return await self._request(
            f"/coins/{coin_id}/market_chart",
            {"vs_currency": currency, "days": days, "interval": interval},
        )

    async def get_token_market_chart(
        self,
        address: str,
        platform: str,
        currency: str,
        days: int,
        interval: str | None = "daily",
    ) -> dict[str, Any]:
        """Market chart for the coin deployed at ``address`` on ``platform``.

        Raises:
            AssetNotFoundError: no coin in the catalogue matches the address.
        """
        coin_id = await self.find_asset_by_chain_address(address, platform)
        if coin_id is None:
            raise AssetNotFoundError(address, platform)
        return await self.get_market_chart(coin_id, currency, days, interval)

    async def get_daily_price_window(self, coin_id: str, currency: str, days: int) -> PriceWindow:
        chart = await self.get_market_chart(coin_id, currency, days, interval="daily")
        return PriceWindow(
            prices=_pairs(chart.get("prices")),
            volumes=_pairs(chart.get("total_volumes")),
        )
