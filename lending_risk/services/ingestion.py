"""Daily OHLC ingestion: fills the candle store from the market-data provider."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, Iterable

from ..config import IngestionConfig
from ..interfaces.market_data import MarketDataCatalogue
from ..interfaces.market_registry import MarketRegistry
from ..interfaces.series_store import SeriesStore
from ..markets.catalog import STATIC_MARKETS
from ..markets.registry import get_market, market_union
from ..models import AssetDescriptor, Candle, MarketDescriptor, PriceWindow
from ..timeseries.query import day_start

logger = logging.getLogger(__name__)

STORED = "stored"
SKIPPED = "skipped"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def derive_daily_candle(
    window: PriceWindow, address: str, chain_id: int, now: datetime
) -> Candle | None:
    """Yesterday's candle from a daily price window, or None with < 2 points.

    The provider returns one point per day, so yesterday's price is both open
    and close while high/low also consider today's point.
    """
    prices = window.prices
    if len(prices) < 2:
        return None

    idx = len(prices) - 2
    yesterday_price = prices[idx][1]
    today_price = prices[-1][1]
    volume = window.volumes[idx][1] if len(window.volumes) > idx else 0.0

    return Candle(
        address=address.lower(),
        chain_id=chain_id,
        open=yesterday_price,
        high=max(yesterday_price, today_price),
        low=min(yesterday_price, today_price),
        close=yesterday_price,
        volume=volume,
        timestamp=day_start(now) - timedelta(days=1),
    )


@dataclass
class IngestionReport:
    markets: int = 0
    stored: int = 0
    skipped: int = 0
    failed: int = 0


class OhlcIngestionJob:
    """Walks every market's assets and stores yesterday's candle for each.

    One asset failing never stops its market, one market failing never stops
    the run, and ``run_once`` never raises. Overlapping runs are skipped.
    """

    def __init__(
        self,
        registry: MarketRegistry,
        catalogue: MarketDataCatalogue,
        store: SeriesStore,
        config: IngestionConfig,
        static_markets: Iterable[MarketDescriptor] = STATIC_MARKETS,
        now: Callable[[], datetime] = _utc_now,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._registry = registry
        self._catalogue = catalogue
        self._store = store
        self._config = config
        self._static_markets = tuple(static_markets)
        self._now = now
        self._sleep = sleep
        self._lock = asyncio.Lock()

    @property
    def running(self) -> bool:
        return self._lock.locked()

    async def run_once(self) -> IngestionReport | None:
        """Run one full ingestion; returns None if a run is already active."""
        if self._lock.locked():
            logger.warning("Daily OHLC fetch already running, skipping this trigger")
            return None

        async with self._lock:
            report = IngestionReport()
            logger.info("Starting daily OHLC fetch for lending market reserves...")
            try:
                registered = await self._registry.list_chains()
                logger.info("Found %d registered markets", len(registered))
                chains = market_union(registered, self._static_markets)

                for chain in chains:
                    await self.process_market(chain, report)

                logger.info(
                    "Daily OHLC fetch completed: %d markets, %d stored, %d skipped, %d failed",
                    report.markets,
                    report.stored,
                    report.skipped,
                    report.failed,
                )
            except Exception as e:
                logger.error("Error during daily OHLC fetch: %s", e)
            return report

    async def trigger_manual_fetch(self) -> IngestionReport | None:
        logger.info("Manual OHLC fetch triggered")
        return await self.run_once()

    async def process_market(self, chain: str, report: IngestionReport) -> None:
        logger.info("Processing market: %s", chain)
        try:
            market = get_market(chain, self._static_markets)
            delay = self._config.asset_delay_ms / 1000

            for i, (name, asset) in enumerate(market.assets.items()):
                if i and delay:
                    await self._sleep(delay)
                try:
                    outcome = await self.fetch_and_store(market, name, asset)
                except Exception as e:
                    report.failed += 1
                    logger.error(
                        "Error fetching OHLC for %s (%s): %s", name, asset.address, e
                    )
                    continue
                if outcome == STORED:
                    report.stored += 1
                else:
                    report.skipped += 1

            report.markets += 1
            logger.info("Completed processing market: %s", chain)
        except Exception as e:
            logger.error("Error processing market %s: %s", chain, e)

    async def fetch_and_store(
        self, market: MarketDescriptor, name: str, asset: AssetDescriptor
    ) -> str:
        if not asset.address:
            logger.warning("No underlying address for asset %s", name)
            return SKIPPED

        coin_id = await self._catalogue.find_asset_by_chain_address(
            asset.address, market.platform
        )
        if not coin_id:
            logger.warning(
                "Coin not found on catalogue for %s (%s) on %s",
                name,
                asset.address,
                market.platform,
            )
            return SKIPPED

        window = await self._catalogue.get_daily_price_window(
            coin_id, self._config.vs_currency, self._config.price_window_days
        )
        candle = derive_daily_candle(window, asset.address, market.chain_id, self._now())
        if candle is None:
            logger.warning("Insufficient price data for %s (%s)", name, coin_id)
            return SKIPPED

        await self._store.insert_bar(candle)
        logger.debug(
            "Stored OHLC for %s: O=%.4f, H=%.4f, L=%.4f, C=%.4f",
            name,
            candle.open,
            candle.high,
            candle.low,
            candle.close,
        )
        return STORED
