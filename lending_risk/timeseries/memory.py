"""In-process candle store, mainly for tests and local runs."""
from __future__ import annotations

from datetime import datetime
from typing import Iterable

from ..models import Candle, PriceStats
from .query import BarQuery, SortOrder, apply_query, as_utc, price_stats


class InMemorySeriesStore:
    """Candles keyed by (address, chain id, timestamp).

    Writes replace the bar with the same key. Readers work on a snapshot
    taken at call time, so a concurrent insert never alters an in-flight
    result.
    """

    def __init__(self, candles: Iterable[Candle] = ()) -> None:
        self._bars: dict[tuple[str, int, datetime], Candle] = {}
        for candle in candles:
            self._put(candle)

    def _put(self, candle: Candle) -> None:
        key = (candle.address.lower(), candle.chain_id, as_utc(candle.timestamp))
        self._bars[key] = candle

    def _snapshot(self) -> list[Candle]:
        return list(self._bars.values())

    def __len__(self) -> int:
        return len(self._bars)

    async def insert_bar(self, candle: Candle) -> None:
        self._put(candle)

    async def insert_bars(self, candles: Iterable[Candle]) -> None:
        for candle in candles:
            self._put(candle)

    async def query_bars(self, query: BarQuery) -> list[Candle]:
        if query.interval is not None:
            raise ValueError("query_bars does not resample; use aggregate_bars")
        return apply_query(self._snapshot(), query)

    async def aggregate_bars(self, query: BarQuery) -> list[Candle]:
        if query.interval is None:
            raise ValueError("aggregate_bars requires an interval")
        return apply_query(self._snapshot(), query)

    async def get_latest_bar(self, address: str, chain_id: int | None = None) -> Candle | None:
        bars = await self.query_bars(
            BarQuery(address=address, chain_id=chain_id, limit=1, order=SortOrder.DESC)
        )
        return bars[0] if bars else None

    async def get_price_stats(
        self,
        address: str,
        chain_id: int | None = None,
        from_ts: datetime | None = None,
    ) -> PriceStats | None:
        return price_stats(
            apply_query(
                self._snapshot(),
                BarQuery(address=address, chain_id=chain_id, from_ts=from_ts),
            )
        )
