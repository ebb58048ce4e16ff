"""Series store protocol: candle persistence and queries."""
from typing import Protocol

from ..models import Candle
from ..timeseries.query import BarQuery


class SeriesStore(Protocol):
    """Abstract interface for the OHLC time-series store."""

    async def insert_bar(self, candle: Candle) -> None: ...

    async def query_bars(self, query: BarQuery) -> list[Candle]: ...

    async def aggregate_bars(self, query: BarQuery) -> list[Candle]: ...
