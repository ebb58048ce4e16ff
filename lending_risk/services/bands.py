"""Monthly Bollinger band lookup over the candle store."""
from __future__ import annotations

import logging
from datetime import datetime

from ..indicators.bollinger import ensure_ascending, last_band
from ..interfaces.series_store import SeriesStore
from ..models import BollingerBand
from ..timeseries.query import SortOrder, monthly_bars_query

logger = logging.getLogger(__name__)


class BandService:
    """Reduce the most recent completed monthly candles to one band."""

    def __init__(self, store: SeriesStore, window: int = 20, multiplier: float = 2.0) -> None:
        self._store = store
        self.window = window
        self.multiplier = multiplier

    async def monthly_band(
        self, address: str, chain_id: int, as_of: datetime | None = None
    ) -> BollingerBand | None:
        """Band over the last ``window`` monthly closes, or None if there are fewer."""
        query = monthly_bars_query(
            address, chain_id, limit=self.window, as_of=as_of, order=SortOrder.ASC
        )
        candles = await self._store.aggregate_bars(query)
        ensure_ascending(candles)

        band = last_band((c.close for c in candles), self.window, self.multiplier)
        if band is None:
            logger.info(
                "Insufficient monthly data for %s on chain %s (%d of %d bars)",
                query.address,
                chain_id,
                len(candles),
                self.window,
            )
        return band
