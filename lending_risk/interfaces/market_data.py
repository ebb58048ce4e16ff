"""Market-data catalogue protocol: coin lookup and price history."""
from typing import Protocol

from ..models import PriceWindow


class MarketDataCatalogue(Protocol):
    """Abstract interface for an external market-data provider."""

    async def find_asset_by_chain_address(
        self, address: str, platform: str
    ) -> str | None: ...

    async def get_daily_price_window(
        self, coin_id: str, currency: str, days: int
    ) -> PriceWindow: ...
