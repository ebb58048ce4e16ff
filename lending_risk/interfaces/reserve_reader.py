"""Reserve reader protocol: on-chain reserve and user-position data."""
from typing import Protocol

from ..models import Account, MarketDescriptor, ReserveSnapshot


class ReserveReader(Protocol):
    """Reads humanized reserve and position data for one market/account."""

    async def get_snapshot(
        self, market: MarketDescriptor, account: Account
    ) -> ReserveSnapshot: ...
