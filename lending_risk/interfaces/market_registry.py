"""Market registry protocol: markets known to this deployment."""
from typing import Protocol

from ..models import MarketDescriptor


class MarketRegistry(Protocol):
    async def list_chains(self) -> list[str]: ...

    def resolve(self, chain: str) -> MarketDescriptor: ...
