"""Market lookup and the registered + built-in market union."""
from __future__ import annotations

import dataclasses
import logging
from typing import Iterable

from ..config import RegisteredMarketConfig
from ..exceptions import ConfigurationError
from ..models import MarketDescriptor
from .catalog import STATIC_MARKETS

logger = logging.getLogger(__name__)


def get_market(
    chain: str,
    markets: Iterable[MarketDescriptor] = STATIC_MARKETS,
    rpc_endpoint: str | None = None,
) -> MarketDescriptor:
    """Look up a market by chain name, optionally overriding its RPC endpoint.

    Raises:
        ConfigurationError: no market is known for ``chain``.
    """
    for market in markets:
        if market.chain == chain:
            if rpc_endpoint:
                return dataclasses.replace(market, rpc_endpoint=rpc_endpoint)
            return market
    raise ConfigurationError(f"Market not found for chain {chain}")


def market_union(
    registered_chains: Iterable[str],
    static_markets: Iterable[MarketDescriptor] = STATIC_MARKETS,
) -> list[str]:
    """Ordered union of chain names, registered first, deduplicated."""
    chains: list[str] = []
    seen: set[str] = set()
    for chain in list(registered_chains) + [m.chain for m in static_markets]:
        if chain not in seen:
            seen.add(chain)
            chains.append(chain)
    return chains


class ConfigMarketRegistry:
    """Markets registered for this deployment in config.yaml."""

    def __init__(
        self,
        registered: Iterable[RegisteredMarketConfig],
        static_markets: Iterable[MarketDescriptor] = STATIC_MARKETS,
    ) -> None:
        self._registered = tuple(registered)
        self._static = tuple(static_markets)

    async def list_chains(self) -> list[str]:
        return [m.chain for m in self._registered]

    def resolve(self, chain: str) -> MarketDescriptor:
        """Resolve a registered chain name, applying any configured RPC override.

        Raises:
            ConfigurationError: ``chain`` is not registered or has no market.
        """
        registered = next((m for m in self._registered if m.chain == chain), None)
        if registered is None:
            raise ConfigurationError(f"Market not found for chain {chain}")
        return get_market(chain, self._static, rpc_endpoint=registered.rpc_endpoint)
