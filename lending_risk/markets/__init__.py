"""Lending market catalogue and registry."""
from .catalog import PLATFORMS, STATIC_MARKETS, STATIC_MARKETS_VERSION, platform_for_chain
from .registry import ConfigMarketRegistry, get_market, market_union

__all__ = [
    "PLATFORMS",
    "STATIC_MARKETS",
    "STATIC_MARKETS_VERSION",
    "ConfigMarketRegistry",
    "get_market",
    "market_union",
    "platform_for_chain",
]
