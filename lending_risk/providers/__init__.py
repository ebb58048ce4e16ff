"""External market-data providers."""
from .coingecko import CoinGeckoClient

__all__ = ["CoinGeckoClient"]
