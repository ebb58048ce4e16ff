"""Protocol interfaces for external collaborators."""
from .market_data import MarketDataCatalogue
from .market_registry import MarketRegistry
from .reserve_reader import ReserveReader
from .series_store import SeriesStore

__all__ = ["MarketDataCatalogue", "MarketRegistry", "ReserveReader", "SeriesStore"]
