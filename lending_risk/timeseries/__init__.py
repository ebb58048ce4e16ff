"""Candle queries and store implementations."""
from .memory import InMemorySeriesStore
from .query import BarQuery, Interval, SortOrder, month_start, monthly_bars_query
from .questdb import QuestDBStore

__all__ = [
    "BarQuery",
    "InMemorySeriesStore",
    "Interval",
    "QuestDBStore",
    "SortOrder",
    "month_start",
    "monthly_bars_query",
]
