"""Lending position stress scenarios and daily OHLC ingestion."""

__version__ = "0.1.0"
