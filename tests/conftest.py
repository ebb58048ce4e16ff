"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

import pytest

from lending_risk.config import (
    AppConfig,
    CoinGeckoConfig,
    IngestionConfig,
    RegisteredMarketConfig,
    RiskConfig,
    SeriesStoreConfig,
)
from lending_risk.models import (
    AssetDescriptor,
    BaseCurrency,
    Candle,
    MarketDescriptor,
    ReservePosition,
    ReserveSnapshot,
)

WETH = "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2"
USDC = "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48"
DAI = "0x6b175474e89094c44da98b954eedeac495271d0f"

# Evaluation time for scenario and band tests; completed months end at 2025-06-01.
AS_OF = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_app_config() -> AppConfig:
    return AppConfig(
        risk=RiskConfig(bollinger_window=20, bollinger_multiplier=2.0, safety_multiplier=1.2),
        ingestion=IngestionConfig(asset_delay_ms=0),
        coingecko=CoinGeckoConfig(base_url="https://cg.example.com/api/v3"),
        series_store=SeriesStoreConfig(url="http://questdb.example.com:9000"),
        markets=(RegisteredMarketConfig(chain="Ethereum"),),
    )


SAMPLE_YAML = textwrap.dedent("""\
    risk:
      bollinger_window: 12
      bollinger_multiplier: 2.5
      safety_multiplier: 1.25
      scenario_timeout_seconds: 15
    ingestion:
      schedule_hour_utc: 4
      schedule_minute_utc: 30
      asset_delay_ms: 250
      price_window_days: 2
      vs_currency: usd
    coingecko:
      base_url: "https://cg.example.com/api/v3"
      api_key: "${CG_KEY}"
      cache_ttl_hours: 6
    series_store:
      url: "http://questdb.example.com:9000"
      table: bars
    markets:
      - chain: Ethereum
      - chain: Arbitrum
        rpc_endpoint: "https://arb.example.com"
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file


# ---------------------------------------------------------------------------
# Market fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def test_market() -> MarketDescriptor:
    return MarketDescriptor(
        chain="Testnet",
        chain_id=99,
        rpc_endpoint="https://rpc.example.com",
        platform="testnet",
        assets={
            "WETH": AssetDescriptor(symbol="WETH", address=WETH, decimals=18),
            "USDC": AssetDescriptor(symbol="USDC", address=USDC, decimals=6),
        },
    )


# ---------------------------------------------------------------------------
# Position fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def make_position() -> Callable[..., ReservePosition]:
    """Factory for ReservePosition with WETH defaults."""

    def _make(**overrides) -> ReservePosition:
        values = dict(
            underlying_asset=WETH,
            symbol="WETH",
            decimals=18,
            underlying_balance=0.0,
            total_borrows=0.0,
            total_borrows_usd=0.0,
            usage_as_collateral_enabled=False,
            liquidation_threshold=0.8,
            reserve_id=f"{WETH}-99",
            name="Wrapped Ether",
        )
        values.update(overrides)
        return ReservePosition(**values)

    return _make


@pytest.fixture()
def sample_snapshot() -> ReserveSnapshot:
    """USDC debt of $1000, 1 WETH as collateral, DAI supplied but not collateral."""
    return ReserveSnapshot(
        reserves=(
            {
                "id": f"{WETH}-1",
                "underlyingAsset": WETH,
                "name": "Wrapped Ether",
                "symbol": "WETH",
                "decimals": 18,
                "priceInMarketReferenceCurrency": "200000000000",
                "reserveLiquidationThreshold": "8000",
            },
            {
                "id": f"{USDC}-1",
                "underlyingAsset": USDC,
                "name": "USD Coin",
                "symbol": "USDC",
                "decimals": 6,
                "priceInMarketReferenceCurrency": "100000000",
                "reserveLiquidationThreshold": "7800",
            },
            {
                "id": f"{DAI}-1",
                "underlyingAsset": DAI,
                "name": "Dai Stablecoin",
                "symbol": "DAI",
                "decimals": 18,
                "priceInMarketReferenceCurrency": "100000000",
                "reserveLiquidationThreshold": "7700",
            },
        ),
        positions=(
            {
                "underlyingAsset": WETH.upper().replace("0X", "0x"),
                "underlyingBalance": "1.0",
                "totalBorrows": "0",
                "usageAsCollateralEnabledOnUser": True,
            },
            {
                "underlyingAsset": USDC,
                "underlyingBalance": "0",
                "totalBorrows": "1000",
                "usageAsCollateralEnabledOnUser": False,
            },
            {
                "underlyingAsset": DAI,
                "underlyingBalance": "50",
                "totalBorrows": "0",
                "usageAsCollateralEnabledOnUser": False,
            },
        ),
        base_currency=BaseCurrency(
            market_reference_price_usd=100000000, market_reference_decimals=8
        ),
    )


# ---------------------------------------------------------------------------
# Candle fixtures
# ---------------------------------------------------------------------------


def month_back(ts: datetime, months: int) -> datetime:
    index = ts.year * 12 + (ts.month - 1) - months
    return ts.replace(year=index // 12, month=index % 12 + 1, day=1)


@pytest.fixture()
def monthly_candles() -> Callable[..., list[Candle]]:
    """Factory: one candle per month, oldest first, ending the month before ``end``."""

    def _make(
        closes: list[float],
        address: str = WETH,
        chain_id: int = 99,
        end: datetime = AS_OF,
    ) -> list[Candle]:
        start = end.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
        n = len(closes)
        return [
            Candle(
                address=address,
                chain_id=chain_id,
                open=close,
                high=close,
                low=close,
                close=close,
                volume=1.0,
                timestamp=month_back(start, n - i),
            )
            for i, close in enumerate(closes)
        ]

    return _make
