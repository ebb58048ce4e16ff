"""Frozen data models for markets, positions, candles and scenarios."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

# ---------------------------------------------------------------------------
# Markets
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AssetDescriptor:
    """One listed asset within a lending market."""

    symbol: str
    address: str
    decimals: int


@dataclass(frozen=True)
class MarketDescriptor:
    """A lending deployment on one chain."""

    chain: str
    chain_id: int
    rpc_endpoint: str
    platform: str
    contracts: dict[str, str] = field(default_factory=dict)
    assets: dict[str, AssetDescriptor] = field(default_factory=dict)

    def asset_by_address(self, address: str) -> AssetDescriptor | None:
        """Case-insensitive lookup of a listed asset by underlying address."""
        wanted = address.lower()
        for asset in self.assets.values():
            if asset.address.lower() == wanted:
                return asset
        return None


@dataclass(frozen=True)
class Account:
    """An owned address being analyzed."""

    address: str
    label: str = ""


# ---------------------------------------------------------------------------
# Positions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BaseCurrency:
    """Market reference currency as reported by the reserve reader."""

    market_reference_price_usd: float
    market_reference_decimals: int


@dataclass(frozen=True)
class ReserveSnapshot:
    """Raw reserve and user-position data for one (market, account) pair."""

    reserves: tuple[dict[str, Any], ...]
    positions: tuple[dict[str, Any], ...]
    base_currency: BaseCurrency


@dataclass(frozen=True)
class ReservePosition:
    """Normalized per-asset position of one account."""

    underlying_asset: str
    symbol: str
    decimals: int
    underlying_balance: float
    total_borrows: float
    total_borrows_usd: float
    usage_as_collateral_enabled: bool
    liquidation_threshold: float
    reserve_id: str = ""
    name: str = ""


@dataclass(frozen=True)
class ClassifiedPositions:
    """Positions partitioned into borrow and collateral buckets."""

    borrows: tuple[ReservePosition, ...] = ()
    collaterals: tuple[ReservePosition, ...] = ()
    total_borrows_usd: float = 0.0


# ---------------------------------------------------------------------------
# Time series
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Candle:
    """One OHLC bar; timestamp is the UTC bar start."""

    address: str
    chain_id: int
    open: float
    high: float
    low: float
    close: float
    volume: float
    timestamp: datetime


@dataclass(frozen=True)
class PriceWindow:
    """Parallel, time-ordered ``(timestamp_ms, value)`` series."""

    prices: tuple[tuple[int, float], ...] = ()
    volumes: tuple[tuple[int, float], ...] = ()


@dataclass(frozen=True)
class BollingerBand:
    lower: float
    middle: float
    upper: float

    def to_dict(self) -> dict[str, float]:
        return {"lower": self.lower, "middle": self.middle, "upper": self.upper}


@dataclass(frozen=True)
class PriceStats:
    """Range summary of an asset's stored candles."""

    first_price: float
    last_price: float
    high_price: float
    low_price: float
    total_volume: float

    @property
    def price_change(self) -> float:
        return self.last_price - self.first_price

    @property
    def price_change_percent(self) -> float:
        if self.first_price == 0:
            return 0.0
        return self.price_change / self.first_price * 100

    def to_dict(self) -> dict[str, float]:
        return {
            "firstPrice": self.first_price,
            "lastPrice": self.last_price,
            "highPrice": self.high_price,
            "lowPrice": self.low_price,
            "totalVolume": self.total_volume,
            "priceChange": self.price_change,
            "priceChangePercent": self.price_change_percent,
        }


# ---------------------------------------------------------------------------
# Stress scenario
# ---------------------------------------------------------------------------

SCENARIO_OK = "ok"
SCENARIO_NO_DEBT = "no_debt"


@dataclass(frozen=True)
class ReserveStatus:
    """Per-collateral entry of a scenario; ``band`` is None when unavailable."""

    reserve_id: str
    underlying_asset: str
    name: str
    symbol: str
    decimals: int
    underlying_balance: float
    band: BollingerBand | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.reserve_id,
            "underlyingAsset": self.underlying_asset,
            "name": self.name,
            "symbol": self.symbol,
            "decimals": self.decimals,
            "underlyingBalance": self.underlying_balance,
        }
        if self.band is not None:
            data["monthlyBB"] = self.band.to_dict()
        return data


@dataclass(frozen=True)
class StressScenario:
    """Lower-band scenario.

    ``health_factor`` is None exactly when ``status`` is ``no_debt``.
    """

    status: str
    health_factor: float | None
    maximum_borrow_power: float
    liquidation_borrow_power: float
    reserve_status_list: tuple[ReserveStatus, ...] = ()

    @property
    def has_debt(self) -> bool:
        return self.status == SCENARIO_OK

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "healthFactor": self.health_factor,
            "maximumBorrowPower": self.maximum_borrow_power,
            "liquidationBorrowPower": self.liquidation_borrow_power,
            "reserveStatusList": [r.to_dict() for r in self.reserve_status_list],
        }


@dataclass(frozen=True)
class StressScenarioResult:
    total_borrows_usd: float
    scenario: StressScenario

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalBorrowsUSD": self.total_borrows_usd,
            "monthlyBBScenario": self.scenario.to_dict(),
        }
