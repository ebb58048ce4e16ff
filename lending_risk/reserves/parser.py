"""Pure parsing functions for humanized reserve data (no I/O)."""
from __future__ import annotations

import logging
from typing import Any

from ..models import BaseCurrency, ReservePosition, ReserveSnapshot

logger = logging.getLogger(__name__)

# Decimals of USD prices reported against the market reference currency.
USD_DECIMALS = 8


def to_float(value: Any, default: float = 0.0) -> float:
    """Convert a humanized numeric value (often a string) to float."""
    if value is None or value == "":
        return default
    return float(value)


def reserve_price_usd(reserve: dict[str, Any], base: BaseCurrency) -> float:
    """USD price of one unit of the reserve's underlying token.

    price_usd = priceInMarketReferenceCurrency * referencePriceUsd
                / 10^(referenceDecimals + USD_DECIMALS)
    """
    if "priceInUSD" in reserve:
        return to_float(reserve["priceInUSD"])
    price_in_ref = to_float(reserve.get("priceInMarketReferenceCurrency"))
    return (
        price_in_ref
        * base.market_reference_price_usd
        / 10 ** (base.market_reference_decimals + USD_DECIMALS)
    )


def liquidation_threshold_fraction(reserve: dict[str, Any]) -> float:
    """Liquidation threshold as a fraction (0.825), from fraction or basis points."""
    formatted = reserve.get("formattedReserveLiquidationThreshold")
    if formatted not in (None, ""):
        return to_float(formatted)
    return to_float(reserve.get("reserveLiquidationThreshold")) / 10_000


def index_reserves(reserves: tuple[dict[str, Any], ...]) -> dict[str, dict[str, Any]]:
    """Index reserves by lower-cased underlying asset address."""
    return {
        str(r.get("underlyingAsset", "")).lower(): r
        for r in reserves
        if r.get("underlyingAsset")
    }


def parse_position_entry(
    position: dict[str, Any], reserve: dict[str, Any], base: BaseCurrency
) -> ReservePosition:
    """Combine one user position with its reserve into a ReservePosition."""
    total_borrows = to_float(position.get("totalBorrows"))
    if "totalBorrowsUSD" in position:
        total_borrows_usd = to_float(position["totalBorrowsUSD"])
    else:
        total_borrows_usd = total_borrows * reserve_price_usd(reserve, base)

    return ReservePosition(
        underlying_asset=str(reserve.get("underlyingAsset", "")).lower(),
        symbol=reserve.get("symbol", ""),
        decimals=int(reserve.get("decimals", 18)),
        underlying_balance=to_float(position.get("underlyingBalance")),
        total_borrows=total_borrows,
        total_borrows_usd=total_borrows_usd,
        usage_as_collateral_enabled=bool(
            position.get("usageAsCollateralEnabledOnUser", False)
        ),
        liquidation_threshold=liquidation_threshold_fraction(reserve),
        reserve_id=str(reserve.get("id", "")),
        name=reserve.get("name", ""),
    )


def parse_reserve_positions(snapshot: ReserveSnapshot) -> list[ReservePosition]:
    """Normalize every user position in a snapshot.

    Positions referencing a reserve missing from the snapshot are skipped.
    """
    reserves = index_reserves(snapshot.reserves)
    positions: list[ReservePosition] = []
    for entry in snapshot.positions:
        asset = str(entry.get("underlyingAsset", "")).lower()
        reserve = reserves.get(asset)
        if reserve is None:
            logger.warning("No reserve data for position asset %s", asset)
            continue
        positions.append(parse_position_entry(entry, reserve, snapshot.base_currency))
    return positions
