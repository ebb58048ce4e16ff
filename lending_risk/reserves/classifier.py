"""Partition an account's reserve positions into borrow/collateral buckets."""
from __future__ import annotations

import logging
from typing import Iterable

from ..models import ClassifiedPositions, ReservePosition, ReserveSnapshot
from .parser import parse_reserve_positions

logger = logging.getLogger(__name__)

BORROW = "borrow"
COLLATERAL = "collateral"
NEITHER = "neither"


def bucket_of(position: ReservePosition) -> str:
    """Return the single bucket a position belongs to.

    Debt takes precedence: a position with both outstanding borrows and a
    collateral-enabled balance is counted as a borrow only.
    """
    if position.total_borrows > 0:
        return BORROW
    if position.underlying_balance > 0 and position.usage_as_collateral_enabled:
        return COLLATERAL
    return NEITHER


def classify_positions(positions: Iterable[ReservePosition]) -> ClassifiedPositions:
    borrows: list[ReservePosition] = []
    collaterals: list[ReservePosition] = []

    for position in positions:
        bucket = bucket_of(position)
        if bucket == BORROW:
            borrows.append(position)
        elif bucket == COLLATERAL:
            collaterals.append(position)

    total_borrows_usd = sum(p.total_borrows_usd for p in borrows)

    logger.debug(
        "Classified %d borrow and %d collateral reserves (total borrows $%.2f)",
        len(borrows),
        len(collaterals),
        total_borrows_usd,
    )
    return ClassifiedPositions(
        borrows=tuple(borrows),
        collaterals=tuple(collaterals),
        total_borrows_usd=total_borrows_usd,
    )


def classify_snapshot(snapshot: ReserveSnapshot) -> ClassifiedPositions:
    """Normalize and classify a reader snapshot in one step."""
    return classify_positions(parse_reserve_positions(snapshot))
