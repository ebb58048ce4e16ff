"""Reserve position normalization and classification."""
from .classifier import (
    BORROW,
    COLLATERAL,
    NEITHER,
    bucket_of,
    classify_positions,
    classify_snapshot,
)
from .parser import parse_reserve_positions

__all__ = [
    "BORROW",
    "COLLATERAL",
    "NEITHER",
    "bucket_of",
    "classify_positions",
    "classify_snapshot",
    "parse_reserve_positions",
]
