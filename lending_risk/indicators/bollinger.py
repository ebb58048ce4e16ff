"""Bollinger Bands over a rolling window of closing prices."""
from __future__ import annotations

import math
from collections import deque
from typing import Iterable, Sequence

from ..models import BollingerBand, Candle


class BollingerBands:
    """Incremental Bollinger Bands.

    Feed closes oldest-first with ``update``; a band is produced once
    ``window`` values have been seen and recomputed on every later value.
    The standard deviation is the population one.
    """

    def __init__(self, window: int = 20, multiplier: float = 2.0) -> None:
        if window < 1:
            raise ValueError("window must be at least 1")
        self.window = window
        self.multiplier = multiplier
        self._values: deque[float] = deque(maxlen=window)
        self.last: BollingerBand | None = None

    def update(self, close: float) -> BollingerBand | None:
        self._values.append(float(close))
        if len(self._values) < self.window:
            return None

        middle = sum(self._values) / self.window
        variance = sum((v - middle) ** 2 for v in self._values) / self.window
        spread = self.multiplier * math.sqrt(variance)
        self.last = BollingerBand(
            lower=middle - spread, middle=middle, upper=middle + spread
        )
        return self.last


def last_band(
    closes: Iterable[float], window: int = 20, multiplier: float = 2.0
) -> BollingerBand | None:
    """Band after the final close, or None when fewer than ``window`` closes."""
    bands = BollingerBands(window, multiplier)
    for close in closes:
        bands.update(close)
    return bands.last


def clamp_lower(band: BollingerBand) -> BollingerBand:
    """A price band never implies a negative value."""
    if band.lower >= 0:
        return band
    return BollingerBand(lower=0.0, middle=band.middle, upper=band.upper)


def ensure_ascending(candles: Sequence[Candle]) -> None:
    """Raise ValueError unless candles are strictly oldest-first."""
    for prev, cur in zip(candles, candles[1:]):
        if cur.timestamp <= prev.timestamp:
            raise ValueError(
                f"Candles out of order: {cur.timestamp.isoformat()} "
                f"follows {prev.timestamp.isoformat()}"
            )
