"""Price indicators."""
from .bollinger import BollingerBands, clamp_lower, ensure_ascending, last_band

__all__ = ["BollingerBands", "clamp_lower", "ensure_ascending", "last_band"]
