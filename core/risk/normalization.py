"""
Risk Score Normalizer.

Clamps a raw ring risk to [0, 1] and scales it to a [0, 100] score with one
decimal place. Rounding is half-up on the exact binary value of the scaled
score, so 79.65 stored as 79.6499… rounds down.

Time Complexity: O(1)
Memory: O(1)
"""

from decimal import ROUND_HALF_UP, Decimal

_ONE_DECIMAL = Decimal("0.1")


def round_half_up(value: float, places: Decimal = _ONE_DECIMAL) -> float:
    return float(Decimal(value).quantize(places, rounding=ROUND_HALF_UP))


def normalize_risk(risk: float) -> float:
    """Clamp to [0, 1] and convert to a one-decimal [0, 100] score."""
    clamped = min(max(risk, 0.0), 1.0)
    return round_half_up(clamped * 100)
