from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal


def round_won(value: float) -> int:
    """Round to the nearest won, halves away from zero.

    Python's round() uses banker's rounding which drifts from the
    published withholding tables on exact halves.
    """
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def percent(numerator: float, denominator: float) -> float:
    """Percentage with one decimal; 0 when the denominator is 0."""
    if not denominator:
        return 0.0
    return float(Decimal(str(numerator * 100 / denominator)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))
