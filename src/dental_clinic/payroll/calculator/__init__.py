from .base import DeductionBreakdown, DeductionOptions, PayrollCalculator
from .flat_rate_calculator import FlatRateCalculator
from .standard_calculator import SimplifiedTableCalculator

CALCULATORS = {
    "simplified": SimplifiedTableCalculator,
    "flat_rate": FlatRateCalculator,
}


def get_calculator(name: str = "simplified") -> PayrollCalculator:
    """Factory: calculator strategy by name (defaults to the withholding table)."""
    return CALCULATORS.get(name, SimplifiedTableCalculator)()


__all__ = [
    "CALCULATORS",
    "DeductionBreakdown",
    "DeductionOptions",
    "FlatRateCalculator",
    "PayrollCalculator",
    "SimplifiedTableCalculator",
    "get_calculator",
]
