"""Korean earned-income withholding (근로소득 간이세액표, simplified).

Amounts are KRW per month. Each row holds the withholding amount for family
counts 1..11 (the employee counts as 1).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from ..common.money import round_won

MAX_FAMILY_COUNT = 11
LOCAL_TAX_RATE = 0.1


@dataclass(frozen=True)
class TaxBand:
    min_income: int
    max_income: Optional[int]  # None = no upper bound
    tax_by_family: Sequence[int]


TAX_BANDS: tuple[TaxBand, ...] = (
    TaxBand(0, 1_060_000, (0,) * 11),
    TaxBand(1_060_001, 1_500_000, (7_040, 2_970, 1_010, 0, 0, 0, 0, 0, 0, 0, 0)),
    TaxBand(1_500_001, 2_000_000, (25_690, 17_570, 11_660, 5_930, 1_810, 0, 0, 0, 0, 0, 0)),
    TaxBand(2_000_001, 2_500_000, (49_250, 37_440, 28_470, 19_670, 12_150, 5_020, 0, 0, 0, 0, 0)),
    TaxBand(2_500_001, 3_000_000, (77_340, 62_800, 51_070, 40_440, 30_040, 20_660, 11_510, 3_200, 0, 0, 0)),
    TaxBand(3_000_001, 3_500_000, (109_330, 92_030, 77_670, 64_980, 53_080, 41_480, 30_150, 19_690, 9_530, 0, 0)),
    TaxBand(
        3_500_001, 4_000_000, (145_790, 125_190, 107_800, 92_030, 77_940, 64_440, 51_540, 39_340, 27_780, 16_770, 6_060)
    ),
    TaxBand(
        4_000_001, 4_500_000, (186_180, 161_650, 141_490, 122_700, 106_010, 90_610, 76_090, 62_180, 48_900, 36_310, 24_390)
    ),
    TaxBand(
        4_500_001, 5_000_000, (230_800, 201_920, 178_380, 156_160, 136_850, 119_240, 103_000, 87_570, 72_740, 58_600, 45_140)
    ),
    TaxBand(
        5_000_001,
        6_000_000,
        (289_750, 255_870, 227_100, 201_000, 177_780, 156_580, 137_580, 119_650, 102_810, 86_660, 71_290),
    ),
    TaxBand(
        6_000_001,
        7_000_000,
        (370_400, 331_730, 297_370, 266_500, 238_040, 212_030, 188_170, 166_040, 145_480, 125_820, 107_150),
    ),
    TaxBand(
        7_000_001,
        8_000_000,
        (461_680, 418_580, 379_660, 344_020, 310_940, 280_480, 252_030, 225_460, 200_490, 176_690, 153_940),
    ),
    TaxBand(
        8_000_001,
        10_000_000,
        (582_850, 534_190, 489_970, 449_160, 411_180, 375_780, 342_610, 311_340, 281_790, 253_620, 226_830),
    ),
    TaxBand(
        10_000_001,
        None,
        (815_750, 756_590, 702_410, 652_660, 606_260, 562_480, 520_940, 481_510, 443_930, 407_990, 373_600),
    ),
)

DETAILED_MIN = 3_500_000
DETAILED_MAX = 4_000_000
DETAILED_STEP = 20_000

_DETAILED_BASE = (145_790, 125_190, 107_800, 92_030, 77_940, 64_440, 51_540, 39_340, 27_780, 16_770, 6_060)
_DETAILED_DELTA = (2_140, 1_860, 1_630, 1_440, 1_250, 1_090, 950, 810, 680, 540, 420)

# Common salary range, in 20,000 won rows: row k = base + k * delta.
DETAILED_TABLE: dict[int, tuple[int, ...]] = {
    DETAILED_MIN + k * DETAILED_STEP: tuple(b + k * d for b, d in zip(_DETAILED_BASE, _DETAILED_DELTA))
    for k in range((DETAILED_MAX - DETAILED_MIN) // DETAILED_STEP + 1)
}


@dataclass(frozen=True)
class TaxResult:
    income_tax: int
    local_income_tax: int
    total_tax: int


def child_tax_credit(child_count: int) -> int:
    """Monthly credit for children aged 8..20."""
    if child_count <= 0:
        return 0
    if child_count == 1:
        return 12_500
    if child_count == 2:
        return 29_160
    return 29_160 + (child_count - 2) * 25_000


def _clamp_family(family_count: int) -> int:
    return min(max(int(family_count), 1), MAX_FAMILY_COUNT)


def find_band(monthly_income: float) -> Optional[int]:
    for i, band in enumerate(TAX_BANDS):
        if monthly_income >= band.min_income and (band.max_income is None or monthly_income <= band.max_income):
            return i
    return None


def _table_tax(monthly_income: float, family_idx: int) -> float:
    if DETAILED_MIN <= monthly_income <= DETAILED_MAX:
        row = int(monthly_income // DETAILED_STEP) * DETAILED_STEP
        return DETAILED_TABLE[row][family_idx]

    idx = find_band(monthly_income)
    if idx is None:
        return 0

    band = TAX_BANDS[idx]
    base = band.tax_by_family[family_idx]
    if band.max_income is None or idx + 1 >= len(TAX_BANDS):
        return base
    if not band.min_income < monthly_income < band.max_income:
        return base

    # half-way interpolation toward the next band inside the simplified rows
    next_tax = TAX_BANDS[idx + 1].tax_by_family[family_idx]
    ratio = (monthly_income - band.min_income) / (band.max_income - band.min_income)
    return base + (next_tax - base) * ratio * 0.5


def calculate_income_tax(monthly_income: float, family_count: int = 1, child_count: int = 0) -> int:
    """Monthly withholding income tax (소득세) after the child credit, never below 0."""
    tax = round_won(_table_tax(monthly_income, _clamp_family(family_count) - 1))
    return max(0, tax - child_tax_credit(int(child_count)))


def calculate_local_income_tax(income_tax: int) -> int:
    """지방소득세 = 10% of income tax."""
    return round_won(income_tax * LOCAL_TAX_RATE)


def calculate_total_tax(monthly_income: float, family_count: int = 1, child_count: int = 0) -> TaxResult:
    income_tax = calculate_income_tax(monthly_income, family_count, child_count)
    local_tax = calculate_local_income_tax(income_tax)
    return TaxResult(income_tax=income_tax, local_income_tax=local_tax, total_tax=income_tax + local_tax)
