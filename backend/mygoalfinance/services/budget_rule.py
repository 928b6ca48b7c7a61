from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

NEEDS_RATIO = Decimal("0.50")
WANTS_RATIO = Decimal("0.30")
SAVINGS_RATIO = Decimal("0.20")


@dataclass(frozen=True)
class BudgetSplit:
    needs: int
    wants: int
    savings: int


def _round_whole(value: Decimal) -> int:
    return int(value.to_integral_value(rounding=ROUND_HALF_UP))


def split_50_30_20(monthly_income: Decimal | int | float | str | None) -> BudgetSplit | None:
    """Reference 50/30/20 split of a monthly income, or None without a positive income."""
    if monthly_income is None:
        return None

    income = Decimal(str(monthly_income))
    if not income.is_finite() or income <= 0:
        return None

    return BudgetSplit(
        needs=_round_whole(income * NEEDS_RATIO),
        wants=_round_whole(income * WANTS_RATIO),
        savings=_round_whole(income * SAVINGS_RATIO),
    )
