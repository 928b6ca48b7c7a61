"""Period summary: fold one owner's transactions into income/expense totals."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from decimal import Decimal

from .periods import Period
from .transactions_service import TransactionRow, TransactionType

FetchRows = Callable[[int, Period, "TransactionType | None"], Awaitable[list[TransactionRow]]]

ZERO = Decimal("0")


@dataclass(frozen=True)
class CategoryTotal:
    category_id: int
    total: Decimal


@dataclass(frozen=True)
class Summary:
    period: Period
    income: Decimal
    expense: Decimal
    net: Decimal
    by_category: list[CategoryTotal] = field(default_factory=list)


def fold_rows(period: Period, rows: Iterable[TransactionRow]) -> Summary:
    """
    Single pass over `rows`.

    Category totals add every amount regardless of kind; null categories only
    count toward income/expense. Ties keep first-encountered order.
    """
    income = ZERO
    expense = ZERO
    by_category: dict[int, Decimal] = {}

    for row in rows:
        if row.type == "income":
            income += row.amount
        elif row.type == "expense":
            expense += row.amount

        if row.category_id is not None:
            by_category[row.category_id] = by_category.get(row.category_id, ZERO) + row.amount

    ordered = sorted(by_category.items(), key=lambda item: item[1], reverse=True)

    return Summary(
        period=period,
        income=income,
        expense=expense,
        net=income - expense,
        by_category=[CategoryTotal(category_id=key, total=total) for key, total in ordered],
    )


async def summarize(
    fetch_rows: FetchRows,
    user_id: int,
    period: Period,
    kind: TransactionType | None = None,
) -> Summary:
    """Fetch the owner's rows for `period` and fold them; fetch errors propagate untouched."""
    rows = await fetch_rows(user_id, period, kind)
    return fold_rows(period, rows)
