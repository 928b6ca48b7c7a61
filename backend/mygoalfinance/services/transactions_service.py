"""Owner-scoped access to the `transaction` table."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Literal

from .errors import store_errors
from .periods import Period

if TYPE_CHECKING:
    from psycopg import AsyncConnection
else:
    AsyncConnection = Any

TransactionType = Literal["income", "expense"]

TRANSACTION_COLUMNS = "id, amount, type, category_id, description, occurred_at"
UPDATABLE_FIELDS = ("amount", "type", "category_id", "description", "occurred_at")


@dataclass(frozen=True)
class TransactionRow:
    """The slice of a transaction the period summary folds over."""

    type: TransactionType
    amount: Decimal
    category_id: int | None = None

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "TransactionRow":
        return cls(
            type=record["type"],
            amount=Decimal(str(record["amount"])),
            category_id=record.get("category_id"),
        )


def _build_filters(
    user_id: int,
    date_from: date | None,
    date_to: date | None,
    kind: TransactionType | None,
) -> tuple[str, list[object]]:
    filters = ["user_id = %s"]
    params: list[object] = [user_id]

    if date_from is not None:
        filters.append("occurred_at >= %s")
        params.append(date_from)

    if date_to is not None:
        filters.append("occurred_at <= %s")
        params.append(date_to)

    if kind is not None:
        filters.append("type = %s")
        params.append(kind)

    return " AND ".join(filters), params


class TransactionStore:
    """Thin SQL layer over one connection; every query is filtered by owner."""

    def __init__(self, connection: AsyncConnection):
        self.connection = connection

    async def list_transactions(
        self,
        user_id: int,
        date_from: date | None = None,
        date_to: date | None = None,
        kind: TransactionType | None = None,
    ) -> list[dict[str, Any]]:
        """List the owner's transactions, newest first; each bound is optional."""
        where_clause, params = _build_filters(user_id, date_from, date_to, kind)

        async with store_errors():
            async with self.connection.cursor() as cursor:
                await cursor.execute(
                    f"""
                    SELECT {TRANSACTION_COLUMNS}
                    FROM transaction
                    WHERE {where_clause}
                    ORDER BY occurred_at DESC
                    """,
                    params,
                )
                return await cursor.fetchall()

    async def fetch_period_rows(
        self,
        user_id: int,
        period: Period,
        kind: TransactionType | None = None,
    ) -> list[TransactionRow]:
        """Rows for one owner with occurred_at in [period.date_from, period.date_to]."""
        where_clause, params = _build_filters(user_id, period.date_from, period.date_to, kind)

        async with store_errors():
            async with self.connection.cursor() as cursor:
                await cursor.execute(
                    f"""
                    SELECT type, amount, category_id
                    FROM transaction
                    WHERE {where_clause}
                    """,
                    params,
                )
                records = await cursor.fetchall()

        return [TransactionRow.from_record(record) for record in records]

    async def create_transaction(self, user_id: int, data: dict[str, Any]) -> dict[str, Any]:
        async with store_errors():
            async with self.connection.cursor() as cursor:
                await cursor.execute(
                    f"""
                    INSERT INTO transaction (user_id, amount, type, category_id, description, occurred_at)
                    VALUES (%s, %s, %s, %s, %s, %s)
                    RETURNING {TRANSACTION_COLUMNS}
                    """,
                    (
                        user_id,
                        data["amount"],
                        data["type"],
                        data.get("category_id"),
                        data.get("description"),
                        data["occurred_at"],
                    ),
                )
                return await cursor.fetchone()

    async def update_transaction(
        self,
        user_id: int,
        transaction_id: int,
        patch: dict[str, Any],
    ) -> dict[str, Any]:
        """Apply a partial update; the owner column is never writable."""
        set_parts: list[str] = []
        params: list[object] = []

        for field in UPDATABLE_FIELDS:
            if field in patch:
                set_parts.append(f"{field} = %s")
                params.append(patch[field])

        if not set_parts:
            raise ValueError("At least one field must be provided")

        async with store_errors():
            async with self.connection.cursor() as cursor:
                await cursor.execute(
                    f"""
                    UPDATE transaction
                    SET {", ".join(set_parts)}
                    WHERE id = %s
                      AND user_id = %s
                    RETURNING {TRANSACTION_COLUMNS}
                    """,
                    [*params, transaction_id, user_id],
                )
                row = await cursor.fetchone()

        if row is None:
            raise LookupError("Transaction not found")

        return row

    async def delete_transaction(self, user_id: int, transaction_id: int) -> None:
        async with store_errors():
            async with self.connection.cursor() as cursor:
                await cursor.execute(
                    """
                    DELETE FROM transaction
                    WHERE id = %s
                      AND user_id = %s
                    RETURNING id
                    """,
                    (transaction_id, user_id),
                )
                row = await cursor.fetchone()

        if row is None:
            raise LookupError("Transaction not found")
