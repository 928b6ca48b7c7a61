"""Service layer for goal CRUD and computed progress fields."""

from __future__ import annotations

from decimal import Decimal, ROUND_FLOOR, ROUND_HALF_UP
from typing import TYPE_CHECKING, Any

from .errors import store_errors

if TYPE_CHECKING:
    from psycopg import AsyncConnection
else:
    AsyncConnection = Any

MONEY_QUANT = Decimal("0.01")
GOAL_COLUMNS = "id, user_id, title, description, target_amount, current_amount, deadline, created_at"
UPDATABLE_FIELDS = ("title", "description", "target_amount", "current_amount", "deadline")


def quantize_amount(value: Decimal) -> Decimal:
    """Normalize money values to NUMERIC(12,2) precision."""
    return value.quantize(MONEY_QUANT, rounding=ROUND_HALF_UP)


def _normalize_amount(value: Decimal | int | float | None) -> Decimal:
    if value is None:
        return Decimal("0.00")
    return quantize_amount(Decimal(str(value)))


def compute_goal_metrics(goal_row: dict[str, Any]) -> dict[str, Any]:
    """Add remaining amount and floor progress percentage (clamped 0..100)."""
    target_amount = _normalize_amount(goal_row["target_amount"])
    current_amount = _normalize_amount(goal_row["current_amount"])

    remaining_amount = quantize_amount(max(target_amount - current_amount, Decimal("0.00")))

    progress_pct = 0
    if target_amount > Decimal("0.00"):
        progress_pct = int(((current_amount / target_amount) * Decimal("100")).to_integral_value(rounding=ROUND_FLOOR))
        progress_pct = max(0, min(progress_pct, 100))

    return {
        **goal_row,
        "target_amount": target_amount,
        "current_amount": current_amount,
        "remaining_amount": remaining_amount,
        "progress_pct": progress_pct,
    }


async def create_goal(
    connection: AsyncConnection,
    user_id: int,
    data: dict[str, Any],
) -> dict[str, Any]:
    """Create one goal for the owner; progress always starts at zero."""
    async with store_errors():
        async with connection.cursor() as cursor:
            await cursor.execute(
                f"""
                INSERT INTO financial_goal (user_id, title, description, target_amount, current_amount, deadline)
                VALUES (%s, %s, %s, %s, %s, %s)
                RETURNING {GOAL_COLUMNS}
                """,
                (
                    user_id,
                    data["title"],
                    data.get("description"),
                    data["target_amount"],
                    Decimal("0.00"),
                    data.get("deadline"),
                ),
            )
            row = await cursor.fetchone()

    return compute_goal_metrics(row)


async def list_goals(connection: AsyncConnection, user_id: int) -> list[dict[str, Any]]:
    """List the owner's goals, newest first."""
    async with store_errors():
        async with connection.cursor() as cursor:
            await cursor.execute(
                f"""
                SELECT {GOAL_COLUMNS}
                FROM financial_goal
                WHERE user_id = %s
                ORDER BY created_at DESC
                """,
                (user_id,),
            )
            rows = await cursor.fetchall()

    return [compute_goal_metrics(row) for row in rows]


async def get_goal(connection: AsyncConnection, user_id: int, goal_id: int) -> dict[str, Any]:
    async with store_errors():
        async with connection.cursor() as cursor:
            await cursor.execute(
                f"""
                SELECT {GOAL_COLUMNS}
                FROM financial_goal
                WHERE id = %s
                  AND user_id = %s
                """,
                (goal_id, user_id),
            )
            row = await cursor.fetchone()

    if row is None:
        raise LookupError("Goal not found")

    return compute_goal_metrics(row)


async def update_goal(
    connection: AsyncConnection,
    user_id: int,
    goal_id: int,
    patch: dict[str, Any],
) -> dict[str, Any]:
    """Apply a partial goal update scoped to the owner."""
    set_parts: list[str] = []
    params: list[object] = []

    for field in UPDATABLE_FIELDS:
        if field in patch:
            set_parts.append(f"{field} = %s")
            params.append(patch[field])

    if not set_parts:
        raise ValueError("At least one field must be provided")

    async with store_errors():
        async with connection.cursor() as cursor:
            await cursor.execute(
                f"""
                UPDATE financial_goal
                SET {", ".join(set_parts)}
                WHERE id = %s
                  AND user_id = %s
                RETURNING {GOAL_COLUMNS}
                """,
                [*params, goal_id, user_id],
            )
            row = await cursor.fetchone()

    if row is None:
        raise LookupError("Goal not found")

    return compute_goal_metrics(row)


async def delete_goal(connection: AsyncConnection, user_id: int, goal_id: int) -> None:
    """Hard-delete one goal scoped to the owner."""
    async with store_errors():
        async with connection.cursor() as cursor:
            await cursor.execute(
                """
                DELETE FROM financial_goal
                WHERE id = %s
                  AND user_id = %s
                RETURNING id
                """,
                (goal_id, user_id),
            )
            row = await cursor.fetchone()

    if row is None:
        raise LookupError("Goal not found")
