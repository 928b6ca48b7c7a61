"""Persistence helpers for the chat advisor.

Messages live in `chat_message`, one flat thread per owner. The advisor
reads a short recent window plus the owner's profile to build model context.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Literal

from .errors import store_errors

if TYPE_CHECKING:
    from psycopg import AsyncConnection
else:
    AsyncConnection = Any

Sender = Literal["user", "bot"]

MESSAGE_COLUMNS = "id, user_id, sender, message, timestamp"
HISTORY_WINDOW = 20


async def list_messages(connection: AsyncConnection, user_id: int) -> list[dict[str, Any]]:
    """Full thread for the owner, oldest first."""
    async with store_errors():
        async with connection.cursor() as cursor:
            await cursor.execute(
                f"""
                SELECT {MESSAGE_COLUMNS}
                FROM chat_message
                WHERE user_id = %s
                ORDER BY timestamp ASC
                """,
                (user_id,),
            )
            return await cursor.fetchall()


async def load_recent_messages(
    connection: AsyncConnection,
    user_id: int,
    limit: int = HISTORY_WINDOW,
) -> list[dict[str, Any]]:
    """Most recent `limit` messages in chronological order."""
    if limit < 1:
        return []

    async with store_errors():
        async with connection.cursor() as cursor:
            await cursor.execute(
                """
                SELECT sender, message
                FROM chat_message
                WHERE user_id = %s
                ORDER BY timestamp DESC
                LIMIT %s
                """,
                (user_id, limit),
            )
            rows = await cursor.fetchall()

    return list(reversed(rows))


async def append_message(
    connection: AsyncConnection,
    user_id: int,
    sender: Sender,
    message: str,
) -> dict[str, Any]:
    payload = message.strip()
    if not payload:
        raise ValueError("Message content cannot be empty")

    async with store_errors():
        async with connection.cursor() as cursor:
            await cursor.execute(
                f"""
                INSERT INTO chat_message (user_id, sender, message)
                VALUES (%s, %s, %s)
                RETURNING {MESSAGE_COLUMNS}
                """,
                (user_id, sender, payload),
            )
            return await cursor.fetchone()


async def get_profile(connection: AsyncConnection, user_id: int) -> dict[str, Any] | None:
    async with store_errors():
        async with connection.cursor() as cursor:
            await cursor.execute(
                """
                SELECT name, age_range, experience, montly_income AS monthly_income, finance_goal
                FROM user_profile
                WHERE id = %s
                """,
                (user_id,),
            )
            return await cursor.fetchone()


def render_history(rows: list[dict[str, Any]]) -> str:
    lines = [
        f"{'User' if row['sender'] == 'user' else 'Bot'}: {row['message']}"
        for row in rows
    ]
    return "\n".join(lines) or "No previous history."
