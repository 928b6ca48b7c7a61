"""Error types shared by the service layer.

Routers translate these into HTTP responses; services never raise
`HTTPException` themselves.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import psycopg


class InvalidPeriodFormat(ValueError):
    """Raised when a month/date token does not parse into a calendar period."""


class DataAccessError(Exception):
    """Raised when the transaction store (or any table read/write) fails."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


@asynccontextmanager
async def store_errors() -> AsyncIterator[None]:
    """Re-raise driver errors as `DataAccessError` carrying the store's message."""
    try:
        yield
    except psycopg.Error as exc:
        message = str(exc).strip() or exc.__class__.__name__
        raise DataAccessError(message) from exc
