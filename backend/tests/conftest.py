from __future__ import annotations

import pytest


class FakeCursor:
    """Async cursor that replays scripted results in execution order."""

    def __init__(self, connection: "FakeConnection"):
        self.connection = connection
        self._rows: list[dict] = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    async def execute(self, query, params=None):
        normalized = " ".join(query.split())
        self.connection.executed.append((normalized, params))

        outcome = self.connection.results.pop(0) if self.connection.results else []
        if isinstance(outcome, Exception):
            raise outcome
        self._rows = list(outcome)

    async def fetchone(self):
        if not self._rows:
            return None
        return self._rows[0]

    async def fetchall(self):
        return list(self._rows)


class FakeConnection:
    def __init__(self, results=None):
        # One entry per execute(): a list of row dicts, or an exception to raise.
        self.results = list(results or [])
        self.executed: list[tuple[str, object]] = []

    def cursor(self):
        return FakeCursor(self)


@pytest.fixture
def fake_connection():
    return FakeConnection()
