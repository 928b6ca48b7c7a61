from __future__ import annotations

import asyncio

import pytest

from mygoalfinance.services import chat_service


def _run(coro):
    return asyncio.run(coro)


def test_load_recent_messages_returns_chronological_window(fake_connection) -> None:
    fake_connection.results = [[
        {"sender": "bot", "message": "third"},
        {"sender": "user", "message": "second"},
        {"sender": "user", "message": "first"},
    ]]

    rows = _run(chat_service.load_recent_messages(fake_connection, 7, limit=3))

    query, params = fake_connection.executed[0]
    assert "ORDER BY timestamp DESC LIMIT %s" in query
    assert params == (7, 3)
    assert [row["message"] for row in rows] == ["first", "second", "third"]


def test_append_message_trims_and_rejects_blank(fake_connection) -> None:
    fake_connection.results = [[{"id": 1, "user_id": 7, "sender": "user", "message": "hi", "timestamp": None}]]

    _run(chat_service.append_message(fake_connection, 7, "user", "  hi  "))
    assert fake_connection.executed[0][1] == (7, "user", "hi")

    with pytest.raises(ValueError):
        _run(chat_service.append_message(fake_connection, 7, "user", "   "))


def test_render_history() -> None:
    rows = [{"sender": "user", "message": "hi"}, {"sender": "bot", "message": "hello"}]
    assert chat_service.render_history(rows) == "User: hi\nBot: hello"
    assert chat_service.render_history([]) == "No previous history."


def test_get_profile_reads_stored_income_column(fake_connection) -> None:
    fake_connection.results = [[{"name": "Ana", "monthly_income": 2000}]]

    profile = _run(chat_service.get_profile(fake_connection, 7))

    query, params = fake_connection.executed[0]
    assert "montly_income AS monthly_income" in query
    assert params == (7,)
    assert profile["monthly_income"] == 2000
