from __future__ import annotations

from datetime import datetime

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

import mygoalfinance.ai.router as chat_router
from mygoalfinance.ai.gemini_client import GeminiRequestError, GeminiResponseError
from mygoalfinance.services.errors import DataAccessError

OWNER_ID = 7


class StubLLMClient:
    def __init__(self, reply="", error=None):
        self.reply = reply
        self.error = error
        self.calls = []

    async def generate_text(self, system_prompt, user_content, *, temperature=0.3):
        self.calls.append((system_prompt, user_content, temperature))
        if self.error:
            raise self.error
        return self.reply


class MessageLog:
    def __init__(self):
        self.rows = []

    async def append(self, connection, user_id, sender, message):
        row = {
            "id": len(self.rows) + 1,
            "user_id": user_id,
            "sender": sender,
            "message": message,
            "timestamp": datetime(2026, 2, 1, 12, 0, len(self.rows)),
        }
        self.rows.append(row)
        return row


@pytest.fixture
def message_log(monkeypatch):
    log = MessageLog()

    async def fake_profile(connection, user_id):
        return {
            "name": "Ana",
            "age_range": "25-34",
            "experience": "beginner",
            "monthly_income": 2000,
            "finance_goal": "Emergency fund",
        }

    async def fake_recent(connection, user_id, limit=20):
        return [{"sender": row["sender"], "message": row["message"]} for row in log.rows[-limit:]]

    monkeypatch.setattr(chat_router, "append_message", log.append)
    monkeypatch.setattr(chat_router, "get_profile", fake_profile)
    monkeypatch.setattr(chat_router, "load_recent_messages", fake_recent)
    return log


def _client(llm_client):
    app = FastAPI()
    app.include_router(chat_router.router)

    async def override_db():
        yield object()

    app.dependency_overrides[chat_router.get_db_connection] = override_db
    app.dependency_overrides[chat_router.get_current_owner_id] = lambda: OWNER_ID
    app.dependency_overrides[chat_router.get_llm_client] = lambda: llm_client
    return TestClient(app)


def test_chat_history_oldest_first(monkeypatch) -> None:
    async def fake_list(connection, user_id):
        return [
            {"id": 1, "user_id": user_id, "sender": "user", "message": "hi", "timestamp": datetime(2026, 2, 1, 9)},
            {"id": 2, "user_id": user_id, "sender": "bot", "message": "hello", "timestamp": datetime(2026, 2, 1, 9, 1)},
        ]

    monkeypatch.setattr(chat_router, "list_messages", fake_list)

    with _client(None) as client:
        response = client.get("/api/chat")

    assert response.status_code == 200
    assert [item["sender"] for item in response.json()] == ["user", "bot"]


def test_chat_send_stores_both_sides(message_log) -> None:
    llm = StubLLMClient(reply="Start with an emergency fund.")

    with _client(llm) as client:
        response = client.post("/api/chat", json={"message": "  Where do I start?  "})

    assert response.status_code == 201
    data = response.json()
    assert data["user"]["message"] == "Where do I start?"
    assert data["bot"]["message"] == "Start with an emergency fund."
    assert data["bot"]["id"] == 2
    assert [row["sender"] for row in message_log.rows] == ["user", "bot"]

    system_prompt, user_content, temperature = llm.calls[0]
    assert "EDUCATION" in system_prompt
    assert temperature == 0.3
    assert "- Name: Ana" in user_content
    assert "User: Where do I start?" in user_content
    assert "Budget reference" not in user_content


def test_chat_send_budget_intent_adds_split(message_log) -> None:
    llm = StubLLMClient(reply="Here is a split.")

    with _client(llm) as client:
        client.post("/api/chat", json={"message": "Help me build a Budget"})

    user_content = llm.calls[0][1]
    assert "Budget reference" in user_content
    assert "- Needs (~50%): 1000" in user_content
    assert "- Wants (~30%): 600" in user_content
    assert "- Savings/Goal (~20%): 400" in user_content


def test_chat_send_without_llm_returns_placeholder(message_log) -> None:
    with _client(None) as client:
        response = client.post("/api/chat", json={"message": "hello"})

    assert response.status_code == 201
    bot = response.json()["bot"]
    assert bot["id"] is None
    assert bot["sender"] == "bot"
    assert "GEMINI_API_KEY" in bot["message"]
    assert [row["sender"] for row in message_log.rows] == ["user"]


def test_chat_send_empty_model_reply_falls_back(message_log) -> None:
    with _client(StubLLMClient(reply="")) as client:
        response = client.post("/api/chat", json={"message": "hello"})

    assert response.json()["bot"]["message"] == chat_router.EMPTY_REPLY


@pytest.mark.parametrize(
    ("error", "status_code"),
    [
        (GeminiRequestError(500, "boom"), 502),
        (GeminiRequestError(429, "quota"), 503),
        (GeminiResponseError("no candidates"), 502),
    ],
)
def test_chat_send_llm_failures(message_log, error, status_code) -> None:
    with _client(StubLLMClient(error=error)) as client:
        response = client.post("/api/chat", json={"message": "hello"})

    assert response.status_code == status_code
    assert [row["sender"] for row in message_log.rows] == ["user"]


def test_chat_send_rejects_blank_message(message_log) -> None:
    with _client(StubLLMClient(reply="x")) as client:
        blank = client.post("/api/chat", json={"message": "   "})
        missing = client.post("/api/chat", json={})

    assert blank.status_code == 422
    assert missing.status_code == 422
    assert message_log.rows == []


def test_chat_send_store_error(monkeypatch) -> None:
    async def failing_append(connection, user_id, sender, message):
        raise DataAccessError("insert failed")

    monkeypatch.setattr(chat_router, "append_message", failing_append)

    with _client(None) as client:
        response = client.post("/api/chat", json={"message": "hello"})

    assert response.status_code == 400
    assert response.json()["detail"] == "insert failed"
