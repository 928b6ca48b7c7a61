"""FastAPI router for the financial education chat advisor."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Literal

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel, Field

from ..auth import get_current_owner_id
from ..database import get_db_connection
from ..logging_setup import get_logger
from ..services.budget_rule import split_50_30_20
from ..services.chat_service import (
    append_message,
    get_profile,
    list_messages,
    load_recent_messages,
    render_history,
)
from ..services.errors import DataAccessError
from .gemini_client import GeminiClient, GeminiError, GeminiRequestError
from .prompt import (
    SYSTEM_PROMPT,
    build_user_content,
    is_budget_intent,
    render_budget_example,
    render_profile,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/api/chat", tags=["chat"])

UNAVAILABLE_REPLY = "I can't answer with AI right now (GEMINI_API_KEY is missing on the server)."
EMPTY_REPLY = "I could not generate a reply right now."


class ChatSendRequest(BaseModel):
    message: str = Field(min_length=1, max_length=2000)


class ChatMessageResponse(BaseModel):
    id: int | None
    user_id: int
    sender: Literal["user", "bot"]
    message: str
    timestamp: datetime


class ChatExchangeResponse(BaseModel):
    user: ChatMessageResponse
    bot: ChatMessageResponse


def get_llm_client(request: Request) -> GeminiClient | None:
    return getattr(request.app.state, "llm_client", None)


async def _build_prompt_input(connection: Any, owner_id: int, message: str) -> str:
    profile = await get_profile(connection, owner_id)
    history = await load_recent_messages(connection, owner_id)

    budget_example = ""
    if is_budget_intent(message) and profile and profile.get("monthly_income"):
        split = split_50_30_20(profile["monthly_income"])
        if split is not None:
            budget_example = render_budget_example(profile["monthly_income"], split)

    return build_user_content(
        profile_text=render_profile(profile),
        history_text=render_history(history),
        budget_example=budget_example,
        message=message,
    )


@router.get("", response_model=list[ChatMessageResponse])
async def chat_history(
    owner_id: int = Depends(get_current_owner_id),
    connection: Any = Depends(get_db_connection),
) -> list[ChatMessageResponse]:
    """Chat history for the current owner, oldest first."""
    try:
        rows = await list_messages(connection, owner_id)
    except DataAccessError as exc:
        raise HTTPException(status_code=400, detail=exc.message) from exc

    return [ChatMessageResponse.model_validate(row) for row in rows]


@router.post("", response_model=ChatExchangeResponse, status_code=status.HTTP_201_CREATED)
async def chat_send(
    payload: ChatSendRequest,
    owner_id: int = Depends(get_current_owner_id),
    connection: Any = Depends(get_db_connection),
    llm_client: GeminiClient | None = Depends(get_llm_client),
) -> ChatExchangeResponse:
    """
    Store the user's message, ask the model, store and return both sides.

    Example response:
    {
      "user": {"id": 10, "user_id": 1, "sender": "user", "message": "How do I budget?", "timestamp": "..."},
      "bot": {"id": 11, "user_id": 1, "sender": "bot", "message": "A common reference is 50/30/20 ...", "timestamp": "..."}
    }
    """
    message_text = payload.message.strip()
    if not message_text:
        raise HTTPException(status_code=422, detail="message must not be empty")

    try:
        user_row = await append_message(connection, owner_id, "user", message_text)
    except DataAccessError as exc:
        raise HTTPException(status_code=400, detail=exc.message) from exc

    user_message = ChatMessageResponse.model_validate(user_row)

    # History still works without a model; the placeholder reply is not persisted.
    if llm_client is None:
        return ChatExchangeResponse(
            user=user_message,
            bot=ChatMessageResponse(
                id=None,
                user_id=owner_id,
                sender="bot",
                message=UNAVAILABLE_REPLY,
                timestamp=datetime.now(timezone.utc),
            ),
        )

    try:
        user_content = await _build_prompt_input(connection, owner_id, message_text)
        reply = await llm_client.generate_text(SYSTEM_PROMPT, user_content, temperature=0.3)
    except DataAccessError as exc:
        raise HTTPException(status_code=400, detail=exc.message) from exc
    except GeminiRequestError as exc:
        logger.error("Gemini request failed (%d): %s", exc.status_code, exc)
        if exc.status_code == 429:
            raise HTTPException(status_code=503, detail="Chat assistant is rate-limited right now. Try again shortly.") from exc
        raise HTTPException(status_code=502, detail="Error generating bot reply") from exc
    except GeminiError as exc:
        logger.error("Gemini response could not be processed: %s", exc)
        raise HTTPException(status_code=502, detail="Error generating bot reply") from exc

    try:
        bot_row = await append_message(connection, owner_id, "bot", reply or EMPTY_REPLY)
    except DataAccessError as exc:
        raise HTTPException(status_code=400, detail=exc.message) from exc

    return ChatExchangeResponse(
        user=user_message,
        bot=ChatMessageResponse.model_validate(bot_row),
    )
