"""Application factory.

Run with: uvicorn mygoalfinance.main:create_app --factory
"""

from __future__ import annotations

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .ai.gemini_client import GeminiClient
from .ai.router import router as chat_router
from .auth import AuthProviderClient
from .config import Settings
from .database import close_db_pool, open_db_pool
from .goals import router as goals_router
from .logging_setup import configure_logging, get_logger
from .transactions import router as transactions_router

logger = get_logger(__name__)


def build_auth_client(settings: Settings) -> AuthProviderClient | None:
    if not settings.supabase_url:
        logger.warning("SUPABASE_URL is not set; authenticated endpoints will return 500")
        return None
    return AuthProviderClient(base_url=settings.supabase_url, anon_key=settings.supabase_anon_key)


def build_llm_client(settings: Settings) -> GeminiClient | None:
    if not settings.gemini_api_key:
        logger.warning("GEMINI_API_KEY is not set; the chat advisor will not be able to reply")
        return None
    return GeminiClient(api_key=settings.gemini_api_key, model=settings.gemini_model)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.db_pool = await open_db_pool(settings)
        app.state.auth_client = build_auth_client(settings)
        app.state.llm_client = build_llm_client(settings)
        logger.info("%s started", settings.app_name)
        yield
        await close_db_pool(app.state.db_pool)
        app.state.db_pool = None

    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    def root() -> dict[str, str]:
        return {"message": settings.app_name}

    @app.get("/health")
    def health() -> dict[str, object]:
        return {"ok": True, "ts": int(time.time() * 1000)}

    app.include_router(transactions_router)
    app.include_router(goals_router)
    app.include_router(chat_router)

    return app
