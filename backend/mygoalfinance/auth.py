"""Bearer-token authentication delegated to the hosted provider.

The provider's `/auth/v1/user` endpoint introspects the access token; the
returned user id is mapped to the owner id used by every data table.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx
from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .database import get_db_connection
from .logging_setup import get_logger
from .services.errors import DataAccessError, store_errors

logger = get_logger(__name__)

http_bearer = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthUser:
    id: str
    email: str | None = None


class AuthProviderClient:
    """Token introspection against the provider's auth REST endpoint."""

    def __init__(
        self,
        *,
        base_url: str,
        anon_key: str,
        timeout_seconds: int = 10,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.anon_key = anon_key
        self.timeout_seconds = timeout_seconds
        self.transport = transport

    async def get_user(self, access_token: str) -> AuthUser | None:
        """Return the token's user, or None when the provider rejects it."""
        headers = {
            "apikey": self.anon_key,
            "Authorization": f"Bearer {access_token}",
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self.transport) as client:
                response = await client.get(f"{self.base_url}/auth/v1/user", headers=headers)
        except httpx.HTTPError as exc:
            logger.warning("Auth provider request failed: %s", exc)
            raise HTTPException(status_code=503, detail="Auth provider unavailable") from exc

        if response.status_code != 200:
            return None

        try:
            data = response.json()
        except ValueError:
            return None

        user_id = data.get("id") if isinstance(data, dict) else None
        if not user_id:
            return None

        return AuthUser(id=str(user_id), email=data.get("email"))


def get_auth_client(request: Request) -> AuthProviderClient:
    client: AuthProviderClient | None = getattr(request.app.state, "auth_client", None)
    if client is None:
        raise HTTPException(status_code=500, detail="SUPABASE_URL is not configured")
    return client


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(http_bearer),
) -> AuthUser:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise HTTPException(status_code=401, detail="Missing bearer token")

    auth_client = get_auth_client(request)
    user = await auth_client.get_user(credentials.credentials)
    if user is None:
        raise HTTPException(status_code=401, detail="Invalid token")

    return user


async def get_profile_id(connection: Any, auth_user_id: str) -> int | None:
    async with store_errors():
        async with connection.cursor() as cursor:
            await cursor.execute(
                """
                SELECT id
                FROM user_profile
                WHERE id_supabase = %s
                """,
                (auth_user_id,),
            )
            row = await cursor.fetchone()

    if row is None:
        return None
    return int(row["id"])


async def get_current_owner_id(
    user: AuthUser = Depends(get_current_user),
    connection: Any = Depends(get_db_connection),
) -> int:
    """Owner (profile) id for the authenticated provider user."""
    try:
        owner_id = await get_profile_id(connection, user.id)
    except DataAccessError as exc:
        raise HTTPException(status_code=400, detail=exc.message) from exc

    if owner_id is None:
        raise HTTPException(status_code=404, detail="Profile not found")
    return owner_id
