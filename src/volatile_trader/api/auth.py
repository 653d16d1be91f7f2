"""Bearer-token validation against the Supabase auth endpoint."""

from __future__ import annotations

from typing import Annotated

import httpx
import structlog
from fastapi import Header, Request

from volatile_trader.errors import AuthenticationError

logger = structlog.get_logger()


class AuthClient:
    """
    Resolves ``Authorization: Bearer <jwt>`` to a user id via GET {SUPABASE_URL}/auth/v1/user.
    With no SUPABASE_URL configured every caller is ``local_user_id``.
    """

    def __init__(
        self,
        supabase_url: str,
        service_key: str,
        local_user_id: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.supabase_url = supabase_url.rstrip("/")
        self.service_key = service_key
        self.local_user_id = local_user_id
        self.client = httpx.AsyncClient(timeout=timeout, transport=transport)

    @property
    def enabled(self) -> bool:
        return bool(self.supabase_url)

    async def aclose(self) -> None:
        await self.client.aclose()

    async def get_user_id(self, authorization: str | None) -> str:
        if not self.enabled:
            return self.local_user_id

        if not authorization or not authorization.lower().startswith("bearer "):
            raise AuthenticationError("Missing authorization header")
        token = authorization[7:].strip()
        if not token:
            raise AuthenticationError("Missing authorization header")

        try:
            response = await self.client.get(
                f"{self.supabase_url}/auth/v1/user",
                headers={"Authorization": f"Bearer {token}", "apikey": self.service_key},
            )
        except httpx.HTTPError as e:
            logger.warning("auth_request_failed", error=str(e))
            raise AuthenticationError("Unauthorized") from e

        if response.status_code != 200:
            logger.warning("auth_rejected", status_code=response.status_code)
            raise AuthenticationError("Unauthorized")

        try:
            body = response.json()
        except ValueError as e:
            logger.warning("auth_invalid_body", error=str(e))
            raise AuthenticationError("Unauthorized") from e

        user_id = body.get("id") if isinstance(body, dict) else None
        if not user_id:
            raise AuthenticationError("Unauthorized")
        return user_id


async def get_current_user(
    request: Request,
    authorization: Annotated[str | None, Header()] = None,
) -> str:
    """FastAPI dependency: caller's user id, or AuthenticationError (401)."""
    auth: AuthClient = request.app.state.auth
    return await auth.get_user_id(authorization)
