"""
Bearer-token verification against Supabase Auth.

The proxy treats the identity service as a yes/no check that also hands back
the user record; any failure to confirm the session is an AuthenticationError.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx

from shared.errors import AuthenticationError

logger = logging.getLogger(__name__)


class IdentityVerifier(Protocol):
    async def verify(self, token: str) -> dict[str, Any]:
        """Return the user record for a valid token or raise AuthenticationError."""


def extract_bearer_token(header: str | None) -> str:
    if not header:
        raise AuthenticationError("Missing Authorization header")
    scheme, _, token = header.strip().partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise AuthenticationError("Authorization header must be 'Bearer <token>'")
    return token


class SupabaseAuthVerifier:
    """Resolves a session token with ``GET {SUPABASE_URL}/auth/v1/user``."""

    def __init__(
        self,
        supabase_url: str,
        anon_key: str,
        http_client: httpx.AsyncClient,
    ) -> None:
        self._user_url = f"{supabase_url.rstrip('/')}/auth/v1/user"
        self._anon_key = anon_key
        self._http = http_client

    async def verify(self, token: str) -> dict[str, Any]:
        try:
            resp = await self._http.get(
                self._user_url,
                headers={
                    "apikey": self._anon_key,
                    "Authorization": f"Bearer {token}",
                },
            )
        except httpx.HTTPError as exc:
            logger.warning("Identity service unreachable: %s", exc)
            raise AuthenticationError(f"Identity service unavailable: {exc}") from exc

        if resp.status_code != 200:
            raise AuthenticationError(_error_message(resp))

        try:
            user = resp.json()
        except ValueError as exc:
            raise AuthenticationError("Identity service returned invalid JSON") from exc

        if not isinstance(user, dict) or not user.get("id"):
            raise AuthenticationError("No user found for session")
        return user


def _error_message(resp: httpx.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        data = None
    if isinstance(data, dict):
        for key in ("msg", "message", "error_description", "error"):
            if data.get(key):
                return str(data[key])
    text = (resp.text or "").strip()
    return text[:200] or f"Identity service returned {resp.status_code}"
