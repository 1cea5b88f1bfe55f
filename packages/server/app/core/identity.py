"""
Client for the external identity provider (Supabase GoTrue REST API).

The provider owns credentials and tokens; this service only asks it who a
bearer token belongs to, drives the PKCE OAuth exchange, signs sessions out
and removes accounts when an internal user is deleted.

One client is created per process in the application lifespan and stored on
``app.state.identity``. Handlers receive it via ``get_identity_provider``.
"""

from __future__ import annotations

import base64
import hashlib
import secrets
from typing import Any, Optional
from urllib.parse import urlencode

import httpx
import structlog
from fastapi import Request
from pydantic import BaseModel, ConfigDict

log = structlog.get_logger()


class IdentityProviderError(Exception):
    """The provider rejected a request or could not be reached."""

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class ProviderUser(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    email: Optional[str] = None
    phone: Optional[str] = None
    user_metadata: dict[str, Any] = {}


class ProviderSession(BaseModel):
    model_config = ConfigDict(extra="ignore")

    access_token: str
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None
    token_type: str = "bearer"
    user: ProviderUser


def generate_pkce_pair() -> tuple[str, str]:
    """Return ``(code_verifier, code_challenge)`` for the S256 method."""
    verifier = secrets.token_urlsafe(64)
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    challenge = base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")
    return verifier, challenge


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"Identity provider returned {response.status_code}"
    if isinstance(body, dict):
        for key in ("msg", "message", "error_description", "error"):
            if body.get(key):
                return str(body[key])
    return f"Identity provider returned {response.status_code}"


class SupabaseIdentityProvider:
    """Thin async wrapper over the GoTrue endpoints the API needs."""

    def __init__(
        self,
        base_url: str,
        anon_key: str,
        service_role_key: str = "",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._anon_key = anon_key
        self._service_role_key = service_role_key
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def open(self) -> None:
        self._client = httpx.AsyncClient(
            base_url=f"{self._base_url}/auth/v1",
            timeout=httpx.Timeout(self._timeout),
            transport=self._transport,
        )

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        if self._client is None:
            raise IdentityProviderError("Identity provider client is not open.")
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            log.error("identity.unreachable", path=path, error=str(exc))
            raise IdentityProviderError(f"Identity provider unreachable: {exc}") from exc
        if response.is_error:
            raise IdentityProviderError(_error_message(response), response.status_code)
        return response

    def _headers(self, token: str | None = None, *, admin: bool = False) -> dict[str, str]:
        key = self._service_role_key if admin else self._anon_key
        return {
            "apikey": key,
            "Authorization": f"Bearer {token or key}",
        }

    # --- Tokens ---

    async def get_user(self, token: str) -> ProviderUser:
        """Resolve a bearer access token to the provider's user record."""
        response = await self._request("GET", "/user", headers=self._headers(token))
        return ProviderUser.model_validate(response.json())

    async def sign_out(self, token: str) -> None:
        await self._request("POST", "/logout", headers=self._headers(token))

    # --- OAuth (PKCE) ---

    def authorize_url(self, provider: str, redirect_to: str, code_challenge: str) -> str:
        query = urlencode({
            "provider": provider,
            "redirect_to": redirect_to,
            "code_challenge": code_challenge,
            "code_challenge_method": "s256",
        })
        return f"{self._base_url}/auth/v1/authorize?{query}"

    async def exchange_code(self, auth_code: str, code_verifier: str) -> ProviderSession:
        response = await self._request(
            "POST",
            "/token",
            params={"grant_type": "pkce"},
            headers=self._headers(),
            json={"auth_code": auth_code, "code_verifier": code_verifier},
        )
        return ProviderSession.model_validate(response.json())

    # --- Admin ---

    async def delete_user(self, identifier: str) -> None:
        """Remove the provider account. An already-missing account is not an error."""
        try:
            await self._request(
                "DELETE",
                f"/admin/users/{identifier}",
                headers=self._headers(admin=True),
            )
        except IdentityProviderError as exc:
            if exc.status_code == 404:
                log.warning("identity.delete_missing", identifier=identifier)
                return
            raise
        log.info("identity.user_deleted", identifier=identifier)


def get_identity_provider(request: Request) -> SupabaseIdentityProvider:
    """FastAPI dependency: the process-wide identity provider client."""
    return request.app.state.identity
