"""
Authentication endpoints (OAuth via the identity provider, PKCE flow).

GET /auth/{provider}   Redirect to the provider's consent screen
GET /auth/callback     Exchange the authorization code, upsert the user
GET /auth/session      Current session tokens
GET /signout           End the provider session
"""

from __future__ import annotations

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import extract_bearer
from app.core.config import get_settings
from app.core.database import get_session
from app.core.errors import BadRequestError, ServerError, UnauthorizedError
from app.core.identity import (
    IdentityProviderError,
    SupabaseIdentityProvider,
    generate_pkce_pair,
    get_identity_provider,
)
from app.services import users as user_service

from illustrious_shared.schemas.users import UserRead

log = structlog.get_logger()
settings = get_settings()
router = APIRouter()

PKCE_COOKIE = "illustrious_pkce"
PKCE_COOKIE_MAX_AGE = 600
ACCESS_COOKIE = "illustrious_access_token"
REFRESH_COOKIE = "illustrious_refresh_token"
REFRESH_COOKIE_MAX_AGE = 60 * 60 * 24 * 30


def _set_cookie(response, key: str, value: str, max_age: int) -> None:
    response.set_cookie(
        key=key,
        value=value,
        httponly=True,
        secure=not settings.debug,
        samesite="lax",
        path="/",
        max_age=max_age,
    )


def _session_token(request: Request) -> Optional[str]:
    return extract_bearer(request) or request.cookies.get(ACCESS_COOKIE)


@router.get("/auth/callback")
async def oauth_callback(
    request: Request,
    code: Optional[str] = Query(default=None),
    session: AsyncSession = Depends(get_session),
    identity: SupabaseIdentityProvider = Depends(get_identity_provider),
):
    """Exchange the authorization code for tokens and find or create the user."""
    if not code:
        raise BadRequestError("Authorization code is required.")
    verifier = request.cookies.get(PKCE_COOKIE)
    if not verifier:
        raise BadRequestError("Authorization session has expired.")

    try:
        provider_session = await identity.exchange_code(code, verifier)
    except IdentityProviderError as exc:
        log.warning("auth.exchange_failed", status=exc.status_code, reason=exc.message)
        raise ServerError(exc.message) from exc

    user = await user_service.upsert_from_provider(provider_session.user, session)
    log.info("auth.signed_in", user_id=user.id)

    response = JSONResponse(
        content={
            "message": "Obtained tokens successfully!",
            "data": {
                "access_token": provider_session.access_token,
                "refresh_token": provider_session.refresh_token,
                "expires_in": provider_session.expires_in,
                "token_type": provider_session.token_type,
                "user": UserRead.model_validate(user).model_dump(mode="json"),
            },
        }
    )
    response.delete_cookie(PKCE_COOKIE, path="/")
    _set_cookie(response, ACCESS_COOKIE, provider_session.access_token, provider_session.expires_in or 3600)
    if provider_session.refresh_token:
        _set_cookie(response, REFRESH_COOKIE, provider_session.refresh_token, REFRESH_COOKIE_MAX_AGE)
    return response


@router.get("/auth/session")
async def current_session(
    request: Request,
    identity: SupabaseIdentityProvider = Depends(get_identity_provider),
):
    """The tokens of the current session, checked against the provider."""
    token = _session_token(request)
    if not token:
        raise UnauthorizedError("Access token is missing.")
    try:
        await identity.get_user(token)
    except IdentityProviderError as exc:
        raise UnauthorizedError(exc.message) from exc

    return {
        "message": "Session fetched successfully!",
        "data": {
            "access_token": token,
            "refresh_token": request.cookies.get(REFRESH_COOKIE),
        },
    }


@router.get("/auth/{provider}")
async def oauth_sign_in(
    provider: str,
    identity: SupabaseIdentityProvider = Depends(get_identity_provider),
):
    """Start the OAuth flow with the given provider."""
    if provider not in settings.oauth_providers:
        raise BadRequestError(f"Unsupported provider: {provider}.")

    verifier, challenge = generate_pkce_pair()
    url = identity.authorize_url(provider, f"{settings.app_url}/auth/callback", challenge)

    response = RedirectResponse(url, status_code=302)
    _set_cookie(response, PKCE_COOKIE, verifier, PKCE_COOKIE_MAX_AGE)
    log.info("auth.redirect", provider=provider)
    return response


@router.get("/signout")
async def sign_out(
    request: Request,
    redirect_to: Optional[str] = Query(default=None),
    identity: SupabaseIdentityProvider = Depends(get_identity_provider),
):
    """End the provider session for the bearer token or session cookie, if any."""
    token = _session_token(request)
    if token:
        try:
            await identity.sign_out(token)
        except IdentityProviderError as exc:
            raise ServerError(exc.message) from exc

    if redirect_to and (redirect_to == settings.app_url or redirect_to.startswith(settings.app_url + "/")):
        response = RedirectResponse(redirect_to, status_code=302)
    else:
        response = JSONResponse(content={"message": "Signed out successfully!", "data": None})
    for cookie in (PKCE_COOKIE, ACCESS_COOKIE, REFRESH_COOKIE):
        response.delete_cookie(cookie, path="/")
    log.info("auth.signed_out", had_token=bool(token))
    return response
