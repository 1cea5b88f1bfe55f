"""
Authentication: bearer token -> internal user.

Tokens are issued and verified by the identity provider. This module only
extracts the bearer credential, asks the provider whose it is, and maps the
provider subject onto a ``User`` row. It never creates users; that happens
in the OAuth callback.
"""

from __future__ import annotations

from typing import Optional

import structlog
from fastapi import Request
from fastapi.security import HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import UnauthorizedError
from app.core.identity import IdentityProviderError, SupabaseIdentityProvider
from app.models.user import User

log = structlog.get_logger()

# Documents the scheme in OpenAPI; enforcement happens in the permission step.
bearer_scheme = HTTPBearer(auto_error=False, description="Identity provider access token")


def extract_bearer(request: Request) -> Optional[str]:
    """The bearer token from the Authorization header, if any."""
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


async def resolve_identity(
    token: Optional[str],
    identity: SupabaseIdentityProvider,
    session: AsyncSession,
) -> User:
    """Exchange a bearer token for the internal user it belongs to."""
    if not token:
        raise UnauthorizedError("Access token is missing.")

    try:
        provider_user = await identity.get_user(token)
    except IdentityProviderError as exc:
        log.info("auth.identity_rejected", status=exc.status_code, reason=exc.message)
        raise UnauthorizedError(exc.message) from exc

    result = await session.execute(
        select(User).where(User.identifier == provider_user.id)
    )
    user = result.scalars().first()
    if user is None:
        log.info("auth.user_not_found", subject=provider_user.id)
        raise UnauthorizedError("User was not found.")
    return user
