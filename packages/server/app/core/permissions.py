"""
Per-request permission derivation.

For every protected route a ``PermissionSnapshot`` is computed before the
handler runs:

1. Public paths (root, health, docs, OAuth) skip authentication entirely.
2. The bearer token is resolved to an internal user.
3. Self-profile paths (``/me``, ``/user/{user_id}[/{by}]``) only carry
   ``super_admin``.
4. POST requests carry the target org (from the route or the ``org`` body
   key) with the caller's role. Only ``POST /org`` sets ``create``, from
   the org creation policy.
5. Other methods carry the role in any org named by the route, and
   access/edit/delete flags for any invoice or report it names.

Lookups run strictly in that order; nothing is cached across requests. The
result is attached to ``request.state.auth`` and injected into handlers via
``Depends(get_auth_context)``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

import structlog
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import bearer_scheme, extract_bearer, resolve_identity
from app.core.config import get_settings
from app.core.database import get_session
from app.core.errors import BadRequestError, NotFoundError, UnauthorizedError
from app.core.identity import SupabaseIdentityProvider, get_identity_provider
from app.models.user import User
from app.services import access

from illustrious_shared.schemas.common import OrgCreationPolicy, ResourceType, Role
from illustrious_shared.schemas.permissions import (
    OrgPermission,
    PermissionSnapshot,
    resource_flags,
)

log = structlog.get_logger()

PUBLIC_PATHS = {"/", "/health", "/ready", "/redoc", "/openapi.json", "/signout"}
PUBLIC_PREFIXES = ("/docs", "/auth/")
SELF_PATHS = {"/me", "/user/{user_id}", "/user/{user_id}/{by}"}

# POST routes whose org comes from the body, and the body key naming the new resource
ORG_SCOPED_CREATES = {
    "/invoice": "invoice",
    "/report": "report",
    "/org/user": None,
}

MISSING_LOOKUP_DETAILS = "Required details for look up are missing."


@dataclass(frozen=True)
class AuthContext:
    user: User
    permissions: PermissionSnapshot

    @property
    def super_admin(self) -> bool:
        return self.permissions.super_admin


def is_public_path(path: str) -> bool:
    return path in PUBLIC_PATHS or path.startswith(PUBLIC_PREFIXES)


async def _can_create_org(user: User, session: AsyncSession) -> bool:
    policy = get_settings().org_creation_policy
    if policy == OrgCreationPolicy.NON_OWNER:
        return await access.count_owned_orgs(user.id, session) == 0
    return await access.count_memberships(user.id, session) == 0


async def _org_for_create(
    user: User,
    path: str,
    path_params: Mapping[str, Any],
    body: Mapping[str, Any],
    session: AsyncSession,
) -> OrgPermission:
    org_id = path_params.get("org_id") or body.get("org")
    if not org_id or not isinstance(org_id, str):
        raise BadRequestError(MISSING_LOOKUP_DETAILS)

    resource_key = ORG_SCOPED_CREATES.get(path)
    if resource_key:
        resource = body.get(resource_key)
        if not isinstance(resource, Mapping) or not resource.get("id"):
            raise BadRequestError(MISSING_LOOKUP_DETAILS)

    role = await access.lookup_role(user.id, org_id, session)
    return OrgPermission(id=org_id, role=role, create=False)


async def _resource_permission(
    user: User, resource_type: ResourceType, resource_id: str, session: AsyncSession
):
    if not await access.resource_exists(resource_type, resource_id, session):
        raise NotFoundError()
    found = await access.lookup_resource_access(user.id, resource_id, resource_type, session)
    return resource_flags(resource_id, found.access, found.role)


async def derive_permissions(
    session: AsyncSession,
    identity: SupabaseIdentityProvider,
    *,
    token: Optional[str],
    method: str,
    path: str,
    path_params: Mapping[str, Any],
    body: Optional[Mapping[str, Any]] = None,
) -> Optional[AuthContext]:
    """
    Build the permission snapshot for one request.

    ``path`` is the route template (e.g. ``/invoice/{invoice_id}``). Returns
    None for public paths. Raises ``UnauthorizedError`` when the caller
    cannot be identified, ``BadRequestError`` when a create request does not
    name its org or resource, and ``NotFoundError`` when the route names an
    entity that does not exist.
    """
    if is_public_path(path):
        return None

    user = await resolve_identity(token, identity, session)
    body = body or {}

    if path in SELF_PATHS:
        target = path_params.get("user_id")
        by = path_params.get("by", "id")
        if target is not None and by == "id" and not await access.user_exists(target, session):
            raise NotFoundError()
        snapshot = PermissionSnapshot(super_admin=user.super_admin)

    elif method == "POST":
        if path == "/org":
            org = OrgPermission(
                id=body.get("id"),
                role=None,
                create=await _can_create_org(user, session),
            )
        elif path in ORG_SCOPED_CREATES:
            org = await _org_for_create(user, path, path_params, body, session)
        else:
            org = None
        snapshot = PermissionSnapshot(super_admin=user.super_admin, org=org)

    else:
        org = invoice = report = None
        org_id = path_params.get("org_id")
        if org_id is not None:
            if not await access.org_exists(org_id, session):
                raise NotFoundError()
            role = await access.lookup_role(user.id, org_id, session)
            org = OrgPermission(id=org_id, role=role, create=False)
        if "invoice_id" in path_params:
            invoice = await _resource_permission(
                user, ResourceType.INVOICE, path_params["invoice_id"], session
            )
        if "report_id" in path_params:
            report = await _resource_permission(
                user, ResourceType.REPORT, path_params["report_id"], session
            )
        snapshot = PermissionSnapshot(
            super_admin=user.super_admin, org=org, invoice=invoice, report=report
        )

    log.debug(
        "permissions.derived",
        user_id=user.id,
        method=method,
        path=path,
        snapshot=snapshot.model_dump(exclude_none=True),
    )
    return AuthContext(user=user, permissions=snapshot)


# ---------------------------------------------------------------------------
# FastAPI dependencies
# ---------------------------------------------------------------------------

async def _read_body(request: Request) -> dict:
    if request.method != "POST":
        return {}
    try:
        body = await request.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


async def get_auth_context(
    request: Request,
    session: AsyncSession = Depends(get_session),
    identity: SupabaseIdentityProvider = Depends(get_identity_provider),
    _credentials=Depends(bearer_scheme),
) -> AuthContext:
    """Main authorization dependency for protected routes."""
    route = request.scope.get("route")
    path = getattr(route, "path", request.url.path)

    context = await derive_permissions(
        session,
        identity,
        token=extract_bearer(request),
        method=request.method,
        path=path,
        path_params=request.path_params,
        body=await _read_body(request),
    )
    if context is None:
        raise UnauthorizedError("Authentication is not available on this path.")
    request.state.auth = context
    return context


# ---------------------------------------------------------------------------
# Handler-side checks
# ---------------------------------------------------------------------------

def ensure(auth: AuthContext, allowed: bool, message: str) -> None:
    """Pass when the caller is a super-admin or ``allowed`` holds."""
    if auth.super_admin or allowed:
        return
    log.info("permissions.denied", user_id=auth.user.id, reason=message)
    raise UnauthorizedError(message)


def has_role(auth: AuthContext, minimum: Role) -> bool:
    org = auth.permissions.org
    return org is not None and org.at_least(minimum)
