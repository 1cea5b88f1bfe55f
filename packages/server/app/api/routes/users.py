"""
User API endpoints.

GET    /me?include=orgs,invoices,reports   Current user and related resources
GET    /user/{user_id}                     Get a user (self or super-admin)
GET    /user/{user_id}/{by}                Get a user by id, email or identifier
PUT    /user/{user_id}                     Update profile fields
DELETE /user/{user_id}                     Delete a user and their provider account
"""

from __future__ import annotations

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session
from app.core.errors import BadRequestError
from app.core.identity import SupabaseIdentityProvider, get_identity_provider
from app.core.permissions import AuthContext, ensure, get_auth_context
from app.services import users as user_service

from illustrious_shared.schemas.common import SuccessResponse
from illustrious_shared.schemas.invoices import InvoiceRead
from illustrious_shared.schemas.reports import ReportRead
from illustrious_shared.schemas.users import (
    MeRead,
    OrgMembershipRead,
    UserLookupField,
    UserRead,
    UserUpdateRequest,
)

log = structlog.get_logger()
router = APIRouter()

ME_INCLUDES = ("orgs", "invoices", "reports")


def parse_include(raw: Optional[str], allowed: tuple[str, ...]) -> set[str]:
    """Split a comma-separated ``include`` parameter, rejecting unknown names."""
    if not raw:
        return set()
    names = {part.strip() for part in raw.split(",") if part.strip()}
    unknown = names - set(allowed)
    if unknown:
        raise BadRequestError(f"Unknown include: {', '.join(sorted(unknown))}.")
    return names


@router.get("/me", response_model=SuccessResponse[MeRead])
async def get_me(
    include: Optional[str] = Query(default=None, description="Comma-separated: orgs, invoices, reports"),
    auth: AuthContext = Depends(get_auth_context),
    session: AsyncSession = Depends(get_session),
):
    """The authenticated user, optionally with their orgs, invoices and reports."""
    names = parse_include(include, ME_INCLUDES)
    user = auth.user
    data = MeRead(user=UserRead.model_validate(user))

    if "orgs" in names:
        data.orgs = [
            OrgMembershipRead(**row) for row in await user_service.list_user_orgs(user.id, session)
        ]
    if "invoices" in names:
        data.invoices = [
            InvoiceRead.model_validate(i) for i in await user_service.list_user_invoices(user.id, session)
        ]
    if "reports" in names:
        data.reports = [
            ReportRead.model_validate(r) for r in await user_service.list_user_reports(user.id, session)
        ]
    return SuccessResponse(message="User fetched successfully!", data=data)


@router.get("/user/{user_id}", response_model=SuccessResponse[UserRead])
async def get_user(
    user_id: str,
    auth: AuthContext = Depends(get_auth_context),
    session: AsyncSession = Depends(get_session),
):
    ensure(auth, auth.user.id == user_id, "You do not have permission to access this user.")
    user = await user_service.get_user(user_id, session)
    return SuccessResponse(message="User fetched successfully!", data=UserRead.model_validate(user))


@router.get("/user/{user_id}/{by}", response_model=SuccessResponse[UserRead])
async def lookup_user(
    user_id: str,
    by: UserLookupField,
    auth: AuthContext = Depends(get_auth_context),
    session: AsyncSession = Depends(get_session),
):
    """Get a user by id, email or provider identifier (self or super-admin)."""
    user = await user_service.find_user(user_id, by, session)
    ensure(auth, auth.user.id == user.id, "You do not have permission to access this user.")
    return SuccessResponse(message="User fetched successfully!", data=UserRead.model_validate(user))


@router.put("/user/{user_id}", response_model=SuccessResponse[UserRead])
async def update_user(
    user_id: str,
    body: UserUpdateRequest,
    auth: AuthContext = Depends(get_auth_context),
    session: AsyncSession = Depends(get_session),
):
    """Update profile fields. ``managed`` and ``super_admin`` cannot be changed here."""
    ensure(auth, auth.user.id == user_id, "You do not have permission to update this user.")
    user = await user_service.get_user(user_id, session)
    user = await user_service.update_user(user, body, session)
    return SuccessResponse(message="User updated successfully!", data=UserRead.model_validate(user))


@router.delete("/user/{user_id}", response_model=SuccessResponse[None])
async def delete_user(
    user_id: str,
    auth: AuthContext = Depends(get_auth_context),
    session: AsyncSession = Depends(get_session),
    identity: SupabaseIdentityProvider = Depends(get_identity_provider),
):
    ensure(auth, auth.user.id == user_id, "You do not have permission to delete this user.")
    user = await user_service.get_user(user_id, session)
    await user_service.remove_user(user, identity, session)
    return SuccessResponse(message="User deleted successfully!")
