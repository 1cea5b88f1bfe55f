"""
Organization API endpoints.

POST   /org                                     Create an org (caller becomes OWNER)
POST   /org/user                                Add a user to an org
GET    /org/{org_id}?include=invoices,reports,users   Org details
PUT    /org/{org_id}                            Update name/contact (ADMIN)
DELETE /org/{org_id}                            Delete org and everything it owns (OWNER)
"""

from __future__ import annotations

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.routes.users import parse_include
from app.core.database import get_session
from app.core.permissions import AuthContext, ensure, get_auth_context, has_role
from app.services import invoices as invoice_service
from app.services import organizations as org_service
from app.services import reports as report_service

from illustrious_shared.schemas.common import Role, SuccessResponse
from illustrious_shared.schemas.invoices import InvoiceRead
from illustrious_shared.schemas.organizations import (
    ORG_INCLUDES,
    OrgCreateRequest,
    OrgDetails,
    OrgRead,
    OrgUpdateRequest,
)
from illustrious_shared.schemas.reports import ReportRead
from illustrious_shared.schemas.users import MemberRead, OrgUserAddRequest, UserRead

log = structlog.get_logger()
router = APIRouter()


@router.post("/org", response_model=SuccessResponse[OrgRead])
async def create_org(
    body: OrgCreateRequest,
    auth: AuthContext = Depends(get_auth_context),
    session: AsyncSession = Depends(get_session),
):
    """Create a new organization. The creator becomes its owner."""
    org_perm = auth.permissions.org
    ensure(
        auth,
        org_perm is not None and org_perm.create,
        "You do not have permission to create an organization.",
    )
    org = await org_service.create_org(body, auth.user.id, session)
    return SuccessResponse(message="Organization created successfully!", data=OrgRead.model_validate(org))


@router.post("/org/user", response_model=SuccessResponse[MemberRead])
async def add_org_user(
    body: OrgUserAddRequest,
    auth: AuthContext = Depends(get_auth_context),
    session: AsyncSession = Depends(get_session),
):
    """Add an existing or managed user to an org. Needs ADMIN; cannot grant above own role."""
    ensure(auth, has_role(auth, Role.ADMIN), "You do not have permission to add users to this organization.")
    ensure(
        auth,
        has_role(auth, body.role),
        "You cannot grant a role above your own.",
    )
    user, role = await org_service.add_member(body, session)
    return SuccessResponse(
        message="User added to organization successfully!",
        data=MemberRead(user=UserRead.model_validate(user), role=role),
    )


@router.get("/org/{org_id}", response_model=SuccessResponse[OrgDetails])
async def get_org(
    org_id: str,
    include: Optional[str] = Query(default=None, description="Comma-separated: invoices, reports, users"),
    auth: AuthContext = Depends(get_auth_context),
    session: AsyncSession = Depends(get_session),
):
    """Org details for any member, optionally with its invoices, reports and members."""
    ensure(auth, has_role(auth, Role.CLIENT), "You do not have permission to access this organization.")
    names = parse_include(include, ORG_INCLUDES)

    org = await org_service.get_org(org_id, session)
    data = OrgDetails(org=OrgRead.model_validate(org))
    if "invoices" in names:
        data.invoices = [
            InvoiceRead.model_validate(i) for i in await invoice_service.list_org_invoices(org_id, session)
        ]
    if "reports" in names:
        data.reports = [
            ReportRead.model_validate(r) for r in await report_service.list_org_reports(org_id, session)
        ]
    if "users" in names:
        data.users = [
            MemberRead(user=UserRead.model_validate(user), role=role)
            for user, role in await org_service.list_members(org_id, session)
        ]
    return SuccessResponse(message="Organization fetched successfully!", data=data)


@router.put("/org/{org_id}", response_model=SuccessResponse[OrgRead])
async def update_org(
    org_id: str,
    body: OrgUpdateRequest,
    auth: AuthContext = Depends(get_auth_context),
    session: AsyncSession = Depends(get_session),
):
    ensure(auth, has_role(auth, Role.ADMIN), "You do not have permission to update this organization.")
    org = await org_service.update_org(org_id, body, session)
    return SuccessResponse(message="Organization updated successfully!", data=OrgRead.model_validate(org))


@router.delete("/org/{org_id}", response_model=SuccessResponse[None])
async def delete_org(
    org_id: str,
    auth: AuthContext = Depends(get_auth_context),
    session: AsyncSession = Depends(get_session),
):
    """Delete the org with its invoices, reports and memberships in one transaction."""
    ensure(auth, has_role(auth, Role.OWNER), "You do not have permission to delete this organization.")
    await org_service.delete_org(org_id, session)
    return SuccessResponse(message="Organization deleted successfully!")
