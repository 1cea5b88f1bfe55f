"""
Membership and resource-ownership lookups used to derive permissions.

All reads, no writes. Absence of a membership is reported as ``None``, not
raised; callers decide what "no role" means for the operation at hand.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import structlog
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.models.invoice import Invoice
from app.models.links import OrgInvoice, OrgReport, UserInvoice, UserReport
from app.models.organization import Org
from app.models.report import Report
from app.models.user import User
from app.models.user_org import OrgUser

from illustrious_shared.schemas.common import ResourceType, Role

log = structlog.get_logger()

# resource type -> (table, user link, user link column, org link, org link column)
_RESOURCE_TABLES = {
    ResourceType.INVOICE: (Invoice, UserInvoice, UserInvoice.invoice_id, OrgInvoice, OrgInvoice.invoice_id),
    ResourceType.REPORT: (Report, UserReport, UserReport.report_id, OrgReport, OrgReport.report_id),
}


@dataclass(frozen=True)
class ResourceAccess:
    access: bool
    role: Optional[Role] = None


# ---------------------------------------------------------------------------
# Organization membership
# ---------------------------------------------------------------------------

async def lookup_role(user_id: str, org_id: str, session: AsyncSession) -> Optional[Role]:
    """The caller's role in ``org_id``, or None when not a member."""
    result = await session.execute(
        select(OrgUser.role).where(OrgUser.user_id == user_id, OrgUser.org_id == org_id)
    )
    role = result.scalar_one_or_none()
    return Role(role) if role is not None else None


async def count_memberships(user_id: str, session: AsyncSession) -> int:
    result = await session.execute(
        select(func.count()).select_from(OrgUser).where(OrgUser.user_id == user_id)
    )
    return result.scalar_one()


async def count_owned_orgs(user_id: str, session: AsyncSession) -> int:
    result = await session.execute(
        select(func.count())
        .select_from(OrgUser)
        .where(OrgUser.user_id == user_id, OrgUser.role == int(Role.OWNER))
    )
    return result.scalar_one()


# ---------------------------------------------------------------------------
# Existence
# ---------------------------------------------------------------------------

async def org_exists(org_id: str, session: AsyncSession) -> bool:
    result = await session.execute(select(Org.id).where(Org.id == org_id))
    return result.scalar_one_or_none() is not None


async def user_exists(user_id: str, session: AsyncSession) -> bool:
    result = await session.execute(select(User.id).where(User.id == user_id))
    return result.scalar_one_or_none() is not None


async def resource_exists(
    resource_type: ResourceType, resource_id: str, session: AsyncSession
) -> bool:
    table = _RESOURCE_TABLES[resource_type][0]
    result = await session.execute(select(table.id).where(table.id == resource_id))
    return result.scalar_one_or_none() is not None


# ---------------------------------------------------------------------------
# Resource ownership
# ---------------------------------------------------------------------------

async def lookup_resource_access(
    user_id: str,
    resource_id: str,
    resource_type: ResourceType,
    session: AsyncSession,
) -> ResourceAccess:
    """
    Whether the user is linked to the resource, and their role in the org
    that owns it.

    ``access`` only depends on the user-resource link. ``role`` is found by
    joining that link to the resource's org link and to a membership in the
    same org. If the resource is linked to several orgs the user belongs to,
    the lowest role wins.
    """
    _, user_link, user_link_col, org_link, org_link_col = _RESOURCE_TABLES[resource_type]

    linked = await session.execute(
        select(user_link_col).where(user_link.user_id == user_id, user_link_col == resource_id)
    )
    if linked.scalar_one_or_none() is None:
        return ResourceAccess(access=False)

    result = await session.execute(
        select(OrgUser.role, OrgUser.org_id)
        .join(org_link, org_link.org_id == OrgUser.org_id)
        .where(
            OrgUser.user_id == user_id,
            org_link_col == resource_id,
        )
        .order_by(OrgUser.role.asc(), OrgUser.org_id.asc())
    )
    rows = result.all()
    if not rows:
        return ResourceAccess(access=True)

    if len(rows) > 1:
        log.warning(
            "permissions.ambiguous_resource_org",
            user_id=user_id,
            resource_type=resource_type.value,
            resource_id=resource_id,
            org_ids=[org_id for _, org_id in rows],
        )
    return ResourceAccess(access=True, role=Role(rows[0][0]))
