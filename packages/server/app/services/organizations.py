"""
Organization service: org CRUD, membership invites and cascading deletion.
"""

from __future__ import annotations

from typing import Iterable

import structlog
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import ConflictError, NotFoundError
from app.models.invoice import Invoice
from app.models.links import OrgInvoice, OrgReport, UserInvoice, UserReport
from app.models.organization import Org
from app.models.report import Report
from app.models.user import User
from app.models.user_org import OrgUser
from app.services import users as user_service

from illustrious_shared.schemas.common import Role
from illustrious_shared.schemas.organizations import OrgCreateRequest, OrgUpdateRequest
from illustrious_shared.schemas.users import OrgUserAddRequest

log = structlog.get_logger()


async def create_org(req: OrgCreateRequest, creator_id: str, session: AsyncSession) -> Org:
    """Create an org and make the creator its owner."""
    existing = await session.execute(select(Org.id).where(Org.id == req.id))
    if existing.scalar_one_or_none():
        raise ConflictError("The organization already exists.")

    org = Org(id=req.id, name=req.name, contact=req.contact)
    session.add(org)
    await session.flush()

    session.add(OrgUser(user_id=creator_id, org_id=org.id, role=int(Role.OWNER)))
    await session.flush()

    log.info("org.created", org_id=org.id, creator=creator_id)
    return org


async def get_org(org_id: str, session: AsyncSession) -> Org:
    result = await session.execute(select(Org).where(Org.id == org_id))
    org = result.scalar_one_or_none()
    if not org:
        raise NotFoundError()
    return org


async def list_members(org_id: str, session: AsyncSession) -> list[tuple[User, Role]]:
    result = await session.execute(
        select(User, OrgUser.role)
        .join(OrgUser, OrgUser.user_id == User.id)
        .where(OrgUser.org_id == org_id)
        .order_by(OrgUser.role.desc(), User.email)
    )
    return [(user, Role(role)) for user, role in result.all()]


async def update_org(org_id: str, req: OrgUpdateRequest, session: AsyncSession) -> Org:
    org = await get_org(org_id, session)
    changes = req.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in changes.items():
        setattr(org, field, value)
    session.add(org)
    await session.flush()

    log.info("org.updated", org_id=org.id, fields=sorted(changes))
    return org


async def add_member(req: OrgUserAddRequest, session: AsyncSession) -> tuple[User, Role]:
    """
    Add a user to an org with the requested role.

    An existing user with the same email is reused; otherwise a managed user
    is created and linked to a real account when they first sign in.
    """
    await get_org(req.org, session)

    user = await user_service.find_by_email(req.user.email, session)
    if user is None:
        user = await user_service.create_managed_user(req.user, session)
    else:
        existing = await session.execute(
            select(OrgUser).where(OrgUser.user_id == user.id, OrgUser.org_id == req.org)
        )
        if existing.scalar_one_or_none():
            raise ConflictError("The user is already a member of this organization.")

    session.add(OrgUser(user_id=user.id, org_id=req.org, role=int(req.role)))
    await session.flush()

    log.info("org.member_added", org_id=req.org, user_id=user.id, role=req.role.name)
    return user, req.role


async def _ids(session: AsyncSession, column, org_column, org_id: str) -> list[str]:
    result = await session.execute(select(column).where(org_column == org_id))
    return list(result.scalars().all())


async def _delete_where_in(session: AsyncSession, model, column, ids: Iterable[str]) -> None:
    ids = list(ids)
    if ids:
        await session.execute(delete(model).where(column.in_(ids)))


async def delete_org(org_id: str, session: AsyncSession) -> None:
    """
    Delete an org together with its invoices, reports and memberships.

    Link rows go first so restrict-on-delete foreign keys are satisfied. The
    whole sequence runs in the caller's transaction.
    """
    org = await get_org(org_id, session)

    invoice_ids = await _ids(session, OrgInvoice.invoice_id, OrgInvoice.org_id, org_id)
    await _delete_where_in(session, UserInvoice, UserInvoice.invoice_id, invoice_ids)
    await session.execute(delete(OrgInvoice).where(OrgInvoice.org_id == org_id))
    await _delete_where_in(session, Invoice, Invoice.id, invoice_ids)

    report_ids = await _ids(session, OrgReport.report_id, OrgReport.org_id, org_id)
    await _delete_where_in(session, UserReport, UserReport.report_id, report_ids)
    await session.execute(delete(OrgReport).where(OrgReport.org_id == org_id))
    await _delete_where_in(session, Report, Report.id, report_ids)

    await session.execute(delete(OrgUser).where(OrgUser.org_id == org_id))
    await session.delete(org)
    await session.flush()

    log.info(
        "org.deleted",
        org_id=org_id,
        invoices=len(invoice_ids),
        reports=len(report_ids),
    )
