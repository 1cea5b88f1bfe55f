"""
Report service. Same linkage shape as invoices: one org link, one user link
per participant.
"""

from __future__ import annotations

import structlog
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import BadRequestError, ConflictError, NotFoundError
from app.models.links import OrgReport, UserReport
from app.models.report import Report
from app.services import access

from illustrious_shared.schemas.reports import ReportSubmit, ReportUpdate

log = structlog.get_logger()


async def create_report(req: ReportSubmit, creator_id: str, session: AsyncSession) -> Report:
    if not await access.org_exists(req.org, session):
        raise NotFoundError("Organization was not found.")
    if not await access.user_exists(req.client, session):
        raise BadRequestError("Client was not found.")

    existing = await session.execute(select(Report.id).where(Report.id == req.report.id))
    if existing.scalar_one_or_none():
        raise ConflictError("The report already exists.")

    report = Report(**req.report.model_dump())
    session.add(report)
    await session.flush()

    session.add(OrgReport(org_id=req.org, report_id=report.id))
    for user_id in dict.fromkeys([req.client, creator_id]):
        session.add(UserReport(user_id=user_id, report_id=report.id))
    await session.flush()

    log.info("report.created", report_id=report.id, org_id=req.org, client=req.client, creator=creator_id)
    return report


async def get_report(report_id: str, session: AsyncSession) -> Report:
    result = await session.execute(select(Report).where(Report.id == report_id))
    report = result.scalar_one_or_none()
    if not report:
        raise NotFoundError()
    return report


async def list_org_reports(org_id: str, session: AsyncSession) -> list[Report]:
    result = await session.execute(
        select(Report)
        .join(OrgReport, OrgReport.report_id == Report.id)
        .where(OrgReport.org_id == org_id)
        .order_by(Report.created_at)
    )
    return list(result.scalars().all())


async def update_report(report_id: str, req: ReportUpdate, session: AsyncSession) -> Report:
    report = await get_report(report_id, session)
    changes = req.model_dump(exclude_unset=True)
    if changes.get("rating") is None:
        changes.pop("rating", None)
    for field, value in changes.items():
        setattr(report, field, value)
    session.add(report)
    await session.flush()

    log.info("report.updated", report_id=report.id, fields=sorted(changes))
    return report


async def delete_report(report_id: str, session: AsyncSession) -> None:
    report = await get_report(report_id, session)
    await session.execute(delete(UserReport).where(UserReport.report_id == report_id))
    await session.execute(delete(OrgReport).where(OrgReport.report_id == report_id))
    await session.delete(report)
    await session.flush()

    log.info("report.deleted", report_id=report_id)
