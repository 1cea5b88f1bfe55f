"""
Report API endpoints.

POST   /report               Create a report for a client in an org
GET    /report/{report_id}   Get a report (linked users)
PUT    /report/{report_id}   Update a report (linked, role above CLIENT)
DELETE /report/{report_id}   Delete a report (linked, role above EMPLOYEE)
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session
from app.core.permissions import AuthContext, ensure, get_auth_context, has_role
from app.services import reports as report_service

from illustrious_shared.schemas.common import Role, SuccessResponse
from illustrious_shared.schemas.reports import ReportRead, ReportSubmit, ReportUpdate

log = structlog.get_logger()
router = APIRouter()


def _flag(auth: AuthContext, name: str) -> bool:
    report = auth.permissions.report
    return report is not None and getattr(report, name)


@router.post("/report", response_model=SuccessResponse[ReportRead])
async def create_report(
    body: ReportSubmit,
    auth: AuthContext = Depends(get_auth_context),
    session: AsyncSession = Depends(get_session),
):
    ensure(
        auth,
        has_role(auth, Role.EMPLOYEE),
        "You do not have permission to create a report in this organization.",
    )
    report = await report_service.create_report(body, auth.user.id, session)
    return SuccessResponse(message="Report created successfully!", data=ReportRead.model_validate(report))


@router.get("/report/{report_id}", response_model=SuccessResponse[ReportRead])
async def get_report(
    report_id: str,
    auth: AuthContext = Depends(get_auth_context),
    session: AsyncSession = Depends(get_session),
):
    ensure(auth, _flag(auth, "access"), "You do not have permission to access this report.")
    report = await report_service.get_report(report_id, session)
    return SuccessResponse(message="Report fetched successfully!", data=ReportRead.model_validate(report))


@router.put("/report/{report_id}", response_model=SuccessResponse[ReportRead])
async def update_report(
    report_id: str,
    body: ReportUpdate,
    auth: AuthContext = Depends(get_auth_context),
    session: AsyncSession = Depends(get_session),
):
    ensure(auth, _flag(auth, "edit"), "You do not have permission to update this report.")
    report = await report_service.update_report(report_id, body, session)
    return SuccessResponse(message="Report updated successfully!", data=ReportRead.model_validate(report))


@router.delete("/report/{report_id}", response_model=SuccessResponse[None])
async def delete_report(
    report_id: str,
    auth: AuthContext = Depends(get_auth_context),
    session: AsyncSession = Depends(get_session),
):
    ensure(auth, _flag(auth, "delete"), "You do not have permission to delete this report.")
    await report_service.delete_report(report_id, session)
    return SuccessResponse(message="Report deleted successfully!")
