"""
Invoice API endpoints.

POST   /invoice                Create an invoice for a client in an org
GET    /invoice/{invoice_id}   Get an invoice (linked users)
PUT    /invoice/{invoice_id}   Update an invoice (linked, role above CLIENT)
DELETE /invoice/{invoice_id}   Delete an invoice (linked, role above EMPLOYEE)
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session
from app.core.permissions import AuthContext, ensure, get_auth_context, has_role
from app.services import invoices as invoice_service

from illustrious_shared.schemas.common import Role, SuccessResponse
from illustrious_shared.schemas.invoices import InvoiceRead, InvoiceSubmit, InvoiceUpdate

log = structlog.get_logger()
router = APIRouter()


def _flag(auth: AuthContext, name: str) -> bool:
    invoice = auth.permissions.invoice
    return invoice is not None and getattr(invoice, name)


@router.post("/invoice", response_model=SuccessResponse[InvoiceRead])
async def create_invoice(
    body: InvoiceSubmit,
    auth: AuthContext = Depends(get_auth_context),
    session: AsyncSession = Depends(get_session),
):
    ensure(
        auth,
        has_role(auth, Role.EMPLOYEE),
        "You do not have permission to create an invoice in this organization.",
    )
    invoice = await invoice_service.create_invoice(body, auth.user.id, session)
    return SuccessResponse(message="Invoice created successfully!", data=InvoiceRead.model_validate(invoice))


@router.get("/invoice/{invoice_id}", response_model=SuccessResponse[InvoiceRead])
async def get_invoice(
    invoice_id: str,
    auth: AuthContext = Depends(get_auth_context),
    session: AsyncSession = Depends(get_session),
):
    ensure(auth, _flag(auth, "access"), "You do not have permission to access this invoice.")
    invoice = await invoice_service.get_invoice(invoice_id, session)
    return SuccessResponse(message="Invoice fetched successfully!", data=InvoiceRead.model_validate(invoice))


@router.put("/invoice/{invoice_id}", response_model=SuccessResponse[InvoiceRead])
async def update_invoice(
    invoice_id: str,
    body: InvoiceUpdate,
    auth: AuthContext = Depends(get_auth_context),
    session: AsyncSession = Depends(get_session),
):
    ensure(auth, _flag(auth, "edit"), "You do not have permission to update this invoice.")
    invoice = await invoice_service.update_invoice(invoice_id, body, session)
    return SuccessResponse(message="Invoice updated successfully!", data=InvoiceRead.model_validate(invoice))


@router.delete("/invoice/{invoice_id}", response_model=SuccessResponse[None])
async def delete_invoice(
    invoice_id: str,
    auth: AuthContext = Depends(get_auth_context),
    session: AsyncSession = Depends(get_session),
):
    ensure(auth, _flag(auth, "delete"), "You do not have permission to delete this invoice.")
    await invoice_service.delete_invoice(invoice_id, session)
    return SuccessResponse(message="Invoice deleted successfully!")
