"""
Invoice service: create with org and participant links, read, update, delete.
"""

from __future__ import annotations

from datetime import datetime, timezone

import structlog
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import BadRequestError, ConflictError, NotFoundError
from app.models.invoice import Invoice
from app.models.links import OrgInvoice, UserInvoice
from app.services import access

from illustrious_shared.schemas.invoices import InvoiceSubmit, InvoiceUpdate

log = structlog.get_logger()


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes for timezone-aware columns
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


async def create_invoice(
    req: InvoiceSubmit,
    creator_id: str,
    session: AsyncSession,
) -> Invoice:
    """Create an invoice linked to its org, the billed client and the creator."""
    if not await access.org_exists(req.org, session):
        raise NotFoundError("Organization was not found.")
    if not await access.user_exists(req.client, session):
        raise BadRequestError("Client was not found.")

    existing = await session.execute(select(Invoice.id).where(Invoice.id == req.invoice.id))
    if existing.scalar_one_or_none():
        raise ConflictError("The invoice already exists.")

    invoice = Invoice(**req.invoice.model_dump())
    session.add(invoice)
    await session.flush()

    session.add(OrgInvoice(org_id=req.org, invoice_id=invoice.id))
    for user_id in dict.fromkeys([req.client, creator_id]):
        session.add(UserInvoice(user_id=user_id, invoice_id=invoice.id))
    await session.flush()

    log.info("invoice.created", invoice_id=invoice.id, org_id=req.org, client=req.client, creator=creator_id)
    return invoice


async def get_invoice(invoice_id: str, session: AsyncSession) -> Invoice:
    result = await session.execute(select(Invoice).where(Invoice.id == invoice_id))
    invoice = result.scalar_one_or_none()
    if not invoice:
        raise NotFoundError()
    return invoice


async def list_org_invoices(org_id: str, session: AsyncSession) -> list[Invoice]:
    result = await session.execute(
        select(Invoice)
        .join(OrgInvoice, OrgInvoice.invoice_id == Invoice.id)
        .where(OrgInvoice.org_id == org_id)
        .order_by(Invoice.created_at)
    )
    return list(result.scalars().all())


async def update_invoice(invoice_id: str, req: InvoiceUpdate, session: AsyncSession) -> Invoice:
    invoice = await get_invoice(invoice_id, session)
    changes = req.model_dump(exclude_unset=True, exclude_none=True)

    start = _as_utc(changes.get("start", invoice.start))
    end = _as_utc(changes.get("end", invoice.end))
    if end < start:
        raise BadRequestError("Billing period end must not precede its start.")

    for field, value in changes.items():
        setattr(invoice, field, value)
    session.add(invoice)
    await session.flush()

    log.info("invoice.updated", invoice_id=invoice.id, fields=sorted(changes))
    return invoice


async def delete_invoice(invoice_id: str, session: AsyncSession) -> None:
    invoice = await get_invoice(invoice_id, session)
    await session.execute(delete(UserInvoice).where(UserInvoice.invoice_id == invoice_id))
    await session.execute(delete(OrgInvoice).where(OrgInvoice.invoice_id == invoice_id))
    await session.delete(invoice)
    await session.flush()

    log.info("invoice.deleted", invoice_id=invoice_id)
