#!/usr/bin/env python3
"""Seed a development database with an organization, its members, an invoice and a report.

Usage:
    cd packages/server && python ../../scripts/seed_dev_data.py

Requires ILLUSTRIOUS_DATABASE_URL (or defaults to localhost). Safe to re-run.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import structlog
from sqlmodel import select

from app.core.database import get_session_context, init_db
from app.core.logging import configure_logging
from app.models import (
    Invoice,
    Org,
    OrgInvoice,
    OrgReport,
    OrgUser,
    Report,
    User,
    UserInvoice,
    UserReport,
)

from app.services.users import MANAGED_IDENTIFIER_PREFIX

from illustrious_shared.schemas.common import Role

log = structlog.get_logger()

# Deterministic ids for reproducibility
ORG_ID = "org-acme"
OWNER_ID = "user-owner"
EMPLOYEE_ID = "user-employee"
CLIENT_ID = "user-client"
INVOICE_ID = "invoice-0001"
REPORT_ID = "report-0001"

USERS = [
    (OWNER_ID, "owner@acme.dev", "Olivia", Role.OWNER),
    (EMPLOYEE_ID, "employee@acme.dev", "Evan", Role.EMPLOYEE),
    (CLIENT_ID, "client@example.com", "Casey", Role.CLIENT),
]


async def seed():
    await init_db()

    async with get_session_context() as session:
        if (await session.execute(select(Org).where(Org.id == ORG_ID))).scalar_one_or_none():
            log.info("seed.skipped", reason="already seeded")
            return

        session.add(Org(id=ORG_ID, name="Acme Cleaning", contact="billing@acme.dev"))
        for user_id, email, first_name, _ in USERS:
            # Placeholder identifiers: linked to real accounts on first sign-in by email
            session.add(User(
                id=user_id,
                identifier=f"{MANAGED_IDENTIFIER_PREFIX}{user_id}",
                email=email,
                first_name=first_name,
                managed=True,
            ))
        await session.flush()

        for user_id, _, _, role in USERS:
            session.add(OrgUser(user_id=user_id, org_id=ORG_ID, role=int(role)))

        now = datetime.now(timezone.utc)
        session.add(Invoice(
            id=INVOICE_ID,
            paid=False,
            price=Decimal("149.00"),
            start=now - timedelta(days=30),
            end=now,
            due=now + timedelta(days=14),
        ))
        session.add(Report(id=REPORT_ID, rating=9, notes="Spotless."))
        await session.flush()

        session.add(OrgInvoice(org_id=ORG_ID, invoice_id=INVOICE_ID))
        session.add(OrgReport(org_id=ORG_ID, report_id=REPORT_ID))
        for user_id in (CLIENT_ID, EMPLOYEE_ID):
            session.add(UserInvoice(user_id=user_id, invoice_id=INVOICE_ID))
            session.add(UserReport(user_id=user_id, report_id=REPORT_ID))

    log.info("seed.done", org_id=ORG_ID, users=len(USERS))


if __name__ == "__main__":
    configure_logging("info", "console")
    asyncio.run(seed())
