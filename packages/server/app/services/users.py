"""
User service: profile reads and edits, related resources, account removal,
and the user upsert performed after a successful OAuth exchange.
"""

from __future__ import annotations

from typing import Optional

import structlog
from sqlalchemy import delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import ConflictError, NotFoundError, ServerError
from app.core.identity import IdentityProviderError, ProviderUser, SupabaseIdentityProvider
from app.models.authentication import Authentication, UserAuthentication
from app.models.base import new_id
from app.models.invoice import Invoice
from app.models.links import UserInvoice, UserReport
from app.models.organization import Org
from app.models.report import Report
from app.models.user import User
from app.models.user_org import OrgUser

from illustrious_shared.schemas.common import Role
from illustrious_shared.schemas.users import MemberProfile, UserLookupField, UserUpdateRequest

log = structlog.get_logger()

# Managed users get a placeholder identifier until they sign in themselves
MANAGED_IDENTIFIER_PREFIX = "managed:"


def is_placeholder_identifier(identifier: str) -> bool:
    return identifier.startswith(MANAGED_IDENTIFIER_PREFIX)


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

async def get_user(user_id: str, session: AsyncSession) -> User:
    result = await session.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise NotFoundError("User was not found.")
    return user


async def find_by_email(email: str, session: AsyncSession) -> Optional[User]:
    result = await session.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


async def find_user(value: str, by: UserLookupField, session: AsyncSession) -> User:
    """Look a user up by id, email or provider identifier."""
    column = getattr(User, by.value)
    result = await session.execute(select(User).where(column == value))
    user = result.scalars().first()
    if not user:
        raise NotFoundError("User was not found.")
    return user


async def list_user_orgs(user_id: str, session: AsyncSession) -> list[dict]:
    """All orgs the user belongs to, with their role."""
    result = await session.execute(
        select(Org, OrgUser.role)
        .join(OrgUser, OrgUser.org_id == Org.id)
        .where(OrgUser.user_id == user_id)
        .order_by(Org.name)
    )
    return [
        {"id": org.id, "name": org.name, "contact": org.contact, "role": Role(role)}
        for org, role in result.all()
    ]


async def list_user_invoices(user_id: str, session: AsyncSession) -> list[Invoice]:
    result = await session.execute(
        select(Invoice)
        .join(UserInvoice, UserInvoice.invoice_id == Invoice.id)
        .where(UserInvoice.user_id == user_id)
        .order_by(Invoice.created_at)
    )
    return list(result.scalars().all())


async def list_user_reports(user_id: str, session: AsyncSession) -> list[Report]:
    result = await session.execute(
        select(Report)
        .join(UserReport, UserReport.report_id == Report.id)
        .where(UserReport.user_id == user_id)
        .order_by(Report.created_at)
    )
    return list(result.scalars().all())


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

async def update_user(user: User, req: UserUpdateRequest, session: AsyncSession) -> User:
    """Apply profile edits. Flags (managed, super_admin) are not editable here."""
    changes = req.model_dump(exclude_unset=True)

    new_email = changes.get("email")
    if new_email and new_email != user.email:
        existing = await find_by_email(new_email, session)
        if existing and existing.id != user.id:
            raise ConflictError("The email is already in use.")

    for field, value in changes.items():
        setattr(user, field, value)
    session.add(user)
    await session.flush()

    log.info("user.updated", user_id=user.id, fields=sorted(changes))
    return user


async def create_managed_user(profile: MemberProfile, session: AsyncSession) -> User:
    """Create a user administered by an org; linked to an account on first sign-in."""
    user = User(
        identifier=f"{MANAGED_IDENTIFIER_PREFIX}{new_id()}",
        email=profile.email,
        first_name=profile.first_name,
        last_name=profile.last_name,
        phone=profile.phone,
        picture=profile.picture,
        managed=True,
    )
    session.add(user)
    await session.flush()

    log.info("user.created", user_id=user.id, managed=True)
    return user


async def remove_user(
    user: User,
    identity: SupabaseIdentityProvider,
    session: AsyncSession,
) -> None:
    """
    Delete a user and their identity-provider account.

    Refused while the user has unpaid invoices, is linked to any report, or
    owns an organization.
    """
    unpaid = await session.execute(
        select(func.count())
        .select_from(UserInvoice)
        .join(Invoice, Invoice.id == UserInvoice.invoice_id)
        .where(UserInvoice.user_id == user.id, Invoice.paid == False)  # noqa: E712
    )
    if unpaid.scalar_one():
        raise ConflictError("User has unpaid invoices")

    reports = await session.execute(
        select(func.count()).select_from(UserReport).where(UserReport.user_id == user.id)
    )
    if reports.scalar_one():
        raise ConflictError("User has reports")

    owned = await session.execute(
        select(func.count())
        .select_from(OrgUser)
        .where(OrgUser.user_id == user.id, OrgUser.role == int(Role.OWNER))
    )
    if owned.scalar_one():
        raise ConflictError("User is an owner of an organization")

    auth_ids = (
        await session.execute(
            select(UserAuthentication.auth_id).where(UserAuthentication.user_id == user.id)
        )
    ).scalars().all()

    await session.execute(delete(OrgUser).where(OrgUser.user_id == user.id))
    await session.execute(delete(UserInvoice).where(UserInvoice.user_id == user.id))
    await session.execute(delete(UserAuthentication).where(UserAuthentication.user_id == user.id))
    if auth_ids:
        await session.execute(delete(Authentication).where(Authentication.id.in_(auth_ids)))
    await session.delete(user)
    await session.flush()

    if not is_placeholder_identifier(user.identifier):
        try:
            await identity.delete_user(user.identifier)
        except IdentityProviderError as exc:
            raise ServerError(exc.message) from exc

    log.info("user.deleted", user_id=user.id)


# ---------------------------------------------------------------------------
# OAuth sign-in
# ---------------------------------------------------------------------------

def _profile_from_metadata(provider_user: ProviderUser) -> dict:
    meta = provider_user.user_metadata or {}
    first_name = meta.get("given_name")
    last_name = meta.get("family_name")
    full_name = meta.get("full_name") or meta.get("name")
    if full_name and not (first_name or last_name):
        first_name, _, last_name = full_name.partition(" ")
    return {
        "first_name": first_name or None,
        "last_name": last_name or None,
        "picture": meta.get("avatar_url") or meta.get("picture"),
        "phone": provider_user.phone or meta.get("phone") or None,
    }


async def upsert_from_provider(provider_user: ProviderUser, session: AsyncSession) -> User:
    """
    Find or create the internal user for a provider account.

    Matches on the provider subject first, then on email (which links a
    managed user to their new account), and otherwise creates a new user.
    Ensures an ``Authentication`` record maps the subject to the user.
    """
    result = await session.execute(select(User).where(User.identifier == provider_user.id))
    user = result.scalars().first()

    if user is None and provider_user.email:
        user = await find_by_email(provider_user.email, session)
        if user is not None:
            log.info("user.linked", user_id=user.id, was_managed=user.managed)
            user.identifier = provider_user.id
            user.managed = False
            session.add(user)

    if user is None:
        user = User(
            identifier=provider_user.id,
            email=provider_user.email or None,
            **_profile_from_metadata(provider_user),
        )
        session.add(user)
        await session.flush()
        log.info("user.created", user_id=user.id, managed=False)

    result = await session.execute(
        select(Authentication).where(Authentication.sub == provider_user.id)
    )
    auth = result.scalar_one_or_none()
    if auth is None:
        auth = Authentication(sub=provider_user.id)
        session.add(auth)
        await session.flush()

    result = await session.execute(
        select(UserAuthentication).where(
            UserAuthentication.user_id == user.id,
            UserAuthentication.auth_id == auth.id,
        )
    )
    if result.scalar_one_or_none() is None:
        session.add(UserAuthentication(user_id=user.id, auth_id=auth.id))

    await session.flush()
    return user
