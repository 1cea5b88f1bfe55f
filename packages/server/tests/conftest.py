"""
Shared fixtures: in-memory SQLite database, a stubbed identity provider and
an HTTP client bound to the app.

The identity provider is the real ``SupabaseIdentityProvider`` talking to an
``httpx.MockTransport`` that emulates the GoTrue endpoints the API calls.
"""

from __future__ import annotations

import os

os.environ.setdefault("ILLUSTRIOUS_DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("ILLUSTRIOUS_ENVIRONMENT", "test")
os.environ.setdefault("ILLUSTRIOUS_APP_URL", "http://test")

import json
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import httpx
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from app.core.database import get_session, unit_of_work
from app.core.identity import SupabaseIdentityProvider, get_identity_provider
from app.main import app
from app.models import Invoice, Org, OrgInvoice, OrgReport, OrgUser, Report, User, UserInvoice, UserReport

from illustrious_shared.schemas.common import Role


# ---------------------------------------------------------------------------
# Identity provider stub
# ---------------------------------------------------------------------------

@dataclass
class ProviderStub:
    """In-memory GoTrue: bearer tokens, authorization codes and call records."""

    tokens: dict[str, dict] = field(default_factory=dict)
    codes: dict[str, dict] = field(default_factory=dict)
    signed_out: list[str] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    fail_admin: bool = False

    def issue_token(self, sub: str, email: str | None = None, **metadata) -> str:
        token = f"token-{uuid.uuid4().hex}"
        self.tokens[token] = {"id": sub, "email": email, "user_metadata": metadata}
        return token

    def issue_code(self, sub: str, email: str | None = None, **metadata) -> str:
        code = f"code-{uuid.uuid4().hex}"
        self.codes[code] = {"id": sub, "email": email, "user_metadata": metadata}
        return code

    def handle(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        bearer = request.headers.get("Authorization", "").removeprefix("Bearer ")

        if request.method == "GET" and path == "/auth/v1/user":
            if bearer not in self.tokens:
                return httpx.Response(401, json={"msg": "invalid JWT: token is expired"})
            return httpx.Response(200, json=self.tokens[bearer])

        if request.method == "POST" and path == "/auth/v1/token":
            body = json.loads(request.content)
            user = self.codes.pop(body.get("auth_code"), None)
            if user is None or not body.get("code_verifier"):
                return httpx.Response(400, json={"error_description": "invalid flow state, no valid flow state found"})
            return httpx.Response(200, json={
                "access_token": f"access-{user['id']}",
                "refresh_token": f"refresh-{user['id']}",
                "expires_in": 3600,
                "token_type": "bearer",
                "user": user,
            })

        if request.method == "POST" and path == "/auth/v1/logout":
            if bearer not in self.tokens:
                return httpx.Response(401, json={"msg": "invalid JWT"})
            self.signed_out.append(bearer)
            return httpx.Response(204)

        if request.method == "DELETE" and path.startswith("/auth/v1/admin/users/"):
            if self.fail_admin:
                return httpx.Response(500, json={"msg": "Database error deleting user"})
            self.deleted.append(path.rsplit("/", 1)[-1])
            return httpx.Response(200, json={})

        return httpx.Response(404, json={"msg": "not found"})


@pytest.fixture
def provider_stub():
    return ProviderStub()


@pytest.fixture
async def identity(provider_stub):
    client = SupabaseIdentityProvider(
        base_url="https://stub.supabase.co",
        anon_key="anon-key",
        service_role_key="service-key",
        transport=httpx.MockTransport(provider_stub.handle),
    )
    await client.open()
    yield client
    await client.close()


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------

@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    """Session for arranging and inspecting rows outside of requests."""
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory, identity):
    async def override_session():
        async with unit_of_work(session_factory) as session:
            yield session

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_identity_provider] = lambda: identity
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Data builders
# ---------------------------------------------------------------------------

@dataclass
class Actor:
    user: User
    token: str

    @property
    def id(self) -> str:
        return self.user.id

    @property
    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}


@pytest.fixture
def make_user(db, provider_stub):
    async def _make(email: str | None = None, *, super_admin: bool = False) -> Actor:
        sub = str(uuid.uuid4())
        email = email or f"{sub[:8]}@example.com"
        user = User(identifier=sub, email=email, super_admin=super_admin)
        db.add(user)
        await db.commit()
        return Actor(user=user, token=provider_stub.issue_token(sub, email))
    return _make


@pytest.fixture
def make_org(db):
    async def _make(members: dict[str, Role], org_id: str | None = None) -> Org:
        org = Org(id=org_id or f"org-{uuid.uuid4().hex[:8]}", name="Acme", contact="billing@acme.dev")
        db.add(org)
        await db.flush()
        for user_id, role in members.items():
            db.add(OrgUser(user_id=user_id, org_id=org.id, role=int(role)))
        await db.commit()
        return org
    return _make


@pytest.fixture
def make_invoice(db):
    async def _make(org_id: str, user_ids: list[str], *, paid: bool = False) -> Invoice:
        now = datetime.now(timezone.utc)
        invoice = Invoice(
            id=f"inv-{uuid.uuid4().hex[:8]}",
            paid=paid,
            price=Decimal("100.00"),
            start=now - timedelta(days=30),
            end=now,
            due=now + timedelta(days=14),
        )
        db.add(invoice)
        await db.flush()
        db.add(OrgInvoice(org_id=org_id, invoice_id=invoice.id))
        for user_id in user_ids:
            db.add(UserInvoice(user_id=user_id, invoice_id=invoice.id))
        await db.commit()
        return invoice
    return _make


@pytest.fixture
def make_report(db):
    async def _make(org_id: str, user_ids: list[str], *, rating: int = 8) -> Report:
        report = Report(id=f"rep-{uuid.uuid4().hex[:8]}", rating=rating, notes="On time.")
        db.add(report)
        await db.flush()
        db.add(OrgReport(org_id=org_id, report_id=report.id))
        for user_id in user_ids:
            db.add(UserReport(user_id=user_id, report_id=report.id))
        await db.commit()
        return report
    return _make


@pytest.fixture
def invoice_body():
    """Factory for a valid invoice payload."""
    def _body(invoice_id: str = "inv-new", **overrides) -> dict:
        body = {
            "id": invoice_id,
            "paid": False,
            "price": "250.00",
            "start": "2026-09-01T00:00:00Z",
            "end": "2026-09-30T00:00:00Z",
            "due": "2026-10-15T00:00:00Z",
        }
        body.update(overrides)
        return body
    return _body


@pytest.fixture
def row_exists(session_factory):
    """Check for a row by primary key in a fresh session."""
    async def _exists(model, *pk) -> bool:
        async with session_factory() as session:
            key = pk[0] if len(pk) == 1 else pk
            return await session.get(model, key) is not None
    return _exists
