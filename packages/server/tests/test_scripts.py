"""
Tests for the super-admin bootstrap script.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

import pytest

from app.models import User
from app.scripts import create_super_admin as script


@pytest.fixture
def script_session(session_factory, monkeypatch):
    @asynccontextmanager
    async def _context():
        async with session_factory() as session:
            yield session
            await session.commit()

    monkeypatch.setattr(script, "get_session_context", _context)


class TestCreateSuperAdmin:

    @pytest.mark.asyncio
    async def test_creates_managed_super_admin(self, script_session, session_factory):
        user = await script.create_super_admin("ops@acme.dev")
        async with session_factory() as session:
            stored = await session.get(User, user.id)
        assert stored.super_admin is True
        assert stored.managed is True
        assert stored.identifier.startswith("managed:")

    @pytest.mark.asyncio
    async def test_promotes_existing_user(self, script_session, session_factory, make_user):
        actor = await make_user("lead@acme.dev")
        user = await script.create_super_admin("lead@acme.dev")
        assert user.id == actor.id
        async with session_factory() as session:
            stored = await session.get(User, actor.id)
        assert stored.super_admin is True
        assert stored.identifier == actor.user.identifier

    @pytest.mark.asyncio
    async def test_links_identifier(self, script_session, session_factory):
        user = await script.create_super_admin("root@acme.dev", identifier="sub-root")
        async with session_factory() as session:
            stored = await session.get(User, user.id)
        assert stored.identifier == "sub-root"
        assert stored.managed is False
