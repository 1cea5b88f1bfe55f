"""
Tests for engine configuration and the request unit of work.
"""

from __future__ import annotations

import pytest
from sqlmodel import select

from app.core import database
from app.core.config import Settings
from app.core.database import engine_options, unit_of_work
from app.models import User


class TestEngineOptions:

    def test_sqlite_keeps_default_pool(self):
        options = engine_options(Settings(database_url="sqlite+aiosqlite://", debug=True))
        assert options == {"echo": True}

    def test_postgres_pool_settings(self):
        config = Settings(
            database_url="postgresql+asyncpg://app:secret@db:5432/illustrious",
            database_pool_size=20,
            database_max_overflow=0,
        )
        options = engine_options(config)
        assert options["pool_pre_ping"] is True
        assert options["pool_size"] == 20
        assert options["max_overflow"] == 0
        assert options["echo"] is False


class TestUnitOfWork:

    @pytest.mark.asyncio
    async def test_commits_on_clean_exit(self, session_factory):
        async with unit_of_work(session_factory) as session:
            session.add(User(identifier="sub-commit", email="commit@acme.dev"))

        async with session_factory() as session:
            assert (await session.execute(select(User).where(User.identifier == "sub-commit"))).scalars().first() is not None

    @pytest.mark.asyncio
    async def test_rolls_back_on_error(self, session_factory):
        with pytest.raises(RuntimeError):
            async with unit_of_work(session_factory) as session:
                session.add(User(identifier="sub-rollback", email="rollback@acme.dev"))
                await session.flush()
                raise RuntimeError("handler failed")

        async with session_factory() as session:
            assert (await session.execute(select(User).where(User.identifier == "sub-rollback"))).scalars().first() is None

    @pytest.mark.asyncio
    async def test_session_context_uses_configured_factory(self, session_factory, monkeypatch):
        monkeypatch.setattr(database, "async_session_factory", session_factory)
        async with database.get_session_context() as session:
            session.add(User(identifier="sub-script", email="script@acme.dev"))

        async with session_factory() as session:
            assert (await session.execute(select(User).where(User.identifier == "sub-script"))).scalars().first() is not None
