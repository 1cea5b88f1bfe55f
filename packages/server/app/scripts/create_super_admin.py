"""
Script to create or promote a super-admin user.

Usage:
    python -m app.scripts.create_super_admin --email ops@example.com --identifier <provider-subject>

When a user with the email exists it is promoted; otherwise one is created.
"""

import argparse
import asyncio
from typing import Optional

import structlog
from sqlmodel import select

from app.core.config import get_settings
from app.core.database import get_session_context
from app.core.logging import configure_logging
from app.models.base import new_id
from app.models.user import User
from app.services.users import MANAGED_IDENTIFIER_PREFIX

log = structlog.get_logger()


async def create_super_admin(email: str, identifier: Optional[str] = None) -> User:
    async with get_session_context() as session:
        result = await session.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()

        if user is None:
            user = User(
                email=email,
                identifier=identifier or f"{MANAGED_IDENTIFIER_PREFIX}{new_id()}",
                managed=identifier is None,
                super_admin=True,
            )
            session.add(user)
            log.info("super_admin.created", email=email)
        else:
            user.super_admin = True
            if identifier:
                user.identifier = identifier
                user.managed = False
            session.add(user)
            log.info("super_admin.promoted", email=email, user_id=user.id)

        await session.flush()
        return user


def main() -> None:
    parser = argparse.ArgumentParser(description="Create or promote a super-admin user.")
    parser.add_argument("--email", required=True, help="Email address for the user")
    parser.add_argument(
        "--identifier",
        default=None,
        help="Identity provider subject (omit to link on first sign-in by email)",
    )
    args = parser.parse_args()

    settings = get_settings()
    configure_logging(settings.log_level, "console")
    user = asyncio.run(create_super_admin(args.email, args.identifier))
    log.info("super_admin.done", user_id=user.id)


if __name__ == "__main__":
    main()
