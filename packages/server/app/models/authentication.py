"""
External identity records mapped to internal users.

Written on every OAuth sign-in and removed with the user. Requests resolve
identity through ``User.identifier``; these rows keep the subject-to-user
history for audit.
"""

from sqlmodel import Field, SQLModel

from .base import StringIDMixin, fk_column


class Authentication(StringIDMixin, SQLModel, table=True):
    __tablename__ = "Authentication"

    sub: str = Field(nullable=False, unique=True)


class UserAuthentication(SQLModel, table=True):
    __tablename__ = "UserAuthentication"

    user_id: str = Field(sa_column=fk_column("User.id", primary_key=True))
    auth_id: str = Field(sa_column=fk_column("Authentication.id", primary_key=True))
