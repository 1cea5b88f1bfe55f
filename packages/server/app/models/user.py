"""User model."""

from typing import Optional

from sqlmodel import Field, SQLModel

from .base import StringIDMixin


class User(StringIDMixin, SQLModel, table=True):
    __tablename__ = "User"

    # Provider subject, or a placeholder for managed users who never signed in
    identifier: str = Field(nullable=False, index=True)
    email: Optional[str] = Field(default=None, unique=True)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    picture: Optional[str] = None
    phone: Optional[str] = None
    managed: bool = Field(default=False, nullable=False)
    super_admin: bool = Field(default=False, nullable=False)
