"""Base helpers for SQLModel tables."""

import uuid
from datetime import datetime, timezone

import sqlalchemy as sa
from sqlmodel import Field, SQLModel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


def fk_column(target: str, *, primary_key: bool = False, nullable: bool = False) -> sa.Column:
    """A string foreign key with restrict-on-delete / cascade-on-update."""
    return sa.Column(
        sa.String,
        sa.ForeignKey(target, ondelete="RESTRICT", onupdate="CASCADE"),
        primary_key=primary_key,
        nullable=nullable,
    )


class CreatedAtMixin(SQLModel):
    created_at: datetime = Field(
        default_factory=_utcnow,
        nullable=False,
        sa_column_kwargs={"server_default": sa.func.now()},
        sa_type=sa.DateTime(timezone=True),
    )


class StringIDMixin(SQLModel):
    id: str = Field(
        default_factory=new_id,
        primary_key=True,
        nullable=False,
    )
