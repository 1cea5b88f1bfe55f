"""Invoice model."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import CreatedAtMixin, StringIDMixin, _utcnow


class Invoice(StringIDMixin, CreatedAtMixin, SQLModel, table=True):
    __tablename__ = "Invoice"

    paid: bool = Field(default=False, nullable=False)
    price: Decimal = Field(sa_type=sa.Numeric(10, 2), nullable=False)
    start: datetime = Field(sa_type=sa.DateTime(timezone=True), nullable=False)
    end: datetime = Field(sa_type=sa.DateTime(timezone=True), nullable=False)
    due: datetime = Field(sa_type=sa.DateTime(timezone=True), nullable=False)
    updated_at: Optional[datetime] = Field(
        default=None,
        sa_column_kwargs={"onupdate": _utcnow},
        sa_type=sa.DateTime(timezone=True),
    )
