"""Report model."""

from typing import Optional

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import CreatedAtMixin, StringIDMixin


class Report(StringIDMixin, CreatedAtMixin, SQLModel, table=True):
    __tablename__ = "Report"

    rating: int = Field(nullable=False)
    notes: Optional[str] = Field(default=None, sa_type=sa.Text)
