"""Organization model."""

from sqlmodel import Field, SQLModel

from .base import StringIDMixin


class Org(StringIDMixin, SQLModel, table=True):
    __tablename__ = "Org"

    name: str = Field(nullable=False)
    contact: str = Field(nullable=False)
