"""User-Organization membership (join table)."""

from sqlmodel import Field, SQLModel

from illustrious_shared.schemas.common import Role

from .base import fk_column


class OrgUser(SQLModel, table=True):
    __tablename__ = "OrgUser"

    user_id: str = Field(sa_column=fk_column("User.id", primary_key=True))
    org_id: str = Field(sa_column=fk_column("Org.id", primary_key=True))
    role: int = Field(nullable=False, default=int(Role.CLIENT))
