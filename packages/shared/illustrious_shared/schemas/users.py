"""User schemas."""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from .common import Role
from .invoices import InvoiceRead
from .reports import ReportRead


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class UserLookupField(str, Enum):
    """Column a user can be looked up by."""
    ID = "id"
    EMAIL = "email"
    IDENTIFIER = "identifier"


class UserUpdateRequest(BaseModel):
    """Profile edits. Omitted fields are left untouched."""
    email: Optional[EmailStr] = None
    first_name: Optional[str] = Field(default=None, max_length=200)
    last_name: Optional[str] = Field(default=None, max_length=200)
    phone: Optional[str] = Field(default=None, max_length=50)
    picture: Optional[str] = None


class MemberProfile(BaseModel):
    email: EmailStr
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    picture: Optional[str] = None


class OrgUserAddRequest(BaseModel):
    """Add a (possibly managed) user to an organization."""
    org: str = Field(min_length=1)
    user: MemberProfile
    role: Role = Role.CLIENT


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class UserRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    identifier: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    picture: Optional[str] = None
    phone: Optional[str] = None
    managed: bool = False
    super_admin: bool = False


class MemberRead(BaseModel):
    user: UserRead
    role: Role


class OrgMembershipRead(BaseModel):
    id: str
    name: str
    contact: str
    role: Role


class MeRead(BaseModel):
    """Current user plus any resources requested through ``include``."""
    user: UserRead
    orgs: Optional[List[OrgMembershipRead]] = None
    invoices: Optional[List[InvoiceRead]] = None
    reports: Optional[List[ReportRead]] = None
