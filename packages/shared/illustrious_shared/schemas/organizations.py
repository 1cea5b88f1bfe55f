"""
Organization schemas.

Covers: Org create/update request, Org read, org details returned with
``include=invoices,reports,users``.
"""

from __future__ import annotations

import uuid
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from .invoices import InvoiceRead
from .reports import ReportRead
from .users import MemberRead

ORG_INCLUDES = ("invoices", "reports", "users")


class OrgCreateRequest(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), min_length=1)
    name: str = Field(min_length=1, max_length=200)
    contact: EmailStr


class OrgUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    contact: Optional[EmailStr] = None


class OrgRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    contact: str


class OrgDetails(BaseModel):
    org: OrgRead
    invoices: Optional[List[InvoiceRead]] = None
    reports: Optional[List[ReportRead]] = None
    users: Optional[List[MemberRead]] = None
