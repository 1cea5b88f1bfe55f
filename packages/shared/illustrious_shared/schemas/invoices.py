"""Invoice schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class InvoiceBase(BaseModel):
    paid: bool = False
    price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    start: datetime
    end: datetime
    due: datetime


class InvoiceCreate(InvoiceBase):
    id: str = Field(min_length=1)

    @model_validator(mode="after")
    def _check_period(self):
        if self.end < self.start:
            raise ValueError("Billing period end must not precede its start")
        return self


class InvoiceSubmit(BaseModel):
    """POST /invoice body: the client to bill, the owning org, the invoice."""
    client: str = Field(min_length=1)
    org: str = Field(min_length=1)
    invoice: InvoiceCreate


class InvoiceUpdate(BaseModel):
    paid: Optional[bool] = None
    price: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    due: Optional[datetime] = None


class InvoiceRead(InvoiceBase):
    model_config = ConfigDict(from_attributes=True)

    id: str
    created_at: datetime
    updated_at: Optional[datetime] = None
