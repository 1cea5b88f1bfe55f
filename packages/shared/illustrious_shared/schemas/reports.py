"""Report schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ReportCreate(BaseModel):
    id: str = Field(min_length=1)
    rating: int = Field(ge=0, le=10)
    notes: Optional[str] = None


class ReportSubmit(BaseModel):
    client: str = Field(min_length=1)
    org: str = Field(min_length=1)
    report: ReportCreate


class ReportUpdate(BaseModel):
    rating: Optional[int] = Field(default=None, ge=0, le=10)
    notes: Optional[str] = None


class ReportRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    rating: int
    notes: Optional[str] = None
    created_at: datetime
