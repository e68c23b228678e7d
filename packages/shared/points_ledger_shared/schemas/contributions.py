"""Contribution schemas."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic import UUID4

from .common import TIME_PERIOD_PATTERN


class ContributionCreate(BaseModel):
    member_reg_no: str = Field(min_length=1)
    project_name: str = Field(min_length=1, max_length=200)
    time_period: str = Field(pattern=TIME_PERIOD_PATTERN)
    position: str = Field(min_length=1, max_length=100)
    points: int = Field(ge=0)
    avenue: Optional[str] = None


class ContributionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID4
    member_reg_no: str
    project_name: str
    time_period: str
    position: str
    points: int
    avenue: Optional[str] = None
    date_added: datetime
    added_by: Optional[UUID4] = None


class ContributionListResponse(BaseModel):
    data: List[ContributionRead]


class TotalPointsResponse(BaseModel):
    total_points: int


class MemberDrift(BaseModel):
    """A member whose stored counter disagrees with its contribution sum."""
    reg_no: str
    stored: int
    actual: int


class ReconcileResponse(BaseModel):
    applied: bool
    drift: List[MemberDrift]
