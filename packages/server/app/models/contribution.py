"""Contribution model."""

from datetime import datetime
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlalchemy import CheckConstraint
from sqlmodel import Field, SQLModel

from .base import utcnow


class Contribution(SQLModel, table=True):
    __tablename__ = "contributions"
    __table_args__ = (
        CheckConstraint("points >= 0", name="contributions_points_non_negative"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, index=True)
    member_reg_no: str = Field(foreign_key="members.reg_no", nullable=False, index=True)
    project_name: str = Field(nullable=False)
    time_period: str = Field(nullable=False, index=True)  # YYYY-MM
    position: str = Field(nullable=False)
    points: int = Field(nullable=False)
    avenue: Optional[str] = None
    date_added: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        index=True,
        sa_column_kwargs={"server_default": sa.func.now()},
        sa_type=sa.DateTime(timezone=True),
    )
    added_by: Optional[uuid.UUID] = Field(default=None)  # null when the actor is unknown
