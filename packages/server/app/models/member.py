"""Member model."""

from typing import Optional

from sqlalchemy import CheckConstraint
from sqlmodel import Field, SQLModel

from .base import TimestampMixin


class Member(TimestampMixin, SQLModel, table=True):
    __tablename__ = "members"
    __table_args__ = (
        CheckConstraint("total_points >= 0", name="members_total_points_non_negative"),
    )

    reg_no: str = Field(primary_key=True, nullable=False)  # immutable natural key
    photo_url: Optional[str] = None
    full_name: str = Field(nullable=False, index=True)
    name_with_initials: str = Field(nullable=False)
    my_lci_num: Optional[str] = None
    batch: str = Field(nullable=False)
    faculty: str = Field(nullable=False, index=True)
    whatsapp: str = Field(nullable=False)
    # Materialized sum of contributions.points; see services.contributions
    total_points: int = Field(default=0, nullable=False, index=True)
