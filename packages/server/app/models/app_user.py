"""Application user profile (1:1 with an identity account)."""

from datetime import datetime
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import utcnow


class AppUser(SQLModel, table=True):
    __tablename__ = "app_users"

    id: uuid.UUID = Field(primary_key=True, nullable=False)  # identity account id
    username: str = Field(nullable=False)
    designation: str = Field(nullable=False)
    role: str = Field(nullable=False, default="viewer", index=True)  # super_admin | editor | viewer
    linked_member_reg_no: Optional[str] = Field(default=None, foreign_key="members.reg_no")
    created_at: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        sa_column_kwargs={"server_default": sa.func.now()},
        sa_type=sa.DateTime(timezone=True),
    )
