"""Identity provider tables: accounts and signed-out sessions."""

from datetime import datetime
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import utcnow


class IdentityAccount(SQLModel, table=True):
    __tablename__ = "identity_accounts"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, index=True)
    email: str = Field(unique=True, index=True, nullable=False)
    password_hash: str = Field(nullable=False)  # bcrypt
    created_at: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        sa_column_kwargs={"server_default": sa.func.now()},
        sa_type=sa.DateTime(timezone=True),
    )


class RevokedSession(SQLModel, table=True):
    __tablename__ = "revoked_sessions"

    jti: str = Field(primary_key=True)
    expires_at: datetime = Field(nullable=False, sa_type=sa.DateTime(timezone=True))
