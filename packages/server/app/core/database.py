"""
Database connection and session management.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Optional

from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlmodel import SQLModel

from app.core.config import get_settings

settings = get_settings()

engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    future=True,
)

async_session_factory = sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

RLS_INFO_KEY = "rls_identity"
RLS_DIALECTS = ("postgresql",)

_SET_RLS_IDENTITY = text(
    "SELECT set_config('app.current_user_id', :user_id, true), "
    "set_config('app.current_user_role', :role, true)"
)


async def init_db():
    """Create all tables (development only; production uses migrations)."""
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def set_rls_identity(
    session: AsyncSession, user_id: Optional[str], role: Optional[str]
) -> None:
    """Record the acting identity for the store's row-level security policies.

    A transaction already open on the session gets the setting immediately;
    later transactions pick it up when they begin, so it survives
    intermediate commits (bulk import commits row by row).
    """
    identity = (user_id or "", role or "")
    session.info[RLS_INFO_KEY] = identity
    if session.in_transaction() and session.bind.dialect.name in RLS_DIALECTS:
        await session.execute(
            _SET_RLS_IDENTITY, {"user_id": identity[0], "role": identity[1]}
        )


@event.listens_for(Session, "after_begin")
def _apply_rls_identity(session, transaction, connection):
    identity = session.info.get(RLS_INFO_KEY)
    # Only PostgreSQL enforces RLS; SQLite (tests, local) has no set_config.
    if identity is None or connection.dialect.name not in RLS_DIALECTS:
        return
    user_id, role = identity
    connection.execute(_SET_RLS_IDENTITY, {"user_id": user_id, "role": role})


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for database sessions."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


@asynccontextmanager
async def get_session_context():
    """Context manager for use outside of FastAPI request lifecycle."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
