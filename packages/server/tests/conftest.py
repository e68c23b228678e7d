"""
Shared fixtures for server tests.

Each test gets its own SQLite database file (aiosqlite) with the schema
created from the SQLModel metadata.
"""

import os
import tempfile
import uuid

# Settings are read once at import time; point them at throwaway locations first.
os.environ.setdefault("PL_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("PL_STORAGE_ROOT", tempfile.mkdtemp(prefix="pl-storage-"))
os.environ.setdefault("PL_LOG_FORMAT", "console")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel

import app.models  # noqa: F401  (populate metadata)
from app.core.database import get_session
from app.core.identity import LocalIdentityProvider
from app.core.permissions import ActingIdentity
from app.models.app_user import AppUser
from app.models.member import Member
from points_ledger_shared.schemas.common import Role


@pytest.fixture
async def engine(tmp_path):
    eng = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}")
    async with eng.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as s:
        yield s


def make_identity(role):
    return ActingIdentity(user_id=uuid.uuid4(), role=role, username=f"{role or 'anon'}-user")


@pytest.fixture
def super_admin():
    return make_identity(Role.SUPER_ADMIN)


@pytest.fixture
def editor():
    return make_identity(Role.EDITOR)


@pytest.fixture
def viewer():
    return make_identity(Role.VIEWER)


async def add_member(session, reg_no, **overrides):
    """Insert a member row directly, bypassing the service layer."""
    values = dict(
        reg_no=reg_no,
        full_name=f"Member {reg_no}",
        name_with_initials=f"M. {reg_no}",
        batch="2021",
        faculty="Science",
        whatsapp="0771234567",
        total_points=0,
    )
    values.update(overrides)
    member = Member(**values)
    session.add(member)
    await session.commit()
    return member


async def add_profile(session, email, role, password="Sup3r-Secret!"):
    """Create an identity account plus app profile; returns (profile, access token)."""
    signup = await LocalIdentityProvider(session).sign_up(email, password, isolated=False)
    profile = AppUser(
        id=signup.account.id,
        username=email.split("@")[0],
        designation="Committee",
        role=role.value if role else "viewer",
    )
    session.add(profile)
    await session.commit()
    return profile, signup.session.access_token


@pytest.fixture
async def client(session_factory):
    from app.main import app

    async def override_get_session():
        async with session_factory() as s:
            try:
                yield s
                await s.commit()
            except Exception:
                await s.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


def bearer(token):
    return {"Authorization": f"Bearer {token}"}
