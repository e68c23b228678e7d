"""
User administration: application profiles tied to identity accounts.
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import LastAdminProtection, ValidationError
from app.core.identity import IdentityProvider
from app.core.permissions import ActingIdentity, require_capability
from app.core.sanitize import sanitize_free_text, validate_password_strength
from app.models.app_user import AppUser
from app.models.member import Member
from points_ledger_shared.schemas.common import Role
from points_ledger_shared.schemas.users import UserCreateRequest, UserUpdateRequest

log = structlog.get_logger()


async def get_app_user(session: AsyncSession, user_id: uuid.UUID) -> Optional[AppUser]:
    result = await session.execute(select(AppUser).where(AppUser.id == user_id))
    return result.scalar_one_or_none()


async def get_current_app_user(
    session: AsyncSession, identity: Optional[ActingIdentity]
) -> Optional[AppUser]:
    """Profile of the acting identity, or None when signed out or unprovisioned."""
    if identity is None:
        return None
    return await get_app_user(session, identity.user_id)


async def list_app_users(session: AsyncSession) -> list[AppUser]:
    result = await session.execute(select(AppUser).order_by(AppUser.created_at.desc()))
    return list(result.scalars().all())


async def count_super_admins(session: AsyncSession) -> int:
    result = await session.execute(
        select(func.count()).select_from(AppUser).where(AppUser.role == Role.SUPER_ADMIN.value)
    )
    return int(result.scalar_one())


async def _check_linked_member(session: AsyncSession, reg_no: Optional[str]) -> None:
    if reg_no and await session.get(Member, reg_no) is None:
        raise ValidationError(f"Member {reg_no} does not exist")


async def create_user(
    session: AsyncSession,
    identity_provider: IdentityProvider,
    caller: ActingIdentity,
    req: UserCreateRequest,
) -> AppUser:
    """Provision an identity account and its profile (Super Admin only).

    The caller's role is checked before the identity provider is contacted,
    and the new account is provisioned without issuing it a session.
    """
    require_capability(caller, "can_manage_users")

    strength = validate_password_strength(req.password)
    if not strength.is_valid:
        raise ValidationError(
            "Password does not meet requirements: " + ", ".join(strength.errors),
            errors=strength.errors,
        )
    await _check_linked_member(session, req.linked_member_reg_no)

    signup = await identity_provider.sign_up(req.email, req.password, isolated=True)

    user = AppUser(
        id=signup.account.id,
        username=sanitize_free_text(req.username),
        designation=sanitize_free_text(req.designation),
        role=req.role.value,
        linked_member_reg_no=req.linked_member_reg_no,
    )
    session.add(user)
    await session.flush()

    log.info("user.created", user_id=str(user.id), role=user.role, actor=str(caller.user_id))
    return user


async def update_user(
    session: AsyncSession,
    caller: ActingIdentity,
    user_id: uuid.UUID,
    req: UserUpdateRequest,
) -> Optional[AppUser]:
    """Update role, designation, username or linked member. None if unknown."""
    require_capability(caller, "can_manage_users")

    user = await get_app_user(session, user_id)
    if user is None:
        return None

    changes = req.model_dump(exclude_unset=True)
    if (
        changes.get("role") not in (None, Role.SUPER_ADMIN)
        and user.role == Role.SUPER_ADMIN.value
        and await count_super_admins(session) <= 1
    ):
        raise LastAdminProtection(
            "Cannot demote the last Super Admin. At least one Super Admin must remain in the system."
        )
    if changes.get("linked_member_reg_no"):
        await _check_linked_member(session, changes["linked_member_reg_no"])

    for key, value in changes.items():
        if key == "role":
            value = value.value
        elif key in ("username", "designation"):
            value = sanitize_free_text(value)
        setattr(user, key, value)
    session.add(user)
    await session.flush()

    log.info("user.updated", user_id=str(user_id), fields=sorted(changes), actor=str(caller.user_id))
    return user


async def delete_user(
    session: AsyncSession, caller: ActingIdentity, user_id: uuid.UUID
) -> bool:
    """Remove the application profile only. False if the user does not exist.

    The identity account is left intact.
    """
    require_capability(caller, "can_manage_users")

    user = await get_app_user(session, user_id)
    if user is None:
        return False

    if user.role == Role.SUPER_ADMIN.value and await count_super_admins(session) <= 1:
        raise LastAdminProtection()

    await session.delete(user)
    await session.flush()
    log.info("user.deleted", user_id=str(user_id), actor=str(caller.user_id))
    return True
