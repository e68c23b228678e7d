"""
User Management API endpoints.

GET    /api/v1/users            — List application users
POST   /api/v1/users            — Create a user (Super Admin)
GET    /api/v1/users/{userId}   — Get a user profile
PATCH  /api/v1/users/{userId}   — Update a user (Super Admin)
DELETE /api/v1/users/{userId}   — Delete a user profile (Super Admin)
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import get_acting_identity
from app.core.database import get_session
from app.core.identity import LocalIdentityProvider
from app.core.permissions import ActingIdentity, require_capability
from app.services import users as user_service
from points_ledger_shared.schemas.users import (
    UserCreateRequest,
    UserListResponse,
    UserResponse,
    UserUpdateRequest,
)

router = APIRouter()


@router.get("", response_model=UserListResponse)
async def list_users(
    identity: ActingIdentity = Depends(get_acting_identity),
    session: AsyncSession = Depends(get_session),
):
    """List all application users (Super Admin only)."""
    require_capability(identity, "can_manage_users")
    users = await user_service.list_app_users(session)
    return UserListResponse(data=[UserResponse.model_validate(u) for u in users])


@router.post("", response_model=UserResponse, status_code=201)
async def create_user(
    body: UserCreateRequest,
    identity: ActingIdentity = Depends(get_acting_identity),
    session: AsyncSession = Depends(get_session),
):
    """Provision an account and profile. The caller's own session is untouched."""
    user = await user_service.create_user(
        session, LocalIdentityProvider(session), identity, body
    )
    return UserResponse.model_validate(user)


@router.get("/{userId}", response_model=UserResponse)
async def get_user(
    userId: uuid.UUID,
    identity: ActingIdentity = Depends(get_acting_identity),
    session: AsyncSession = Depends(get_session),
):
    if userId != identity.user_id:
        require_capability(identity, "can_manage_users")
    user = await user_service.get_app_user(session, userId)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return UserResponse.model_validate(user)


@router.patch("/{userId}", response_model=UserResponse)
async def update_user(
    userId: uuid.UUID,
    body: UserUpdateRequest,
    identity: ActingIdentity = Depends(get_acting_identity),
    session: AsyncSession = Depends(get_session),
):
    user = await user_service.update_user(session, identity, userId, body)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return UserResponse.model_validate(user)


@router.delete("/{userId}", status_code=204)
async def delete_user(
    userId: uuid.UUID,
    identity: ActingIdentity = Depends(get_acting_identity),
    session: AsyncSession = Depends(get_session),
):
    """Remove the application profile. The identity account is left intact."""
    if not await user_service.delete_user(session, identity, userId):
        raise HTTPException(status_code=404, detail="User not found")
