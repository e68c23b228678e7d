"""
Member API endpoints.

GET    /api/v1/members                       — List (?q= search, ?faculty= filter)
GET    /api/v1/members/top                   — Top members by points
POST   /api/v1/members                       — Register a member (Editor)
POST   /api/v1/members/photos                — Upload a member photo (Editor)
GET    /api/v1/members/{regNo}               — Member profile
PATCH  /api/v1/members/{regNo}               — Edit profile (Editor)
GET    /api/v1/members/{regNo}/contributions — Member's contributions
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import get_acting_identity
from app.core.database import get_session
from app.core.permissions import ActingIdentity
from app.core.storage import ObjectStore, get_object_store
from app.services import contributions as contribution_service
from app.services import members as member_service
from points_ledger_shared.schemas.contributions import ContributionListResponse, ContributionRead
from points_ledger_shared.schemas.members import (
    MemberCreate,
    MemberListResponse,
    MemberRead,
    MemberUpdate,
    PhotoUploadResponse,
)

router = APIRouter()


@router.get("", response_model=MemberListResponse)
async def list_members(
    q: Optional[str] = Query(default=None, description="Search registration number or name"),
    faculty: Optional[str] = None,
    identity: ActingIdentity = Depends(get_acting_identity),
    session: AsyncSession = Depends(get_session),
):
    if q is not None:
        members = await member_service.search_members(session, q)
    elif faculty:
        members = await member_service.list_members_by_faculty(session, faculty)
    else:
        members = await member_service.list_members(session)
    return MemberListResponse(data=[MemberRead.model_validate(m) for m in members])


@router.get("/top", response_model=MemberListResponse)
async def top_members(
    limit: int = Query(default=3, ge=1, le=100),
    identity: ActingIdentity = Depends(get_acting_identity),
    session: AsyncSession = Depends(get_session),
):
    members = await member_service.get_top_members(session, limit)
    return MemberListResponse(data=[MemberRead.model_validate(m) for m in members])


@router.post("", response_model=MemberRead, status_code=201)
async def create_member(
    body: MemberCreate,
    identity: ActingIdentity = Depends(get_acting_identity),
    session: AsyncSession = Depends(get_session),
):
    member = await member_service.create_member(session, body, identity)
    return MemberRead.model_validate(member)


@router.post("/photos", response_model=PhotoUploadResponse, status_code=201)
async def upload_photo(
    file: UploadFile = File(...),
    identity: ActingIdentity = Depends(get_acting_identity),
    store: ObjectStore = Depends(get_object_store),
):
    content = await file.read()
    url = await member_service.upload_member_photo(
        store, file.filename or "", content, identity, file.content_type
    )
    return PhotoUploadResponse(photo_url=url)


@router.get("/{regNo:path}/contributions", response_model=ContributionListResponse)
async def member_contributions(
    regNo: str,
    identity: ActingIdentity = Depends(get_acting_identity),
    session: AsyncSession = Depends(get_session),
):
    if await member_service.get_member(session, regNo) is None:
        raise HTTPException(status_code=404, detail="Member not found")
    items = await contribution_service.list_contributions_for_member(session, regNo)
    return ContributionListResponse(data=[ContributionRead.model_validate(c) for c in items])


@router.get("/{regNo:path}", response_model=MemberRead)
async def get_member(
    regNo: str,
    identity: ActingIdentity = Depends(get_acting_identity),
    session: AsyncSession = Depends(get_session),
):
    member = await member_service.get_member(session, regNo)
    if member is None:
        raise HTTPException(status_code=404, detail="Member not found")
    return MemberRead.model_validate(member)


@router.patch("/{regNo:path}", response_model=MemberRead)
async def update_member(
    regNo: str,
    body: MemberUpdate,
    identity: ActingIdentity = Depends(get_acting_identity),
    session: AsyncSession = Depends(get_session),
):
    member = await member_service.update_member(session, regNo, body, identity)
    if member is None:
        raise HTTPException(status_code=404, detail="Member not found")
    return MemberRead.model_validate(member)
