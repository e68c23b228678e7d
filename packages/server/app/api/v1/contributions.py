"""
Contribution API endpoints.

GET    /api/v1/contributions                 — List (?start=&end= date range)
POST   /api/v1/contributions                 — Record a contribution (Editor)
GET    /api/v1/contributions/total-points    — Sum of all contribution points
POST   /api/v1/contributions/reconcile       — Detect/repair member total drift
DELETE /api/v1/contributions/{contributionId} — Delete a contribution (Editor)
"""

from __future__ import annotations

import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import get_acting_identity
from app.core.database import get_session
from app.core.permissions import ActingIdentity
from app.services import contributions as contribution_service
from app.services.reports import end_of_day, start_of_day
from points_ledger_shared.schemas.contributions import (
    ContributionCreate,
    ContributionListResponse,
    ContributionRead,
    ReconcileResponse,
    TotalPointsResponse,
)

router = APIRouter()


@router.get("", response_model=ContributionListResponse)
async def list_contributions(
    start: Optional[date] = None,
    end: Optional[date] = None,
    identity: ActingIdentity = Depends(get_acting_identity),
    session: AsyncSession = Depends(get_session),
):
    if start or end:
        items = await contribution_service.list_contributions_between(
            session,
            start_of_day(start or date.min),
            end_of_day(end or date.max),
        )
    else:
        items = await contribution_service.list_contributions(session)
    return ContributionListResponse(data=[ContributionRead.model_validate(c) for c in items])


@router.post("", response_model=ContributionRead, status_code=201)
async def create_contribution(
    body: ContributionCreate,
    identity: ActingIdentity = Depends(get_acting_identity),
    session: AsyncSession = Depends(get_session),
):
    contribution = await contribution_service.create_contribution(session, body, identity)
    return ContributionRead.model_validate(contribution)


@router.get("/total-points", response_model=TotalPointsResponse)
async def total_points(
    identity: ActingIdentity = Depends(get_acting_identity),
    session: AsyncSession = Depends(get_session),
):
    total = await contribution_service.total_points_across_all_members(session)
    return TotalPointsResponse(total_points=total)


@router.post("/reconcile", response_model=ReconcileResponse)
async def reconcile(
    apply: bool = Query(default=False, description="Rewrite drifting member totals"),
    identity: ActingIdentity = Depends(get_acting_identity),
    session: AsyncSession = Depends(get_session),
):
    drift = await contribution_service.reconcile_member_totals(session, identity, apply=apply)
    return ReconcileResponse(applied=apply, drift=drift)


@router.delete("/{contributionId}", status_code=204)
async def delete_contribution(
    contributionId: uuid.UUID,
    identity: ActingIdentity = Depends(get_acting_identity),
    session: AsyncSession = Depends(get_session),
):
    if not await contribution_service.delete_contribution(session, contributionId, identity):
        raise HTTPException(status_code=404, detail="Contribution not found")
