"""
Leaderboard API endpoints.

GET /api/v1/leaderboard                              — All-time ranking
GET /api/v1/leaderboard/monthly/{year}/{month}       — Monthly ranking (full roster)
GET /api/v1/leaderboard/monthly/{year}/{month}/projects — Distinct projects that month
GET /api/v1/leaderboard/dashboard                    — Dashboard statistics
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import get_acting_identity
from app.core.database import get_session
from app.core.permissions import ActingIdentity
from app.services import leaderboard as leaderboard_service
from points_ledger_shared.schemas.leaderboard import (
    DashboardStats,
    LeaderboardResponse,
    MonthlyProjectCount,
)

router = APIRouter()


@router.get("", response_model=LeaderboardResponse)
async def all_time(
    limit: Optional[int] = Query(default=None, ge=1, le=1000),
    identity: ActingIdentity = Depends(get_acting_identity),
    session: AsyncSession = Depends(get_session),
):
    entries = await leaderboard_service.all_time_leaderboard(session, limit)
    return LeaderboardResponse(period="all-time", data=entries)


@router.get("/dashboard", response_model=DashboardStats)
async def dashboard(
    identity: ActingIdentity = Depends(get_acting_identity),
    session: AsyncSession = Depends(get_session),
):
    now = datetime.now(timezone.utc)
    return await leaderboard_service.dashboard_stats(session, now.year, now.month)


@router.get("/monthly/{year}/{month}", response_model=LeaderboardResponse)
async def monthly(
    year: int,
    month: int,
    identity: ActingIdentity = Depends(get_acting_identity),
    session: AsyncSession = Depends(get_session),
):
    entries = await leaderboard_service.monthly_leaderboard(session, year, month)
    return LeaderboardResponse(
        period=leaderboard_service.time_period_label(year, month), data=entries
    )


@router.get("/monthly/{year}/{month}/projects", response_model=MonthlyProjectCount)
async def monthly_projects(
    year: int,
    month: int,
    identity: ActingIdentity = Depends(get_acting_identity),
    session: AsyncSession = Depends(get_session),
):
    count = await leaderboard_service.monthly_project_count(session, year, month)
    return MonthlyProjectCount(
        period=leaderboard_service.time_period_label(year, month), project_count=count
    )
