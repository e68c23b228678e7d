"""
Leaderboard aggregation. Recomputed from the ledger on every call.
"""

from __future__ import annotations

import calendar
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import ValidationError
from app.models.contribution import Contribution
from app.models.member import Member
from app.services import contributions as contribution_service
from app.services import members as member_service
from points_ledger_shared.schemas.leaderboard import (
    DashboardStats,
    LeaderboardEntry,
    MonthlyPoints,
)
from points_ledger_shared.schemas.members import MemberRead


def time_period_label(year: int, month: int) -> str:
    """Zero-padded ``YYYY-MM`` label for a calendar month."""
    if not 1 <= month <= 12:
        raise ValidationError(f"Month must be between 1 and 12, got {month}")
    if not 1 <= year <= 9999:
        raise ValidationError(f"Year must be between 1 and 9999, got {year}")
    return f"{year:04d}-{month:02d}"


def month_bounds(year: int, month: int) -> tuple[datetime, datetime]:
    """First instant and end-of-day of the last day of the month (UTC)."""
    time_period_label(year, month)
    last_day = calendar.monthrange(year, month)[1]
    start = datetime(year, month, 1, tzinfo=timezone.utc)
    end = datetime(year, month, last_day, 23, 59, 59, 999999, tzinfo=timezone.utc)
    return start, end


def _rank(rows: list[tuple[Member, int]]) -> list[LeaderboardEntry]:
    return [
        LeaderboardEntry(
            rank=position,
            reg_no=member.reg_no,
            name_with_initials=member.name_with_initials,
            faculty=member.faculty,
            points=points,
        )
        for position, (member, points) in enumerate(rows, start=1)
    ]


async def all_time_leaderboard(
    session: AsyncSession, limit: Optional[int] = None
) -> list[LeaderboardEntry]:
    """Members by ``total_points`` desc, ties broken by registration number."""
    if limit is None:
        members = await member_service.list_members(session)
    else:
        members = await member_service.get_top_members(session, limit)
    return _rank([(m, m.total_points) for m in members])


async def monthly_points(session: AsyncSession, year: int, month: int) -> list[MonthlyPoints]:
    """Points per member for contributions labelled with the given month.

    Members without contributions in the period are not included.
    """
    label = time_period_label(year, month)
    result = await session.execute(
        select(Contribution.member_reg_no, Contribution.points).where(
            Contribution.time_period == label
        )
    )
    totals: dict[str, int] = {}
    for reg_no, points in result.all():
        totals[reg_no] = totals.get(reg_no, 0) + points

    ordered = sorted(totals.items(), key=lambda item: (-item[1], item[0]))
    return [MonthlyPoints(reg_no=reg_no, monthly_points=pts) for reg_no, pts in ordered]


async def monthly_leaderboard(
    session: AsyncSession, year: int, month: int
) -> list[LeaderboardEntry]:
    """Monthly points cross-joined against the full roster.

    Every member appears; those without contributions in the month have 0.
    """
    per_member = {row.reg_no: row.monthly_points for row in await monthly_points(session, year, month)}
    members = await member_service.list_members(session)
    rows = [(m, per_member.get(m.reg_no, 0)) for m in members]
    rows.sort(key=lambda row: (-row[1], row[0].reg_no))
    return _rank(rows)


async def monthly_project_count(session: AsyncSession, year: int, month: int) -> int:
    """Distinct project names among contributions added during the month."""
    start, end = month_bounds(year, month)
    result = await session.execute(
        select(func.count(func.distinct(Contribution.project_name))).where(
            Contribution.date_added >= start,
            Contribution.date_added <= end,
        )
    )
    return int(result.scalar_one() or 0)


async def dashboard_stats(session: AsyncSession, year: int, month: int) -> DashboardStats:
    # One AsyncSession cannot run statements concurrently, so these are sequential.
    top = await member_service.get_top_members(session, 3)
    total = await contribution_service.total_points_across_all_members(session)
    projects = await monthly_project_count(session, year, month)
    member_count = await member_service.count_members(session)
    return DashboardStats(
        top_members=[MemberRead.model_validate(m) for m in top],
        total_points=total,
        monthly_projects=projects,
        member_count=member_count,
    )
