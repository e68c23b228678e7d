"""
Member report endpoints.

GET /api/v1/reports/members      — Filtered member report (JSON)
GET /api/v1/reports/members.csv  — Same report as CSV
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import get_acting_identity
from app.core.database import get_session
from app.core.permissions import ActingIdentity
from app.services import reports as report_service

router = APIRouter()


class MemberReportEntry(BaseModel):
    reg_no: str
    name_with_initials: str
    faculty: str
    batch: str
    total_points: int
    project_count: int
    whatsapp: str


class MemberReportResponse(BaseModel):
    data: List[MemberReportEntry]


class ReportFilters:
    def __init__(
        self,
        faculty: Optional[str] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
        min_projects: Optional[int] = Query(default=None, ge=0),
    ):
        self.faculty = faculty
        self.start = start
        self.end = end
        self.min_projects = min_projects


async def _rows(filters: ReportFilters, session: AsyncSession):
    return await report_service.member_report(
        session,
        faculty=filters.faculty,
        start=filters.start,
        end=filters.end,
        min_projects=filters.min_projects,
    )


@router.get("/members", response_model=MemberReportResponse)
async def member_report(
    filters: ReportFilters = Depends(),
    identity: ActingIdentity = Depends(get_acting_identity),
    session: AsyncSession = Depends(get_session),
):
    rows = await _rows(filters, session)
    return MemberReportResponse(
        data=[
            MemberReportEntry(
                reg_no=row.member.reg_no,
                name_with_initials=row.member.name_with_initials,
                faculty=row.member.faculty,
                batch=row.member.batch,
                total_points=row.member.total_points,
                project_count=row.project_count,
                whatsapp=row.member.whatsapp,
            )
            for row in rows
        ]
    )


@router.get("/members.csv")
async def member_report_csv(
    filters: ReportFilters = Depends(),
    identity: ActingIdentity = Depends(get_acting_identity),
    session: AsyncSession = Depends(get_session),
):
    rows = await _rows(filters, session)
    filename = f"member-report-{datetime.now(timezone.utc).date().isoformat()}.csv"
    return Response(
        content=report_service.report_csv(rows),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
