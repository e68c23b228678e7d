"""
Member reports: faculty / date-range / project-count filters and CSV export.
"""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import ValidationError
from app.models.member import Member
from app.services import contributions as contribution_service
from app.services import members as member_service

REPORT_HEADERS = [
    "Reg No",
    "Name",
    "Faculty",
    "Batch",
    "Total Points",
    "Project Count",
    "WhatsApp",
]


@dataclass
class MemberReportRow:
    member: Member
    project_count: int


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def end_of_day(day: date) -> datetime:
    return datetime.combine(day, time(23, 59, 59, 999999), tzinfo=timezone.utc)


async def member_report(
    session: AsyncSession,
    *,
    faculty: Optional[str] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
    min_projects: Optional[int] = None,
) -> list[MemberReportRow]:
    """Members in ledger order with their distinct project count.

    ``start``/``end`` restrict which contributions are counted (inclusive,
    whole days); ``min_projects`` drops members below the threshold.
    """
    if start and end and start > end:
        raise ValidationError("Start date must not be after end date")
    if min_projects is not None and min_projects < 0:
        raise ValidationError("Minimum project count must not be negative")

    if faculty:
        members = await member_service.list_members_by_faculty(session, faculty)
    else:
        members = await member_service.list_members(session)

    contributions = await contribution_service.list_contributions(session)
    lower = start_of_day(start) if start else None
    upper = end_of_day(end) if end else None

    projects: dict[str, set[str]] = {}
    for contribution in contributions:
        added = contribution.date_added
        if added.tzinfo is None:
            added = added.replace(tzinfo=timezone.utc)
        if lower and added < lower:
            continue
        if upper and added > upper:
            continue
        projects.setdefault(contribution.member_reg_no, set()).add(contribution.project_name)

    rows = [
        MemberReportRow(member=m, project_count=len(projects.get(m.reg_no, ())))
        for m in members
    ]
    if min_projects:
        rows = [row for row in rows if row.project_count >= min_projects]
    return rows


def report_csv(rows: list[MemberReportRow]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(REPORT_HEADERS)
    for row in rows:
        m = row.member
        writer.writerow([
            m.reg_no,
            m.name_with_initials,
            m.faculty,
            m.batch,
            m.total_points,
            row.project_count,
            m.whatsapp,
        ])
    return buffer.getvalue()
