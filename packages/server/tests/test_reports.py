"""
Tests for member reports and their CSV export.
"""

from datetime import date, datetime, timezone

import pytest

from app.core.errors import ValidationError
from app.models.contribution import Contribution
from app.services import reports

from conftest import add_member


async def _seed(session):
    await add_member(session, "S/2021/001", faculty="Science", total_points=30)
    await add_member(session, "S/2021/002", faculty="Arts", total_points=10)
    for reg_no, project, day in [
        ("S/2021/001", "Career Fair", 5),
        ("S/2021/001", "Tree Planting", 20),
        ("S/2021/001", "Career Fair", 21),
        ("S/2021/002", "Career Fair", 6),
    ]:
        session.add(Contribution(
            member_reg_no=reg_no,
            project_name=project,
            time_period="2024-03",
            position="Member",
            points=5,
            date_added=datetime(2024, 3, day, 9, tzinfo=timezone.utc),
        ))
    await session.commit()


class TestMemberReport:

    async def test_counts_distinct_projects(self, session):
        await _seed(session)
        rows = await reports.member_report(session)
        assert [(r.member.reg_no, r.project_count) for r in rows] == [
            ("S/2021/001", 2),
            ("S/2021/002", 1),
        ]

    async def test_faculty_and_min_projects(self, session):
        await _seed(session)
        assert [r.member.reg_no for r in await reports.member_report(session, faculty="Arts")] == ["S/2021/002"]
        assert [r.member.reg_no for r in await reports.member_report(session, min_projects=2)] == ["S/2021/001"]

    async def test_date_range_limits_counted_projects(self, session):
        await _seed(session)
        rows = await reports.member_report(session, start=date(2024, 3, 1), end=date(2024, 3, 10))
        assert {r.member.reg_no: r.project_count for r in rows} == {"S/2021/001": 1, "S/2021/002": 1}

    async def test_inverted_range_rejected(self, session):
        with pytest.raises(ValidationError):
            await reports.member_report(session, start=date(2024, 3, 10), end=date(2024, 3, 1))

    async def test_csv_export(self, session):
        await _seed(session)
        lines = reports.report_csv(await reports.member_report(session)).splitlines()
        assert lines[0] == ",".join(reports.REPORT_HEADERS)
        assert lines[1].startswith("S/2021/001,M. S/2021/001,Science,2021,30,2,")
