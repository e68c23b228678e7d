"""Leaderboard and dashboard schemas."""

from __future__ import annotations

from typing import List

from pydantic import BaseModel

from .members import MemberRead


class LeaderboardEntry(BaseModel):
    rank: int
    reg_no: str
    name_with_initials: str
    faculty: str
    points: int


class LeaderboardResponse(BaseModel):
    period: str  # "all-time" or YYYY-MM
    data: List[LeaderboardEntry]


class MonthlyPoints(BaseModel):
    reg_no: str
    monthly_points: int


class MonthlyProjectCount(BaseModel):
    period: str
    project_count: int


class DashboardStats(BaseModel):
    top_members: List[MemberRead]
    total_points: int
    monthly_projects: int
    member_count: int
