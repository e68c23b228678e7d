"""
API v1 Router
"""

from fastapi import APIRouter
from . import contributions, imports, leaderboard, members, reports, users

router = APIRouter()

router.include_router(members.router, prefix="/members", tags=["Members"])
router.include_router(contributions.router, prefix="/contributions", tags=["Contributions"])
router.include_router(leaderboard.router, prefix="/leaderboard", tags=["Leaderboard"])
router.include_router(imports.router, prefix="/imports", tags=["Imports"])
router.include_router(users.router, prefix="/users", tags=["Users"])
router.include_router(reports.router, prefix="/reports", tags=["Reports"])


@router.get("/", tags=["API"])
async def api_root():
    """API root — returns version and available endpoints."""
    return {
        "api": "v1",
        "version": "0.1.0",
        "endpoints": [
            "/members",
            "/contributions",
            "/leaderboard",
            "/imports",
            "/users",
            "/reports",
        ],
    }
