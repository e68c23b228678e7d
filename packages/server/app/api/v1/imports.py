"""
Bulk member import endpoints.

GET  /api/v1/imports/members/template — Download the example workbook
POST /api/v1/imports/members          — Upload a workbook (Editor)
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import get_acting_identity
from app.core.database import get_session
from app.core.permissions import ActingIdentity
from app.services import bulk_import
from points_ledger_shared.schemas.imports import ImportResult

router = APIRouter()

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@router.get("/members/template")
async def download_template(identity: ActingIdentity = Depends(get_acting_identity)):
    return Response(
        content=bulk_import.build_import_template(),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": 'attachment; filename="member_import_template.xlsx"'},
    )


@router.post("/members", response_model=ImportResult)
async def import_members(
    file: UploadFile = File(...),
    identity: ActingIdentity = Depends(get_acting_identity),
    session: AsyncSession = Depends(get_session),
):
    """Admit new members from a workbook. Per-row failures are reported, not raised."""
    content = await file.read()
    return await bulk_import.import_members_from_workbook(session, content, identity)
