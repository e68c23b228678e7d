"""Bulk import contract."""

from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, Field


class ImportRowError(BaseModel):
    row: int  # spreadsheet row number (header is row 1)
    error: str
    data: Optional[Any] = None


class ImportResult(BaseModel):
    """Outcome of a bulk import: stable contract for every caller."""
    success: int = 0
    failed: int = 0
    errors: List[ImportRowError] = Field(default_factory=list)
