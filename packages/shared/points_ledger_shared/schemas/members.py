"""Member schemas shared by the API and the bulk import pipeline."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class MemberBase(BaseModel):
    full_name: str = Field(min_length=1, max_length=200)
    name_with_initials: str = Field(min_length=1, max_length=100)
    my_lci_num: Optional[str] = None
    batch: str = Field(min_length=1, max_length=50)
    faculty: str = Field(min_length=1, max_length=200)
    whatsapp: str = Field(min_length=1, max_length=50)
    photo_url: Optional[str] = None


class MemberCreate(MemberBase):
    reg_no: str = Field(min_length=1, max_length=50)
    total_points: int = Field(default=0, ge=0)


class MemberUpdate(BaseModel):
    """Partial profile edit. The registration number is not an update target."""
    model_config = ConfigDict(extra="forbid")

    full_name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    name_with_initials: Optional[str] = Field(default=None, min_length=1, max_length=100)
    my_lci_num: Optional[str] = None
    batch: Optional[str] = Field(default=None, min_length=1, max_length=50)
    faculty: Optional[str] = Field(default=None, min_length=1, max_length=200)
    whatsapp: Optional[str] = Field(default=None, min_length=1, max_length=50)
    photo_url: Optional[str] = None

    @field_validator(
        "full_name", "name_with_initials", "batch", "faculty", "whatsapp"
    )
    @classmethod
    def reject_null(cls, value: Optional[str]) -> str:
        # Optional means "may be omitted"; these columns cannot be cleared.
        if value is None:
            raise ValueError("field cannot be null")
        return value


class MemberRead(MemberBase):
    model_config = ConfigDict(from_attributes=True)

    reg_no: str
    total_points: int
    created_at: datetime
    updated_at: datetime


class MemberListResponse(BaseModel):
    data: List[MemberRead]


class PhotoUploadResponse(BaseModel):
    photo_url: str
