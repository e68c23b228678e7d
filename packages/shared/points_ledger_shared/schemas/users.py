"""User management schemas."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, UUID4, field_validator

from .common import Role


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class UserCreateRequest(BaseModel):
    """Provision an identity account and its application profile."""
    email: EmailStr
    password: str = Field(min_length=1)
    username: str = Field(min_length=1, max_length=100)
    designation: str = Field(min_length=1, max_length=100)
    role: Role = Role.VIEWER
    linked_member_reg_no: Optional[str] = None


class UserUpdateRequest(BaseModel):
    """Every field is independently mutable."""
    username: Optional[str] = Field(default=None, min_length=1, max_length=100)
    designation: Optional[str] = Field(default=None, min_length=1, max_length=100)
    role: Optional[Role] = None
    linked_member_reg_no: Optional[str] = None

    @field_validator("username", "designation", "role")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("field cannot be null")
        return value


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID4
    username: str
    designation: str
    role: Role
    linked_member_reg_no: Optional[str] = None
    created_at: datetime


class UserListResponse(BaseModel):
    data: List[UserResponse]


class CapabilitiesResponse(BaseModel):
    role: Optional[Role] = None
    can_edit: bool
    can_manage_users: bool
    is_super_admin: bool
    is_editor: bool
    is_viewer: bool


class CurrentUserResponse(BaseModel):
    user_id: UUID4
    email: Optional[str] = None
    profile: Optional[UserResponse] = None
    capabilities: CapabilitiesResponse


class PasswordStrengthRequest(BaseModel):
    password: str


class PasswordStrengthResponse(BaseModel):
    is_valid: bool
    errors: List[str]
    strength: str
