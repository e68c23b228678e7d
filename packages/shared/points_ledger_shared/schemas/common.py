from enum import Enum
from typing import Optional

from pydantic import BaseModel


class Role(str, Enum):
    SUPER_ADMIN = "super_admin"
    EDITOR = "editor"
    VIEWER = "viewer"


# Column headers shared by the import template and the bulk import pipeline
MEMBER_IMPORT_COLUMNS: list[str] = [
    "reg_no",
    "full_name",
    "name_with_initials",
    "batch",
    "faculty",
    "whatsapp",
    "my_lci_num",
]

# YYYY-MM
TIME_PERIOD_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"


class ErrorDetail(BaseModel):
    code: str
    message: str
    status: int


class APIResponse(BaseModel):
    data: Optional[object] = None
    error: Optional[ErrorDetail] = None
