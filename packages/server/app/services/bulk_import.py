"""
Bulk member import: validates spreadsheet rows and admits them one by one.

Rows are processed strictly in order. Each admitted row is committed on its
own: a failure on a later row never rolls back an earlier one, and there is
no batch-level transaction.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import DuplicateKey, LedgerError, ValidationError, upstream_message
from app.core.permissions import ActingIdentity, require_capability
from app.core.sanitize import sanitize_free_text
from app.core.spreadsheet import decode_workbook, encode_workbook
from app.services import members as member_service
from points_ledger_shared.schemas.common import MEMBER_IMPORT_COLUMNS
from points_ledger_shared.schemas.imports import ImportResult, ImportRowError

log = structlog.get_logger()

# Spreadsheet rows are 1-indexed and row 1 is the header.
HEADER_ROW_OFFSET = 2

REQUIRED_FIELDS: list[tuple[str, str]] = [
    ("reg_no", "Registration number is required"),
    ("full_name", "Full name is required"),
    ("name_with_initials", "Name with initials is required"),
    ("batch", "Batch is required"),
    ("faculty", "Faculty is required"),
    ("whatsapp", "WhatsApp number is required"),
]

PARSE_ERROR_MESSAGE = "Failed to parse Excel file. Please ensure it matches the template format."

TEMPLATE_ROWS: list[dict[str, str]] = [
    {
        "reg_no": "S/2021/001",
        "full_name": "John Doe Smith",
        "name_with_initials": "J.D. Smith",
        "batch": "2021",
        "faculty": "Faculty of Computing",
        "whatsapp": "+94771234567",
        "my_lci_num": "12345678",
    },
    {
        "reg_no": "S/2021/002",
        "full_name": "Jane Mary Johnson",
        "name_with_initials": "J.M. Johnson",
        "batch": "2021",
        "faculty": "Faculty of Applied Sciences",
        "whatsapp": "+94777654321",
        "my_lci_num": "",
    },
]
TEMPLATE_COLUMN_WIDTHS = [15, 25, 20, 10, 40, 15, 15]


def _cell_text(value: Any) -> str:
    """Spreadsheet cells may be numbers (batch, phone); compare as sanitized text."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return sanitize_free_text(str(value))


def validate_member_row(row: Mapping[str, Any]) -> list[str]:
    """Return one message per missing required field (empty list when valid)."""
    return [message for field, message in REQUIRED_FIELDS if not _cell_text(row.get(field))]


def _member_values(row: Mapping[str, Any]) -> dict[str, Any]:
    return dict(
        reg_no=_cell_text(row.get("reg_no")),
        full_name=_cell_text(row.get("full_name")),
        name_with_initials=_cell_text(row.get("name_with_initials")),
        batch=_cell_text(row.get("batch")),
        faculty=_cell_text(row.get("faculty")),
        whatsapp=_cell_text(row.get("whatsapp")),
        my_lci_num=_cell_text(row.get("my_lci_num")) or None,
        total_points=0,
    )


def _jsonable(row: Mapping[str, Any]) -> dict[str, Any]:
    return {
        str(key): value if isinstance(value, (str, int, float, bool)) or value is None else str(value)
        for key, value in row.items()
    }


async def import_members(
    session: AsyncSession,
    rows: Iterable[Mapping[str, Any]],
    identity: ActingIdentity,
) -> ImportResult:
    """Validate, de-duplicate and admit member rows. Never an upsert."""
    require_capability(identity, "can_edit")
    result = ImportResult()

    for index, row in enumerate(rows):
        row_number = index + HEADER_ROW_OFFSET

        def fail(message: str) -> None:
            result.failed += 1
            result.errors.append(
                ImportRowError(row=row_number, error=message, data=_jsonable(row))
            )

        missing = validate_member_row(row)
        if missing:
            fail(", ".join(missing))
            continue

        reg_no = _cell_text(row.get("reg_no"))
        try:
            if await member_service.get_member(session, reg_no) is not None:
                fail(f"Member with registration number {reg_no} already exists")
                continue

            await member_service.create_member(session, _member_values(row), identity)
            await session.commit()
        except (DuplicateKey, ValidationError) as exc:
            fail(exc.message)
            continue
        except LedgerError as exc:
            await session.rollback()
            fail(exc.message)
            continue
        except SQLAlchemyError as exc:
            await session.rollback()
            fail(upstream_message(exc))
            continue

        result.success += 1

    log.info(
        "import.completed",
        success=result.success,
        failed=result.failed,
        actor=str(identity.user_id),
    )
    return result


async def import_members_from_workbook(
    session: AsyncSession, content: bytes, identity: ActingIdentity
) -> ImportResult:
    """Decode an uploaded .xlsx and run it through the pipeline."""
    require_capability(identity, "can_edit")
    try:
        rows = decode_workbook(content)
    except Exception as exc:
        log.warning("import.parse_failed", error=str(exc))
        raise ValidationError(PARSE_ERROR_MESSAGE) from exc
    return await import_members(session, rows, identity)


def build_import_template(rows: Optional[list[dict[str, str]]] = None) -> bytes:
    """Example workbook with the import columns."""
    return encode_workbook(
        rows if rows is not None else TEMPLATE_ROWS,
        MEMBER_IMPORT_COLUMNS,
        sheet_name="Members",
        column_widths=TEMPLATE_COLUMN_WIDTHS,
    )
