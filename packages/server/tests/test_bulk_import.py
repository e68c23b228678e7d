"""
Tests for the bulk member import pipeline and its spreadsheet codec.
"""

import pytest

from app.core.errors import Unauthorized, ValidationError
from app.core.spreadsheet import decode_workbook, encode_workbook
from app.services import bulk_import
from app.services import members as member_service
from points_ledger_shared.schemas.common import MEMBER_IMPORT_COLUMNS

from conftest import add_member


def _row(reg_no="S/2024/001", **overrides):
    row = {
        "reg_no": reg_no,
        "full_name": "Dilini Amarasekara",
        "name_with_initials": "D. Amarasekara",
        "batch": "2024",
        "faculty": "Medicine",
        "whatsapp": "0711112222",
        "my_lci_num": "",
    }
    row.update(overrides)
    return row


class TestValidateRow:

    def test_valid_row_has_no_errors(self):
        assert bulk_import.validate_member_row(_row()) == []

    def test_missing_fields_listed_in_order(self):
        errors = bulk_import.validate_member_row(_row(full_name="", whatsapp=None))
        assert errors == ["Full name is required", "WhatsApp number is required"]

    def test_numeric_cells_count_as_present(self):
        assert bulk_import.validate_member_row(_row(batch=2024.0, whatsapp=771112222)) == []

    def test_markup_only_cell_counts_as_missing(self):
        assert bulk_import.validate_member_row(_row(full_name="<b></b>")) == ["Full name is required"]


class TestImportMembers:

    async def test_missing_field_and_duplicate_both_fail(self, session, editor):
        await add_member(session, "S/2021/001")
        result = await bulk_import.import_members(
            session, [_row("S/2024/009", full_name=""), _row("S/2021/001")], editor
        )

        assert result.success == 0
        assert result.failed == 2
        assert [e.row for e in result.errors] == [2, 3]
        assert result.errors[0].error == "Full name is required"
        assert "already exists" in result.errors[1].error
        assert result.errors[1].data["reg_no"] == "S/2021/001"

    async def test_markup_only_name_fails_its_row(self, session, editor):
        result = await bulk_import.import_members(session, [_row(full_name=" <i></i> ")], editor)
        assert result.success == 0
        assert result.errors[0].error == "Full name is required"
        assert await member_service.get_member(session, "S/2024/001") is None

    async def test_single_valid_row_admitted_with_zero_points(self, session, editor):
        result = await bulk_import.import_members(session, [_row()], editor)

        assert (result.success, result.failed, result.errors) == (1, 0, [])
        member = await member_service.get_member(session, "S/2024/001")
        assert member is not None
        assert member.total_points == 0
        assert member.my_lci_num is None

    async def test_earlier_rows_survive_later_failures(self, session, editor):
        result = await bulk_import.import_members(
            session, [_row("S/2024/001"), _row("S/2024/001"), _row("S/2024/002")], editor
        )
        assert (result.success, result.failed) == (2, 1)
        assert result.errors[0].row == 3
        assert await member_service.count_members(session) == 2

    async def test_points_column_is_ignored(self, session, editor):
        await bulk_import.import_members(session, [_row(total_points=500)], editor)
        member = await member_service.get_member(session, "S/2024/001")
        assert member.total_points == 0

    async def test_viewer_cannot_import(self, session, viewer):
        with pytest.raises(Unauthorized):
            await bulk_import.import_members(session, [_row()], viewer)

    async def test_empty_batch(self, session, editor):
        result = await bulk_import.import_members(session, [], editor)
        assert (result.success, result.failed, result.errors) == (0, 0, [])


class TestWorkbookImport:

    async def test_import_from_workbook(self, session, editor):
        content = encode_workbook([_row("S/2024/001"), _row("S/2024/002")], MEMBER_IMPORT_COLUMNS)
        result = await bulk_import.import_members_from_workbook(session, content, editor)
        assert result.success == 2
        assert await member_service.count_members(session) == 2

    async def test_garbage_upload_is_parse_error(self, session, editor):
        with pytest.raises(ValidationError, match="Failed to parse Excel file"):
            await bulk_import.import_members_from_workbook(session, b"not a workbook", editor)

    def test_template_has_import_columns_and_examples(self):
        rows = decode_workbook(bulk_import.build_import_template())
        assert len(rows) == 2
        assert list(rows[0].keys()) == MEMBER_IMPORT_COLUMNS
        assert rows[0]["reg_no"] == "S/2021/001"

    def test_blank_rows_skipped(self):
        content = encode_workbook([_row(), {}, _row("S/2024/002")], MEMBER_IMPORT_COLUMNS)
        assert [r["reg_no"] for r in decode_workbook(content)] == ["S/2024/001", "S/2024/002"]
