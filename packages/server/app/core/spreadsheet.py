"""
Spreadsheet codec (xlsx) used by the bulk member import.
"""

from __future__ import annotations

import io
from typing import Any, Iterable, Optional, Sequence

from openpyxl import Workbook, load_workbook
from openpyxl.utils import get_column_letter


def decode_workbook(content: bytes) -> list[dict[str, Any]]:
    """Read the first sheet into row dicts keyed by the header row.

    Blank rows are skipped; empty cells become ``None``. Raises whatever
    openpyxl raises for content that is not a workbook.
    """
    wb = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    try:
        ws = wb.worksheets[0]
        rows = ws.iter_rows(values_only=True)
        header = next(rows, None)
        if header is None:
            return []
        keys = [str(h).strip() if h is not None else "" for h in header]

        records: list[dict[str, Any]] = []
        for values in rows:
            if values is None or all(v is None or str(v).strip() == "" for v in values):
                continue
            record = {
                key: value
                for key, value in zip(keys, values)
                if key
            }
            records.append(record)
        return records
    finally:
        wb.close()


def encode_workbook(
    rows: Iterable[dict[str, Any]],
    columns: Sequence[str],
    *,
    sheet_name: str = "Sheet1",
    column_widths: Optional[Sequence[int]] = None,
) -> bytes:
    """Write row dicts to a single-sheet workbook with a header row."""
    wb = Workbook()
    ws = wb.active
    ws.title = sheet_name
    ws.append(list(columns))
    for row in rows:
        ws.append([row.get(col) for col in columns])

    if column_widths:
        for idx, width in enumerate(column_widths, start=1):
            ws.column_dimensions[get_column_letter(idx)].width = width

    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()
