"""
import_engine.sheet_reader - Low-level workbook reading.

Responsibilities:
  • Detect .xlsx (zip container) vs legacy .xls (OLE2) by signature
  • Open the first worksheet with openpyxl / xlrd
  • Render every cell as the text a user sees (dates as DD/MM/YYYY,
    whole numbers without ".0"), None for blank cells
"""

from __future__ import annotations

import io
from datetime import date, datetime
from typing import Optional

import openpyxl
import xlrd

XLSX_SIGNATURE = b"PK\x03\x04"
XLS_SIGNATURE  = b"\xd0\xcf\x11\xe0"


class SheetError(Exception):
    """Raised when the buffer cannot be turned into spreadsheet rows."""
    pass


def read_rows(raw: bytes) -> list[list[Optional[str]]]:
    """
    Return the first worksheet as a list of rows (header included).
    Raises SheetError when the workbook is unreadable, has no sheets,
    or its first sheet has no rows.
    """
    if not raw:
        raise SheetError("Spreadsheet is empty")

    if raw[:4] == XLS_SIGNATURE:
        rows = _read_xls(raw)
    else:
        rows = _read_xlsx(raw)

    if not rows:
        raise SheetError("Spreadsheet has no rows")
    return rows


def render_cell(value) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.strftime("%d/%m/%Y")
    if isinstance(value, date):
        return value.strftime("%d/%m/%Y")
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else str(value)
    return str(value)


# ── Private helpers ────────────────────────────────────────────────────

def _read_xlsx(raw: bytes) -> list[list[Optional[str]]]:
    try:
        wb = openpyxl.load_workbook(io.BytesIO(raw), read_only=True, data_only=True)
    except Exception as exc:
        raise SheetError(f"Could not open workbook: {exc}") from exc

    try:
        if not wb.sheetnames:
            raise SheetError("Workbook has no worksheets")
        ws = wb[wb.sheetnames[0]]
        return [
            [render_cell(v) for v in row]
            for row in ws.iter_rows(values_only=True)
        ]
    finally:
        wb.close()


def _read_xls(raw: bytes) -> list[list[Optional[str]]]:
    try:
        book = xlrd.open_workbook(file_contents=raw)
    except Exception as exc:
        raise SheetError(f"Could not open workbook: {exc}") from exc

    if book.nsheets == 0:
        raise SheetError("Workbook has no worksheets")
    sheet = book.sheet_by_index(0)

    rows = []
    for r in range(sheet.nrows):
        row = []
        for cell in sheet.row(r):
            if cell.ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK):
                row.append(None)
            elif cell.ctype == xlrd.XL_CELL_DATE:
                row.append(render_cell(xlrd.xldate_as_datetime(cell.value, book.datemode)))
            elif cell.ctype == xlrd.XL_CELL_BOOLEAN:
                row.append(render_cell(bool(cell.value)))
            else:
                row.append(render_cell(cell.value))
        rows.append(row)
    return rows
