"""Excel bulk import of school accounts: workbook parsing and the rejected-rows report."""

import io
from typing import Dict, List, Optional, Sequence, Tuple

from openpyxl import Workbook, load_workbook
from openpyxl.styles import Font

IMPORT_HEADERS = ("full_name", "email", "password", "role", "class_name", "roll_number", "phone")
REQUIRED_HEADERS = ("full_name", "email", "password", "role")
IMPORT_MAX_ROWS = 500
ERRORS_SHEET_NAME = "Upload errors"

# (sheet row number, cell text by header)
ImportRow = Tuple[int, Dict[str, str]]


def _norm_header(value) -> str:
    return (str(value).strip().lower() if value is not None else "").replace(" ", "_")


def _cell_str(row: tuple, col: int) -> str:
    if col >= len(row):
        return ""
    v = row[col]
    if v is None:
        return ""
    return str(v).strip()


def _is_blank(row: tuple) -> bool:
    return not row or all(c is None or (isinstance(c, str) and not c.strip()) for c in row)


def read_import_rows(filename: Optional[str], content: bytes) -> List[ImportRow]:
    """
    Rows of the first sheet keyed by the header row. Header names are matched
    case-insensitively with spaces read as underscores; blank rows are skipped.
    Raises ValueError when the file cannot be used at all.
    """
    if not filename or not filename.lower().endswith(".xlsx"):
        raise ValueError("File must be an Excel file (.xlsx)")
    if not content:
        raise ValueError("File is empty")
    try:
        wb = load_workbook(filename=io.BytesIO(content), read_only=True, data_only=True)
    except Exception as e:
        raise ValueError(f"Invalid Excel file: {e}") from e

    rows: List[ImportRow] = []
    try:
        rows_iter = wb.active.iter_rows(values_only=True)
        header_row = next(rows_iter, None)
        if not header_row or _is_blank(header_row):
            raise ValueError("Excel file has no header row")
        headers = [_norm_header(c) for c in header_row]
        missing = [h for h in REQUIRED_HEADERS if h not in headers]
        if missing:
            raise ValueError(f"Missing required column(s): {', '.join(missing)}. Found: {headers}")
        col_idx = {h: headers.index(h) for h in IMPORT_HEADERS if h in headers}

        for row_num, row in enumerate(rows_iter, start=2):
            if _is_blank(row):
                continue
            if len(rows) >= IMPORT_MAX_ROWS:
                raise ValueError(f"Maximum {IMPORT_MAX_ROWS} data rows allowed")
            rows.append((row_num, {h: _cell_str(row, i) for h, i in col_idx.items()}))
    finally:
        wb.close()

    if not rows:
        raise ValueError("Excel file has no data rows")
    return rows


def build_error_workbook(failed: Sequence[Tuple[ImportRow, str]]) -> bytes:
    """One sheet: the rejected rows as uploaded (passwords hidden) plus a reason column."""
    wb = Workbook()
    ws = wb.active
    ws.title = ERRORS_SHEET_NAME
    ws.append(["row", *IMPORT_HEADERS, "reason"])
    for cell in ws[1]:
        cell.font = Font(bold=True)
    for (row_num, cells), reason in failed:
        values = [cells.get(h, "") for h in IMPORT_HEADERS]
        if cells.get("password"):
            values[IMPORT_HEADERS.index("password")] = "(hidden)"
        ws.append([row_num, *values, reason])

    bio = io.BytesIO()
    wb.save(bio)
    return bio.getvalue()
