"""
import_engine.xlsx_parser - Low-level workbook reading and header checks.

Responsibilities:
  • Open the upload with openpyxl (first sheet only)
  • Treat row 1 as headers, stripping whitespace
  • Drop rows whose cells are all empty
  • Reject the file when a required header is missing
"""

from __future__ import annotations

import io
import zipfile
from dataclasses import dataclass, field
from typing import Any

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from import_engine.field_map import REQUIRED_HEADERS


class SchemaError(Exception):
    """Raised when the whole file must be rejected before any row is processed."""
    pass


@dataclass
class ParsedSheet:
    sheet_name: str
    headers: list[str]
    rows: list[dict[str, Any]] = field(default_factory=list)


def read_sheet(raw: bytes) -> ParsedSheet:
    """
    Parse the first worksheet of an xlsx blob into header-keyed rows.
    Raises SchemaError if the workbook is unreadable or has no header row.
    """
    if not raw:
        raise SchemaError("Excel file is empty")

    try:
        wb = load_workbook(io.BytesIO(raw), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, ValueError, OSError) as exc:
        raise SchemaError(f"Error reading Excel file: {exc}") from exc

    try:
        if not wb.worksheets:
            raise SchemaError("Workbook has no sheets")
        ws = wb.worksheets[0]
        row_iter = ws.iter_rows(values_only=True)

        header_row = next(row_iter, None)
        if header_row is None or all(_is_empty(c) for c in header_row):
            raise SchemaError("Excel file has no header row")
        headers = ["" if h is None else str(h).strip() for h in header_row]

        rows: list[dict[str, Any]] = []
        for values in row_iter:
            if values is None or all(_is_empty(v) for v in values):
                continue
            row: dict[str, Any] = {}
            for col, val in zip(headers, values):
                # Unlabelled columns carry nothing we can map
                if col and col not in row:
                    row[col] = val
            rows.append(row)

        return ParsedSheet(sheet_name=ws.title, headers=headers, rows=rows)
    finally:
        wb.close()


def check_headers(headers: list[str]) -> None:
    """Raise SchemaError listing every required header that is absent."""
    present = set(headers)
    missing = [h for h in REQUIRED_HEADERS if h not in present]
    if missing:
        raise SchemaError(f"Missing required columns: {', '.join(missing)}")


def _is_empty(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())
