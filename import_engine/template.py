"""
import_engine.template - Downloadable import template.
"""

from __future__ import annotations

import io

from openpyxl import Workbook

from import_engine.field_map import REQUIRED_HEADERS, SHEET_NAME

TEMPLATE_FILENAME = "student_import_template.xlsx"

EXAMPLE_ROWS = (
    ("John Doe", "SRN001", "10", "A", "2005-05-15"),
    ("Jane Smith", "SRN002", "10", "B", "2005-03-20"),
)


def build_template() -> bytes:
    """Return the template workbook: required headers plus two example rows."""
    wb = Workbook()
    ws = wb.active
    ws.title = SHEET_NAME
    ws.append(list(REQUIRED_HEADERS))
    for row in EXAMPLE_ROWS:
        ws.append(list(row))

    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()
