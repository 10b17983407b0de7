"""
import_engine.cells - Coerce raw spreadsheet cells into typed values.

openpyxl hands back str, int, float, datetime or None depending on how
the author formatted each cell.  Shared with the student form validator
so a date typed into the form and a date in a workbook parse the same way.
"""

from __future__ import annotations

from datetime import date, datetime

from openpyxl.utils.datetime import from_excel

# Tried in order; day-first wherever day and month could be swapped
DATE_FORMATS = (
    "%Y-%m-%d", "%d-%m-%Y", "%d/%m/%Y", "%Y/%m/%d", "%d.%m.%Y",
    "%Y-%m-%d %H:%M:%S", "%d %B %Y", "%d %b %Y", "%B %d, %Y", "%b %d, %Y",
)

# Excel serials outside this range are not calendar dates
_MIN_SERIAL = 1
_MAX_SERIAL = 2958465     # 9999-12-31


def cell_text(value) -> str:
    """Render a cell as stripped text; integral floats lose their '.0'."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value).strip()


def is_blank(value) -> bool:
    return cell_text(value) == ""


def parse_date(value) -> date:
    """
    Parse a date-of-birth cell.  Raises ValueError when the value is
    not a calendar date.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, bool):
        raise ValueError(f"not a date: {value!r}")
    if isinstance(value, (int, float)):
        if not _MIN_SERIAL <= value <= _MAX_SERIAL:
            raise ValueError(f"date serial out of range: {value}")
        return from_excel(value).date()

    text = cell_text(value)
    if not text:
        raise ValueError("empty date")

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    raise ValueError(f"not a date: {text!r}")
