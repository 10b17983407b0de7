"""
export_engine.exporter - Project student records onto a flat sheet.

Pure projection: the caller has already fetched and scoped the rows.
Column order is fixed by field_map.EXPORT_HEADERS and its first five
labels match the import template, so an export re-imports cleanly.
"""

from __future__ import annotations

import io
import re
from datetime import date, datetime
from typing import Iterable

from openpyxl import Workbook

from import_engine.field_map import EXPORT_HEADERS, SHEET_NAME
from services.photo_service import photo_filename

_UNSAFE = re.compile(r"[^\w\- .]+")


def _iso(value) -> str:
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return value or ""


def project(student) -> list:
    """One export row, in EXPORT_HEADERS order."""
    school = student.school
    block = school.block if school else None
    district = block.district if block else None
    state = district.state if district else None
    return [
        student.student_name,
        student.srn_no,
        student.class_label,
        student.section,
        _iso(student.date_of_birth),
        school.name if school else "",
        block.name if block else "",
        district.name if district else "",
        state.name if state else "",
        _iso(student.registration_date),
        photo_filename(student),
    ]


def build_export(students: Iterable) -> bytes:
    """Serialize students to an xlsx workbook with a single 'Students' sheet."""
    wb = Workbook()
    ws = wb.active
    ws.title = SHEET_NAME
    ws.append(list(EXPORT_HEADERS))
    for student in students:
        ws.append(project(student))

    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


def export_filename(scope_name: str | None = None, today: date | None = None) -> str:
    """``{school}_students_{date}.xlsx`` for one school, else ``students_export_{date}.xlsx``."""
    stamp = (today or date.today()).isoformat()
    if scope_name:
        safe = _UNSAFE.sub("_", scope_name).strip() or "school"
        return f"{safe}_students_{stamp}.xlsx"
    return f"students_export_{stamp}.xlsx"
