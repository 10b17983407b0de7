"""
import_engine.row_processor - Validate one spreadsheet row into a StudentRecord.

Single-responsibility: given a header-keyed row, either return a record
ready to be inserted, or raise RowError.  Checks run in a fixed order:
required fields, in-file duplicate, store duplicate, date of birth.
"""

from __future__ import annotations

from typing import Any, Iterable

from import_engine.cells import cell_text, is_blank, parse_date
from import_engine.field_map import REQUIRED_HEADERS, SRN_HEADER, DOB_HEADER
from import_engine.store import StoreError, StudentStore
from import_engine.records import StudentRecord

MISSING_FIELDS = "missing-field"
DUPLICATE_ID   = "duplicate-identifier"
INVALID_DATE   = "invalid-date"
INSERT_REJECTED = "insert-rejected"


class RowError(Exception):
    """Raised when a row cannot be imported."""

    def __init__(self, kind: str, message: str):
        super().__init__(message)
        self.kind = kind


class RowProcessor:
    """
    Stateful processor for one import run against one school.

    ``prescan`` must see the whole file first so that a repeated SRN is
    caught even before its first occurrence has been committed.
    """

    def __init__(self, store: StudentStore, school_id: str):
        self._store = store
        self._school_id = school_id
        self._repeats: dict[int, tuple[str, int]] = {}   # row → (srn, first row)

    def prescan(self, rows: Iterable[tuple[int, dict[str, Any]]]) -> int:
        """Record every row whose SRN already appeared earlier in the file."""
        first_seen: dict[str, int] = {}
        for row_idx, row in rows:
            srn = cell_text(row.get(SRN_HEADER))
            if not srn:
                continue
            if srn in first_seen:
                self._repeats[row_idx] = (srn, first_seen[srn])
            else:
                first_seen[srn] = row_idx
        return len(self._repeats)

    def process(self, row_idx: int, row: dict[str, Any]) -> StudentRecord:
        """Validate one row.  Raises RowError on any problem."""
        if any(is_blank(row.get(h)) for h in REQUIRED_HEADERS):
            raise RowError(MISSING_FIELDS, "Missing required fields")

        srn = cell_text(row.get(SRN_HEADER))

        if row_idx in self._repeats:
            _, first = self._repeats[row_idx]
            raise RowError(
                DUPLICATE_ID,
                f"SRN {srn} is duplicated in this file (first seen in row {first})",
            )

        try:
            existing = self._store.find_by_external_id(self._school_id, srn)
        except StoreError as exc:
            raise RowError(INSERT_REJECTED, str(exc)) from exc
        if existing is not None:
            raise RowError(DUPLICATE_ID, f"SRN {srn} already exists")

        try:
            dob = parse_date(row.get(DOB_HEADER))
        except ValueError:
            raise RowError(INVALID_DATE, "Invalid date format for Date of Birth") from None

        return StudentRecord(
            student_name=cell_text(row.get("Student Name")),
            srn_no=srn,
            class_label=cell_text(row.get("Class")),
            section=cell_text(row.get("Section")),
            date_of_birth=dob,
        )
