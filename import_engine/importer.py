"""
import_engine.importer - Top-level orchestrator.

Coordinates xlsx_parser → row_processor → store and produces a
structured ImportReport.  There is no transaction spanning the run:
every valid row is committed on its own, so partial success is normal.
"""

from __future__ import annotations

import logging

from db.engine import get_session
from import_engine.report import ImportReport
from import_engine.row_processor import RowProcessor, RowError, INSERT_REJECTED
from import_engine.store import (
    ImportLogEntry, SqlStudentStore, StoreError, StudentStore,
)
from import_engine.xlsx_parser import SchemaError, check_headers, read_sheet

logger = logging.getLogger(__name__)


def run_import(
    file_content: bytes,
    *,
    school_id: str,
    user_id: str,
    filename: str = "unknown",
    store: StudentStore | None = None,
) -> ImportReport:
    """
    Import an xlsx blob of students into one school.

    Parameters
    ----------
    file_content : raw workbook bytes
    school_id    : owning school for every imported row
    user_id      : invoking user, recorded on the import log
    filename     : original upload name, recorded on the import log
    store        : backing store; defaults to a SqlStudentStore on a new session

    Raises SchemaError before any write if the file is unreadable or a
    required header is missing.
    """
    sheet = read_sheet(file_content)
    check_headers(sheet.headers)
    if not sheet.rows:
        raise SchemaError("Excel file is empty")

    if store is not None:
        return _run(sheet.rows, store, school_id, user_id, filename)

    session = get_session()
    try:
        return _run(sheet.rows, SqlStudentStore(session), school_id, user_id, filename)
    finally:
        session.close()


def _run(rows, store: StudentStore, school_id: str, user_id: str, filename: str) -> ImportReport:
    report = ImportReport(filename=filename)
    processor = RowProcessor(store, school_id)

    numbered = list(enumerate(rows, start=1))
    repeats = processor.prescan(numbered)
    logger.info("Importing %d rows from %s into school %s (%d repeated SRNs in file)",
                len(numbered), filename, school_id, repeats)

    for row_idx, row in numbered:
        report.total_rows += 1
        try:
            record = processor.process(row_idx, row)
            store.insert(school_id, record)
            report.add_success()
        except RowError as exc:
            logger.debug("Row %d rejected (%s): %s", row_idx, exc.kind, exc)
            report.add_error(row_idx, str(exc))
        except StoreError as exc:
            logger.debug("Row %d rejected (%s): %s", row_idx, INSERT_REJECTED, exc)
            report.add_error(row_idx, str(exc))

    if not report.consistent:
        logger.warning("Import of %s tally mismatch: %d + %d != %d rows", filename,
                       report.imported, report.failed, report.total_rows)

    entry = ImportLogEntry(
        user_id=user_id,
        filename=filename,
        total=report.total_rows,
        success=report.imported,
        failure=report.failed,
        errors=report.error_text(),
    )
    try:
        report.log_id = store.insert_log(entry)
    except StoreError as exc:
        logger.error("Could not record import log for %s: %s", filename, exc)

    logger.info("Import of %s finished: %d imported, %d failed / %d rows",
                filename, report.imported, report.failed, report.total_rows)
    return report
