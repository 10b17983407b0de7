"""
import_engine - Spreadsheet import pipeline.

Public API:
    run_import(file_content, school_id=, user_id=, filename=) → ImportReport
    build_template() → xlsx bytes
"""

from import_engine.importer import run_import                 # noqa: F401
from import_engine.report import ImportReport                 # noqa: F401
from import_engine.xlsx_parser import SchemaError             # noqa: F401
from import_engine.row_processor import RowError              # noqa: F401
from import_engine.store import (                             # noqa: F401
    SqlStudentStore, StoreError, ImportLogEntry,
)
from import_engine.template import build_template, TEMPLATE_FILENAME   # noqa: F401
from import_engine.records import StudentRecord             # noqa: F401
