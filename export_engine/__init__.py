"""
export_engine - Spreadsheet export of student records.

Public API:
    build_export(students) → xlsx bytes
    export_filename(scope_name=None) → download name
"""

from export_engine.exporter import build_export, export_filename, project   # noqa: F401
