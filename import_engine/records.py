"""
import_engine.records - The validated student value shared by the
importer and the student form validator.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True)
class StudentRecord:
    """A validated student, ready to be written."""
    student_name: str
    srn_no: str
    class_label: str
    section: str
    date_of_birth: date
