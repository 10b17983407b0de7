"""
import_engine.store - Backing-store collaborator used by the importer.

The importer only needs three calls, so it talks to a small protocol
rather than to SQLAlchemy directly.  SqlStudentStore commits after every
write so each inserted row is visible to the next row's uniqueness check.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from db.models import Student, ImportLog
from import_engine.records import StudentRecord

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Raised when the backing store rejects a write."""
    pass


@dataclass(frozen=True)
class ImportLogEntry:
    user_id: str
    filename: str
    total: int
    success: int
    failure: int
    errors: str | None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class StudentStore(Protocol):
    def find_by_external_id(self, school_id: str, external_id: str) -> Student | None: ...

    def insert(self, school_id: str, record: StudentRecord) -> str: ...

    def insert_log(self, entry: ImportLogEntry) -> str: ...


class SqlStudentStore:
    """StudentStore over a caller-owned SQLAlchemy session."""

    def __init__(self, session: Session):
        self._session = session

    def find_by_external_id(self, school_id: str, external_id: str) -> Student | None:
        try:
            return (
                self._session.query(Student)
                .filter(Student.school_id == school_id, Student.srn_no == external_id)
                .first()
            )
        except SQLAlchemyError as exc:
            self._session.rollback()
            reason = getattr(exc, "orig", None) or exc
            logger.debug("Lookup of SRN %s failed: %s", external_id, reason)
            raise StoreError(str(reason)) from exc

    def insert(self, school_id: str, record: StudentRecord) -> str:
        student = Student(
            school_id=school_id,
            student_name=record.student_name,
            srn_no=record.srn_no,
            class_label=record.class_label,
            section=record.section,
            date_of_birth=record.date_of_birth,
            registration_date=datetime.now(timezone.utc),
        )
        self._write(student)
        return student.id

    def insert_log(self, entry: ImportLogEntry) -> str:
        log = ImportLog(
            user_id=entry.user_id,
            filename=entry.filename,
            total_records=entry.total,
            successful_records=entry.success,
            failed_records=entry.failure,
            errors=entry.errors,
            created_at=entry.timestamp,
        )
        self._write(log)
        return log.id

    def _write(self, obj) -> None:
        try:
            self._session.add(obj)
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            reason = getattr(exc, "orig", None) or exc
            logger.debug("Store rejected %s: %s", type(obj).__name__, reason)
            raise StoreError(str(reason)) from exc
