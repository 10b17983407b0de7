"""
services.student_service - Student CRUD, search and dashboard counts.

All session management is the caller's responsibility.  Every query
goes through Scope.filter_students so a school user can never read or
write another school's students.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

import config
from db.models import State, District, Block, School, Student
from services.errors import NotFound, ValidationError
from services.photo_service import delete_photo, photo_rel_path, rename_photo, store_photo
from services.scope import Scope, students_in_hierarchy
from services.student_form import StudentForm, validate_student_form

logger = logging.getLogger(__name__)


class StudentService:

    # ── Read ───────────────────────────────────────────────────────────

    @staticmethod
    def get(session: Session, scope: Scope, student_id: str) -> Student:
        student = session.get(Student, student_id)
        if student is None or not scope.can_access_school(student.school_id):
            raise NotFound("Student not found")
        return student

    @staticmethod
    def get_school(session: Session, scope: Scope, school_id: str) -> School:
        school = session.get(School, school_id) if school_id else None
        if school is None:
            raise NotFound("School not found")
        scope.require_school(school.id)
        return school

    @staticmethod
    def search(
        session: Session,
        scope: Scope,
        *,
        q: str = "",
        school_id: str = "",
        block_id: str = "",
        district_id: str = "",
        state_id: str = "",
        class_label: str = "",
        section: str = "",
        limit: int | None = config.API_DEFAULT_LIMIT,
    ) -> list[Student]:
        """
        Newest-first student list.  ``q`` matches SRN substrings
        case-insensitively; hierarchy filters narrow to the most
        specific level given.  ``limit=None`` returns everything (export).
        """
        query = scope.filter_students(session.query(Student))
        query = students_in_hierarchy(
            query, school_id=school_id, block_id=block_id,
            district_id=district_id, state_id=state_id,
        )
        if q:
            query = query.filter(Student.srn_no.ilike(f"%{q}%"))
        if class_label:
            query = query.filter(Student.class_label == class_label)
        if section:
            query = query.filter(Student.section == section)

        query = query.options(
            joinedload(Student.school).joinedload(School.block)
            .joinedload(Block.district).joinedload(District.state)
        ).order_by(Student.created_at.desc(), Student.srn_no)

        if limit is not None:
            query = query.limit(min(limit, config.API_MAX_LIMIT))
        return query.all()

    # ── Create ─────────────────────────────────────────────────────────

    @staticmethod
    def create(session: Session, scope: Scope, school_id: str, form: StudentForm) -> Student:
        school = StudentService.get_school(session, scope, school_id)
        record = validate_student_form(form)
        _check_srn_free(session, school.id, record.srn_no)

        student = Student(
            school_id=school.id,
            student_name=record.student_name,
            srn_no=record.srn_no,
            class_label=record.class_label,
            section=record.section,
            date_of_birth=record.date_of_birth,
            registration_date=datetime.now(timezone.utc),
        )
        session.add(student)
        session.flush()
        logger.info("Created student %s in school %s", student.srn_no, school.id)
        return student

    # ── Update ─────────────────────────────────────────────────────────

    @staticmethod
    def update(session: Session, scope: Scope, student_id: str, form: StudentForm) -> Student:
        student = StudentService.get(session, scope, student_id)
        record = validate_student_form(form)
        old_photo = student.photo_path
        srn_changed = record.srn_no != student.srn_no
        if srn_changed:
            _check_srn_free(session, student.school_id, record.srn_no)
            if old_photo:
                student.photo_path = photo_rel_path(student.school_id, record.srn_no)

        student.student_name = record.student_name
        student.srn_no = record.srn_no
        student.class_label = record.class_label
        student.section = record.section
        student.date_of_birth = record.date_of_birth
        session.flush()

        # Files move only once the row change has been accepted
        if srn_changed and old_photo:
            student.photo_path = rename_photo(old_photo, student.school_id, record.srn_no)
            session.flush()
        return student

    @staticmethod
    def set_photo(
        session: Session,
        scope: Scope,
        student_id: str,
        image_bytes: bytes,
        box: tuple[int, int, int, int] | None = None,
    ) -> Student:
        student = StudentService.get(session, scope, student_id)
        student.photo_path = store_photo(
            student.school_id, student.srn_no, image_bytes,
            box=box, previous=student.photo_path,
        )
        session.flush()
        return student

    # ── Delete ─────────────────────────────────────────────────────────

    @staticmethod
    def delete(session: Session, scope: Scope, student_id: str) -> None:
        student = StudentService.get(session, scope, student_id)
        photo = student.photo_path
        session.delete(student)
        session.flush()
        delete_photo(photo)

    # ── Dashboard ──────────────────────────────────────────────────────

    @staticmethod
    def dashboard_stats(session: Session, scope: Scope) -> dict:
        if scope.is_admin:
            return {
                "total_students": session.query(func.count(Student.id)).scalar() or 0,
                "total_schools": session.query(func.count(School.id)).scalar() or 0,
                "total_blocks": session.query(func.count(Block.id)).scalar() or 0,
                "total_districts": session.query(func.count(District.id)).scalar() or 0,
                "total_states": session.query(func.count(State.id)).scalar() or 0,
            }

        students = scope.filter_students(session.query(Student))
        return {
            "total_students": students.count(),
            "students_with_photos": students.filter(Student.photo_path.isnot(None)).count(),
        }


def _check_srn_free(session: Session, school_id: str, srn_no: str) -> None:
    exists = (
        session.query(Student.id)
        .filter(Student.school_id == school_id, Student.srn_no == srn_no)
        .first()
    )
    if exists:
        raise ValidationError(
            "SRN number already exists for this school",
            {"srn_no": "SRN number already exists for this school"},
        )
