"""
db.models - SQLAlchemy ORM declarations.

Tables
------
states, districts,
blocks, schools   - the administrative hierarchy.  Each level hangs off
                    its parent with ON DELETE CASCADE, and names/codes are
                    unique within the parent.
user_profiles     - role assignment for authenticated users.  School
                    users are pinned to exactly one school.
students          - one row per student; SRN is unique within a school.
import_logs       - one summary row per bulk-import run.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Column, String, Integer, Date, DateTime, Text, ForeignKey, Index,
    UniqueConstraint, CheckConstraint,
)
from sqlalchemy.orm import DeclarativeBase, relationship


ROLE_ADMIN  = "admin"
ROLE_SCHOOL = "school"
ROLE_EDITOR = "editor"
ROLES = (ROLE_ADMIN, ROLE_SCHOOL, ROLE_EDITOR)


def _uuid() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class State(Base):
    __tablename__ = "states"

    id   = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String(200), nullable=False, unique=True)
    code = Column(String(20), nullable=False, unique=True)

    created_at = Column(DateTime, default=_now)
    updated_at = Column(DateTime, default=_now, onupdate=_now)

    districts = relationship(
        "District", back_populates="state",
        cascade="all, delete-orphan", passive_deletes=True,
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "created_at": self.created_at.isoformat() if self.created_at else "",
        }


class District(Base):
    __tablename__ = "districts"

    id       = Column(String(36), primary_key=True, default=_uuid)
    state_id = Column(String(36), ForeignKey("states.id", ondelete="CASCADE"),
                      nullable=False, index=True)
    name     = Column(String(200), nullable=False)
    code     = Column(String(20), nullable=False)

    created_at = Column(DateTime, default=_now)
    updated_at = Column(DateTime, default=_now, onupdate=_now)

    state  = relationship("State", back_populates="districts")
    blocks = relationship(
        "Block", back_populates="district",
        cascade="all, delete-orphan", passive_deletes=True,
    )

    __table_args__ = (
        UniqueConstraint("state_id", "name", name="uq_district_state_name"),
        UniqueConstraint("state_id", "code", name="uq_district_state_code"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "state_id": self.state_id,
            "name": self.name,
            "code": self.code,
            "state": self.state.name if self.state else "",
        }


class Block(Base):
    __tablename__ = "blocks"

    id          = Column(String(36), primary_key=True, default=_uuid)
    district_id = Column(String(36), ForeignKey("districts.id", ondelete="CASCADE"),
                         nullable=False, index=True)
    name        = Column(String(200), nullable=False)
    code        = Column(String(20), nullable=False)

    created_at = Column(DateTime, default=_now)
    updated_at = Column(DateTime, default=_now, onupdate=_now)

    district = relationship("District", back_populates="blocks")
    schools  = relationship(
        "School", back_populates="block",
        cascade="all, delete-orphan", passive_deletes=True,
    )

    __table_args__ = (
        UniqueConstraint("district_id", "name", name="uq_block_district_name"),
        UniqueConstraint("district_id", "code", name="uq_block_district_code"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "district_id": self.district_id,
            "name": self.name,
            "code": self.code,
            "district": self.district.name if self.district else "",
        }


class School(Base):
    __tablename__ = "schools"

    id       = Column(String(36), primary_key=True, default=_uuid)
    block_id = Column(String(36), ForeignKey("blocks.id", ondelete="CASCADE"),
                      nullable=False, index=True)
    name     = Column(String(200), nullable=False)
    code     = Column(String(50), nullable=False, unique=True)
    address  = Column(Text, default="")
    phone    = Column(String(50), default="")
    email    = Column(String(200), default="")

    created_at = Column(DateTime, default=_now)
    updated_at = Column(DateTime, default=_now, onupdate=_now)

    block    = relationship("Block", back_populates="schools")
    students = relationship(
        "Student", back_populates="school",
        cascade="all, delete-orphan", passive_deletes=True,
    )

    __table_args__ = (
        UniqueConstraint("block_id", "name", name="uq_school_block_name"),
    )

    # ── Hierarchy helpers ──────────────────────────────────────────────
    @property
    def district(self) -> District | None:
        return self.block.district if self.block else None

    @property
    def state(self) -> State | None:
        district = self.district
        return district.state if district else None

    def to_dict(self) -> dict:
        district = self.district
        state = self.state
        return {
            "id": self.id,
            "block_id": self.block_id,
            "name": self.name,
            "code": self.code,
            "address": self.address or "",
            "phone": self.phone or "",
            "email": self.email or "",
            "block": self.block.name if self.block else "",
            "district": district.name if district else "",
            "state": state.name if state else "",
        }


class UserProfile(Base):
    __tablename__ = "user_profiles"

    id        = Column(String(36), primary_key=True, default=_uuid)
    user_id   = Column(String(64), nullable=False, unique=True, index=True)
    role      = Column(String(20), nullable=False, default=ROLE_SCHOOL)
    school_id = Column(String(36), ForeignKey("schools.id", ondelete="CASCADE"),
                       nullable=True, index=True)
    name      = Column(String(200), nullable=False)
    email     = Column(String(200), nullable=False)

    created_at = Column(DateTime, default=_now)
    updated_at = Column(DateTime, default=_now, onupdate=_now)

    school = relationship("School")

    __table_args__ = (
        CheckConstraint(
            "(role = 'admin' AND school_id IS NULL) OR "
            "(role = 'school' AND school_id IS NOT NULL) OR "
            "(role = 'editor')",
            name="ck_profile_school_role",
        ),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "role": self.role,
            "school_id": self.school_id,
            "school": self.school.name if self.school else "",
            "name": self.name,
            "email": self.email,
        }


class Student(Base):
    __tablename__ = "students"

    id           = Column(String(36), primary_key=True, default=_uuid)
    school_id    = Column(String(36), ForeignKey("schools.id", ondelete="CASCADE"),
                          nullable=False, index=True)
    srn_no       = Column(String(100), nullable=False, index=True)
    student_name = Column(String(200), nullable=False)
    class_label  = Column("class", String(50), nullable=False)
    section      = Column(String(50), nullable=False)
    date_of_birth = Column(Date, nullable=False)
    photo_path   = Column(String(500), nullable=True)       # relative to PHOTOS_DIR

    registration_date = Column(DateTime, default=_now, index=True)
    created_at = Column(DateTime, default=_now)
    updated_at = Column(DateTime, default=_now, onupdate=_now)

    school = relationship("School", back_populates="students")

    __table_args__ = (
        UniqueConstraint("school_id", "srn_no", name="uq_student_school_srn"),
    )

    @property
    def has_photo(self) -> bool:
        return bool(self.photo_path)

    def to_dict(self) -> dict:
        school = self.school
        block = school.block if school else None
        district = school.district if school else None
        state = school.state if school else None
        return {
            "id": self.id,
            "school_id": self.school_id,
            "srn_no": self.srn_no,
            "student_name": self.student_name,
            "class": self.class_label,
            "section": self.section,
            "date_of_birth": self.date_of_birth.isoformat() if self.date_of_birth else "",
            "has_photo": self.has_photo,
            "registration_date": (self.registration_date.isoformat()
                                  if self.registration_date else ""),
            "school": school.name if school else "",
            "block": block.name if block else "",
            "district": district.name if district else "",
            "state": state.name if state else "",
        }


class ImportLog(Base):
    __tablename__ = "import_logs"

    id                 = Column(String(36), primary_key=True, default=_uuid)
    user_id            = Column(String(64), nullable=False, index=True)
    filename           = Column(String(300), nullable=False)
    total_records      = Column(Integer, nullable=False, default=0)
    successful_records = Column(Integer, nullable=False, default=0)
    failed_records     = Column(Integer, nullable=False, default=0)
    errors             = Column(Text, nullable=True)        # newline-joined
    created_at         = Column(DateTime, nullable=False, default=_now)

    __table_args__ = (
        Index("ix_import_logs_created", "created_at"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "filename": self.filename,
            "total_records": self.total_records,
            "successful_records": self.successful_records,
            "failed_records": self.failed_records,
            "errors": self.errors.split("\n") if self.errors else [],
            "created_at": self.created_at.isoformat() if self.created_at else "",
        }
