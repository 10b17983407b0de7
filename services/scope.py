"""
services.scope - Role-based visibility as an explicit value.

A Scope is built once per request from the caller's user profile and
passed into every service call.  Nothing below the API layer looks up
the current user on its own.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.orm import Query, Session

from db.models import (
    Student, School, Block, District, UserProfile,
    ROLE_ADMIN, ROLE_EDITOR, ROLE_SCHOOL,
)
from services.errors import PermissionDenied


@dataclass(frozen=True)
class Scope:
    role: str
    user_id: str
    school_id: str | None = None

    @property
    def is_admin(self) -> bool:
        """Admins and editors see every school."""
        return self.role in (ROLE_ADMIN, ROLE_EDITOR)

    def can_manage_hierarchy(self) -> bool:
        return self.role == ROLE_ADMIN

    def can_manage_users(self) -> bool:
        return self.role == ROLE_ADMIN

    def can_access_school(self, school_id: str | None) -> bool:
        if self.is_admin:
            return True
        return school_id is not None and school_id == self.school_id

    def require_school(self, school_id: str | None) -> None:
        if not self.can_access_school(school_id):
            raise PermissionDenied("School is outside your scope")

    def require_hierarchy_admin(self) -> None:
        if not self.can_manage_hierarchy():
            raise PermissionDenied("Only administrators can change the hierarchy")

    def filter_students(self, query: Query) -> Query:
        if self.is_admin:
            return query
        return query.filter(Student.school_id == self.school_id)

    def filter_schools(self, query: Query) -> Query:
        if self.is_admin:
            return query
        return query.filter(School.id == self.school_id)

    @classmethod
    def admin(cls, user_id: str = "system") -> "Scope":
        return cls(role=ROLE_ADMIN, user_id=user_id)

    @classmethod
    def for_school(cls, school_id: str, user_id: str = "system") -> "Scope":
        return cls(role=ROLE_SCHOOL, user_id=user_id, school_id=school_id)


def resolve_scope(session: Session, user_id: str | None) -> Scope:
    """Build the Scope for an authenticated user id, or raise PermissionDenied."""
    if not user_id:
        raise PermissionDenied("Missing user identity")
    profile = (
        session.query(UserProfile)
        .filter(UserProfile.user_id == user_id)
        .one_or_none()
    )
    if profile is None:
        raise PermissionDenied("No profile for this user")
    return Scope(role=profile.role, user_id=profile.user_id,
                 school_id=profile.school_id)


def students_in_hierarchy(
    query: Query,
    *,
    school_id: str = "",
    block_id: str = "",
    district_id: str = "",
    state_id: str = "",
) -> Query:
    """Narrow a Student query to the most specific hierarchy level given."""
    if school_id:
        return query.filter(Student.school_id == school_id)
    if not (block_id or district_id or state_id):
        return query

    query = query.join(School, Student.school_id == School.id)
    if block_id:
        return query.filter(School.block_id == block_id)
    query = query.join(Block, School.block_id == Block.id)
    if district_id:
        return query.filter(Block.district_id == district_id)
    query = query.join(District, Block.district_id == District.id)
    return query.filter(District.state_id == state_id)
