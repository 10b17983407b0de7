"""
services.user_service - User profile and role management (admin only).

Role rules:
  admin  - no school
  school - exactly one school
  editor - optional school, sees every school
"""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from db.models import School, UserProfile, ROLES, ROLE_ADMIN, ROLE_SCHOOL
from services.errors import NotFound, PermissionDenied, ValidationError
from services.scope import Scope

logger = logging.getLogger(__name__)


def _require_admin(scope: Scope) -> None:
    if not scope.can_manage_users():
        raise PermissionDenied("Only administrators can manage users")


def _clean(session: Session, data: dict, current: UserProfile | None = None) -> dict:
    def pick(key: str) -> str:
        if key in data:
            return str(data.get(key) or "").strip()
        return str(getattr(current, key, "") or "") if current else ""

    values = {
        "user_id": pick("user_id"),
        "name": pick("name"),
        "email": pick("email"),
        "role": pick("role") or ROLE_SCHOOL,
        "school_id": pick("school_id") or None,
    }

    errors: dict[str, str] = {}
    for key in ("user_id", "name", "email"):
        if not values[key]:
            errors[key] = f"{key.replace('_', ' ').capitalize()} is required"
    if values["role"] not in ROLES:
        errors["role"] = f"Role must be one of: {', '.join(ROLES)}"
    elif values["role"] == ROLE_SCHOOL and not values["school_id"]:
        errors["school_id"] = "Please select a school for school users"
    elif values["role"] == ROLE_ADMIN:
        values["school_id"] = None

    if values["school_id"] and session.get(School, values["school_id"]) is None:
        errors["school_id"] = "School does not exist"

    if not errors:
        query = session.query(UserProfile).filter(UserProfile.user_id == values["user_id"])
        if current is not None:
            query = query.filter(UserProfile.id != current.id)
        if query.first() is not None:
            errors["user_id"] = "A profile for this user already exists"

    if errors:
        raise ValidationError("Invalid user profile", errors)
    return values


class UserService:

    @staticmethod
    def list_profiles(session: Session, scope: Scope) -> list[UserProfile]:
        _require_admin(scope)
        return session.query(UserProfile).order_by(UserProfile.name).all()

    @staticmethod
    def get(session: Session, scope: Scope, profile_id: str) -> UserProfile:
        _require_admin(scope)
        profile = session.get(UserProfile, profile_id)
        if profile is None:
            raise NotFound("User not found")
        return profile

    @staticmethod
    def create(session: Session, scope: Scope, data: dict) -> UserProfile:
        _require_admin(scope)
        profile = UserProfile(**_clean(session, data))
        session.add(profile)
        session.flush()
        logger.info("Created %s profile for %s", profile.role, profile.user_id)
        return profile

    @staticmethod
    def update(session: Session, scope: Scope, profile_id: str, data: dict) -> UserProfile:
        profile = UserService.get(session, scope, profile_id)
        for key, val in _clean(session, data, current=profile).items():
            setattr(profile, key, val)
        session.flush()
        return profile

    @staticmethod
    def delete(session: Session, scope: Scope, profile_id: str) -> None:
        profile = UserService.get(session, scope, profile_id)
        if profile.user_id == scope.user_id:
            raise ValidationError("You cannot delete your own profile")
        session.delete(profile)
        session.flush()
