"""
services.hierarchy_service - CRUD over State → District → Block → School.

All session management is the caller's responsibility (open before,
close/commit after).  Every call takes the caller's Scope; reads of
states, districts and blocks are open to any profile, writes are
admin-only, and school users only ever see their own school.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from db.models import State, District, Block, School
from services.errors import NotFound, ValidationError
from services.photo_service import delete_photo
from services.scope import Scope

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Level:
    model: type
    label: str
    parent_attr: str | None = None
    parent_model: type | None = None


LEVELS: dict[str, Level] = {
    "states":    Level(State, "State"),
    "districts": Level(District, "District", "state_id", State),
    "blocks":    Level(Block, "Block", "district_id", District),
    "schools":   Level(School, "School", "block_id", Block),
}

SCHOOL_EXTRA_FIELDS = ("address", "phone", "email")


def get_level(name: str) -> Level:
    try:
        return LEVELS[name]
    except KeyError:
        raise NotFound(f"Unknown hierarchy level: {name}") from None


class HierarchyService:

    # ── Read ───────────────────────────────────────────────────────────

    @staticmethod
    def list_level(session: Session, scope: Scope, level_name: str, parent_id: str = "") -> list:
        """Children of ``parent_id`` (or everything) at one level, ordered by name."""
        level = get_level(level_name)
        query = session.query(level.model)
        if parent_id and level.parent_attr:
            query = query.filter(getattr(level.model, level.parent_attr) == parent_id)
        if level.model is School:
            query = scope.filter_schools(query)
        return query.order_by(level.model.name).all()

    @staticmethod
    def get(session: Session, scope: Scope, level_name: str, obj_id: str):
        level = get_level(level_name)
        obj = session.get(level.model, obj_id)
        if obj is None:
            raise NotFound(f"{level.label} not found")
        if level.model is School:
            scope.require_school(obj.id)
        return obj

    # ── Create ─────────────────────────────────────────────────────────

    @staticmethod
    def create(session: Session, scope: Scope, level_name: str, data: dict):
        scope.require_hierarchy_admin()
        level = get_level(level_name)

        values = _clean(level, data, partial=False)
        if level.parent_attr:
            _require_parent(session, level, values[level.parent_attr])
        _check_unique(session, level, values)

        obj = level.model(**values)
        session.add(obj)
        session.flush()
        logger.info("Created %s %s (%s)", level.label, obj.name, obj.id)
        return obj

    # ── Update ─────────────────────────────────────────────────────────

    @staticmethod
    def update(session: Session, scope: Scope, level_name: str, obj_id: str, data: dict):
        scope.require_hierarchy_admin()
        level = get_level(level_name)
        obj = HierarchyService.get(session, scope, level_name, obj_id)

        values = _clean(level, data, partial=True)
        if level.parent_attr and level.parent_attr in values:
            _require_parent(session, level, values[level.parent_attr])

        merged = {k: getattr(obj, k) for k in ("name", "code")}
        if level.parent_attr:
            merged[level.parent_attr] = getattr(obj, level.parent_attr)
        merged.update(values)
        _check_unique(session, level, merged, exclude_id=obj.id)

        for key, val in values.items():
            setattr(obj, key, val)
        session.flush()
        return obj

    # ── Delete ─────────────────────────────────────────────────────────

    @staticmethod
    def delete(session: Session, scope: Scope, level_name: str, obj_id: str) -> None:
        """Delete one node; the database cascades to everything beneath it."""
        scope.require_hierarchy_admin()
        level = get_level(level_name)
        obj = HierarchyService.get(session, scope, level_name, obj_id)

        photos = [student.photo_path
                  for school in _schools_under(obj)
                  for student in school.students if student.photo_path]

        session.delete(obj)
        session.flush()
        for photo in photos:
            delete_photo(photo)
        logger.info("Deleted %s %s (%s)", level.label, obj.name, obj_id)


# ── Private helpers ────────────────────────────────────────────────────

def _clean(level: Level, data: dict, partial: bool) -> dict:
    fields = ["name", "code"]
    if level.parent_attr:
        fields.append(level.parent_attr)

    values: dict[str, str] = {}
    errors: dict[str, str] = {}
    for key in fields:
        if partial and key not in data:
            continue
        val = str(data.get(key) or "").strip()
        if not val:
            errors[key] = f"{key.replace('_', ' ').capitalize()} is required"
        values[key] = val
    if "code" in values and level.model is not School:
        values["code"] = values["code"].upper()

    if level.model is School:
        for key in SCHOOL_EXTRA_FIELDS:
            if key in data or not partial:
                values[key] = str(data.get(key) or "").strip()

    if errors:
        raise ValidationError("Please fill in all required fields", errors)
    return values


def _require_parent(session: Session, level: Level, parent_id: str) -> None:
    if session.get(level.parent_model, parent_id) is None:
        raise ValidationError(
            f"Unknown parent {level.parent_model.__name__.lower()}",
            {level.parent_attr: "Does not exist"},
        )


def _check_unique(session: Session, level: Level, values: dict, exclude_id: str | None = None) -> None:
    """Names/codes are unique per parent; school codes and state names/codes globally."""
    model = level.model
    errors: dict[str, str] = {}
    for key in ("name", "code"):
        if key not in values:
            continue
        query = session.query(model).filter(getattr(model, key) == values[key])
        scoped_to_parent = level.parent_attr and not (model is School and key == "code")
        if scoped_to_parent:
            query = query.filter(getattr(model, level.parent_attr) == values[level.parent_attr])
        if exclude_id:
            query = query.filter(model.id != exclude_id)
        if query.first() is not None:
            errors[key] = f"{level.label} {key} '{values[key]}' already exists"
    if errors:
        raise ValidationError(f"Duplicate {level.label.lower()}", errors)


def _schools_under(obj) -> list[School]:
    if isinstance(obj, School):
        return [obj]
    if isinstance(obj, Block):
        return list(obj.schools)
    if isinstance(obj, District):
        return [s for b in obj.blocks for s in b.schools]
    if isinstance(obj, State):
        return [s for d in obj.districts for b in d.blocks for s in b.schools]
    return []
