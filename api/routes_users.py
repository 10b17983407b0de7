"""
api.routes_users - /api/v1/users profile management (admins only).
"""

from flask import jsonify

from api import api_bp
from api.context import current_scope, json_body
from db import get_session
from services.user_service import UserService


@api_bp.route("/users")
def list_users():
    session = get_session()
    try:
        scope = current_scope(session)
        users = UserService.list_profiles(session, scope)
        return jsonify({"users": [u.to_dict() for u in users]})
    finally:
        session.close()


@api_bp.route("/users/me")
def current_user():
    """GET /api/v1/users/me - the caller's own scope"""
    session = get_session()
    try:
        scope = current_scope(session)
        return jsonify({"user_id": scope.user_id, "role": scope.role,
                        "school_id": scope.school_id})
    finally:
        session.close()


@api_bp.route("/users", methods=["POST"])
def create_user():
    """POST /api/v1/users  JSON: {user_id, name, email, role, school_id}"""
    session = get_session()
    try:
        scope = current_scope(session)
        profile = UserService.create(session, scope, json_body())
        session.commit()
        return jsonify(profile.to_dict()), 201
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@api_bp.route("/users/<profile_id>", methods=["PUT"])
def update_user(profile_id: str):
    session = get_session()
    try:
        scope = current_scope(session)
        profile = UserService.update(session, scope, profile_id, json_body())
        session.commit()
        return jsonify(profile.to_dict())
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@api_bp.route("/users/<profile_id>", methods=["DELETE"])
def delete_user(profile_id: str):
    session = get_session()
    try:
        scope = current_scope(session)
        UserService.delete(session, scope, profile_id)
        session.commit()
        return jsonify({"deleted": profile_id})
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
