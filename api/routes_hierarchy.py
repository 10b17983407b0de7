"""
api.routes_hierarchy - /api/v1/{states,districts,blocks,schools} CRUD.

List endpoints accept the parent id as a query parameter so dropdowns
can cascade:  /districts?state_id=…  /blocks?district_id=…  /schools?block_id=…
"""

from flask import jsonify

from api import api_bp
from api.context import arg, current_scope, json_body
from db import get_session
from services.hierarchy_service import HierarchyService, get_level

LEVEL_RULE = "<any(states, districts, blocks, schools):level>"


@api_bp.route(f"/{LEVEL_RULE}")
def list_level(level: str):
    """GET /api/v1/{level}?{parent}_id="""
    parent_attr = get_level(level).parent_attr
    parent_id = arg(parent_attr) if parent_attr else ""

    session = get_session()
    try:
        scope = current_scope(session)
        items = HierarchyService.list_level(session, scope, level, parent_id)
        return jsonify({level: [i.to_dict() for i in items], "total": len(items)})
    finally:
        session.close()


@api_bp.route(f"/{LEVEL_RULE}/<obj_id>")
def get_node(level: str, obj_id: str):
    session = get_session()
    try:
        scope = current_scope(session)
        return jsonify(HierarchyService.get(session, scope, level, obj_id).to_dict())
    finally:
        session.close()


@api_bp.route(f"/{LEVEL_RULE}", methods=["POST"])
def create_node(level: str):
    """POST /api/v1/{level}  JSON: {name, code, <parent>_id, …}"""
    session = get_session()
    try:
        scope = current_scope(session)
        obj = HierarchyService.create(session, scope, level, json_body())
        session.commit()
        return jsonify(obj.to_dict()), 201
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@api_bp.route(f"/{LEVEL_RULE}/<obj_id>", methods=["PUT"])
def update_node(level: str, obj_id: str):
    session = get_session()
    try:
        scope = current_scope(session)
        obj = HierarchyService.update(session, scope, level, obj_id, json_body())
        session.commit()
        session.refresh(obj)
        return jsonify(obj.to_dict())
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@api_bp.route(f"/{LEVEL_RULE}/<obj_id>", methods=["DELETE"])
def delete_node(level: str, obj_id: str):
    """DELETE /api/v1/{level}/{id}  (cascades to everything beneath)"""
    session = get_session()
    try:
        scope = current_scope(session)
        HierarchyService.delete(session, scope, level, obj_id)
        session.commit()
        return jsonify({"deleted": obj_id})
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
