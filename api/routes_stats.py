"""
api.routes_stats - Dashboard counts and liveness.
"""

from flask import jsonify

from api import api_bp
from api.context import current_scope
from db import get_session
from services.student_service import StudentService


@api_bp.route("/health")
def health():
    return jsonify({"status": "ok"})


@api_bp.route("/stats")
def stats():
    """GET /api/v1/stats - admin: hierarchy totals; school: own student totals"""
    session = get_session()
    try:
        scope = current_scope(session)
        return jsonify(StudentService.dashboard_stats(session, scope))
    finally:
        session.close()
