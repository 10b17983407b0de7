"""
api.routes_import - /api/v1/import endpoints.

Accepts an xlsx workbook via multipart upload and imports it into one
school.  The run is synchronous; the response carries the outcome.
"""

import io

from flask import request, jsonify, send_file

from api import api_bp
from api.context import arg, current_scope, int_arg
from db import get_session
from db.models import ImportLog
from import_engine import run_import, build_template, TEMPLATE_FILENAME
from services.student_service import StudentService

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@api_bp.route("/import", methods=["POST"])
def api_import_xlsx():
    """
    POST /api/v1/import?school_id=…

    Multipart: field name 'file' (school_id may also be a form field).
    School users import into their own school when school_id is omitted.
    """
    f = request.files.get("file")
    if not f:
        return jsonify({"error": "no file in upload"}), 400
    content = f.read()
    if not content:
        return jsonify({"error": "empty file"}), 400

    session = get_session()
    try:
        scope = current_scope(session)
        school_id = arg("school_id") or request.form.get("school_id", "").strip() \
            or scope.school_id or ""
        school = StudentService.get_school(session, scope, school_id)
        school_id, user_id = school.id, scope.user_id
    finally:
        session.close()

    report = run_import(content, school_id=school_id, user_id=user_id,
                        filename=f.filename or "unknown")
    return jsonify(report.to_dict())


@api_bp.route("/import/template")
def api_import_template():
    """GET /api/v1/import/template → xlsx with headers and two example rows"""
    return send_file(io.BytesIO(build_template()), mimetype=XLSX_MIMETYPE,
                     as_attachment=True, download_name=TEMPLATE_FILENAME)


@api_bp.route("/import/logs")
def api_import_logs():
    """GET /api/v1/import/logs?limit=50  (admins see every run, others their own)"""
    limit = int_arg("limit", 50)
    session = get_session()
    try:
        scope = current_scope(session)
        query = session.query(ImportLog)
        if not scope.can_manage_users():
            query = query.filter(ImportLog.user_id == scope.user_id)
        logs = query.order_by(ImportLog.created_at.desc()).limit(limit).all()
        return jsonify({"logs": [log.to_dict() for log in logs]})
    finally:
        session.close()
