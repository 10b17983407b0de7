"""
api.routes_export - /api/v1/export spreadsheet download.
"""

import io

from flask import send_file

from api import api_bp
from api.context import current_scope
from api.routes_import import XLSX_MIMETYPE
from api.routes_students import search_filters
from db import get_session
from export_engine import build_export, export_filename
from services.student_service import StudentService


@api_bp.route("/export")
def api_export_xlsx():
    """
    GET /api/v1/export?q=&school_id=&block_id=&district_id=&state_id=&class=&section=

    Same filters as /students, without the row limit.
    """
    filters = search_filters()
    session = get_session()
    try:
        scope = current_scope(session)
        students = StudentService.search(session, scope, limit=None, **filters)

        scope_name = None
        school_id = filters["school_id"] or ("" if scope.is_admin else scope.school_id)
        if school_id:
            scope_name = StudentService.get_school(session, scope, school_id).name

        data = build_export(students)
    finally:
        session.close()

    return send_file(io.BytesIO(data), mimetype=XLSX_MIMETYPE,
                     as_attachment=True, download_name=export_filename(scope_name))
