"""
api.routes_students - /api/v1/students CRUD, photos and ID cards.
"""

import io
import json

from flask import jsonify, request, send_file

import config
from api import api_bp
from api.context import arg, current_scope, int_arg, json_body
from db import get_session
from services.errors import NotFound, ValidationError
from services.idcard_service import render_id_card
from services.photo_service import load_photo
from services.student_form import StudentForm
from services.student_service import StudentService


def search_filters() -> dict:
    """Query-string filters shared by the list and export endpoints."""
    return {
        "q": arg("q"),
        "school_id": arg("school_id"),
        "block_id": arg("block_id"),
        "district_id": arg("district_id"),
        "state_id": arg("state_id"),
        "class_label": arg("class"),
        "section": arg("section"),
    }


@api_bp.route("/students")
def list_students():
    """
    GET /api/v1/students?q=&school_id=&block_id=&district_id=&state_id=&class=&section=&limit=100
    """
    limit = min(int_arg("limit", config.API_DEFAULT_LIMIT), config.API_MAX_LIMIT)
    session = get_session()
    try:
        scope = current_scope(session)
        students = StudentService.search(session, scope, limit=limit, **search_filters())
        return jsonify({
            "total": len(students),
            "limit": limit,
            "students": [s.to_dict() for s in students],
        })
    finally:
        session.close()


@api_bp.route("/students/<student_id>")
def get_student(student_id: str):
    session = get_session()
    try:
        scope = current_scope(session)
        return jsonify(StudentService.get(session, scope, student_id).to_dict())
    finally:
        session.close()


@api_bp.route("/students", methods=["POST"])
def create_student():
    """
    POST /api/v1/students

    JSON body: {school_id, student_name, srn_no, class, section, date_of_birth}.
    School users may omit school_id.
    """
    data = json_body()
    session = get_session()
    try:
        scope = current_scope(session)
        school_id = str(data.get("school_id") or scope.school_id or "")
        student = StudentService.create(session, scope, school_id,
                                        StudentForm.from_mapping(data))
        session.commit()
        return jsonify(student.to_dict()), 201
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@api_bp.route("/students/<student_id>", methods=["PUT"])
def update_student(student_id: str):
    """PUT /api/v1/students/{id}  (full form; fields left out keep their value)"""
    data = json_body()
    session = get_session()
    try:
        scope = current_scope(session)
        current = StudentService.get(session, scope, student_id)
        form = StudentForm.from_mapping({**current.to_dict(), **data})
        student = StudentService.update(session, scope, student_id, form)
        session.commit()
        return jsonify(student.to_dict())
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@api_bp.route("/students/<student_id>", methods=["DELETE"])
def delete_student(student_id: str):
    session = get_session()
    try:
        scope = current_scope(session)
        StudentService.delete(session, scope, student_id)
        session.commit()
        return jsonify({"deleted": student_id})
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


# ── Photos ─────────────────────────────────────────────────────────────

def _crop_box():
    """Optional crop box from form field 'box' as JSON [left, top, right, bottom]."""
    raw = request.form.get("box", "").strip()
    if not raw:
        return None
    try:
        box = tuple(int(v) for v in json.loads(raw))
    except (ValueError, TypeError):
        raise ValidationError("Invalid crop box", {"box": "Expected [left, top, right, bottom]"}) from None
    if len(box) != 4:
        raise ValidationError("Invalid crop box", {"box": "Expected [left, top, right, bottom]"})
    return box


@api_bp.route("/students/<student_id>/photo", methods=["POST"])
def upload_photo(student_id: str):
    """
    POST /api/v1/students/{id}/photo

    Multipart: field 'photo', optional 'box' = JSON [left, top, right, bottom].
    """
    f = request.files.get("photo")
    if not f:
        return jsonify({"error": "no photo in upload"}), 400

    session = get_session()
    try:
        scope = current_scope(session)
        student = StudentService.set_photo(session, scope, student_id, f.read(), _crop_box())
        session.commit()
        return jsonify(student.to_dict())
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@api_bp.route("/students/<student_id>/photo")
def get_photo(student_id: str):
    session = get_session()
    try:
        scope = current_scope(session)
        student = StudentService.get(session, scope, student_id)
        if not student.photo_path:
            raise NotFound("Student has no photo")
        data = load_photo(student.photo_path)
    finally:
        session.close()
    return send_file(io.BytesIO(data), mimetype="image/jpeg",
                     download_name=f"{student.srn_no}.jpg")


@api_bp.route("/students/<student_id>/id-card")
def get_id_card(student_id: str):
    """GET /api/v1/students/{id}/id-card → PNG"""
    session = get_session()
    try:
        scope = current_scope(session)
        student = StudentService.get(session, scope, student_id)
        png = render_id_card(student)
    finally:
        session.close()
    return send_file(io.BytesIO(png), mimetype="image/png",
                     download_name=f"{student.srn_no}_id_card.png")
