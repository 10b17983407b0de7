"""
api.errors - JSON error handlers for the API blueprint.
"""

import logging

from flask import jsonify

from api import api_bp
from import_engine import SchemaError
from services.errors import ServiceError, ValidationError
from services.photo_service import PhotoError

logger = logging.getLogger(__name__)


@api_bp.errorhandler(ServiceError)
def api_service_error(e: ServiceError):
    body = {"error": str(e)}
    if isinstance(e, ValidationError) and e.errors:
        body["fields"] = e.errors
    return jsonify(body), e.status_code


@api_bp.errorhandler(SchemaError)
def api_schema_error(e: SchemaError):
    return jsonify({"error": str(e)}), 400


@api_bp.errorhandler(PhotoError)
def api_photo_error(e: PhotoError):
    return jsonify({"error": str(e)}), 400


@api_bp.errorhandler(404)
def api_not_found(_e):
    return jsonify({"error": "not found"}), 404


@api_bp.errorhandler(400)
def api_bad_request(_e):
    return jsonify({"error": "bad request"}), 400


@api_bp.errorhandler(413)
def api_too_large(_e):
    return jsonify({"error": "upload too large"}), 413


@api_bp.errorhandler(500)
def api_server_error(e):
    logger.exception("Unhandled API error: %s", e)
    return jsonify({"error": "internal server error"}), 500
