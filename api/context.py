"""
api.context - Per-request helpers shared by the route modules.
"""

from __future__ import annotations

from flask import request
from sqlalchemy.orm import Session

import config
from services.scope import Scope, resolve_scope


def current_scope(session: Session) -> Scope:
    """Scope of the authenticated caller named in the identity header."""
    return resolve_scope(session, request.headers.get(config.USER_HEADER, "").strip())


def json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def arg(name: str) -> str:
    return request.args.get(name, "").strip()


def int_arg(name: str, default: int) -> int:
    try:
        return int(request.args.get(name, default))
    except (TypeError, ValueError):
        return default
