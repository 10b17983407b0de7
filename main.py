#!/usr/bin/env python3
"""
SchoolReg - Student Registry Web Service
=========================================

Single-command run:  python main.py

See config.py for all environment-variable tunables.
"""

from __future__ import annotations

import logging

from flask import Flask, jsonify

import config
from db import init_db, get_session, State, District, Block, UserProfile, ROLE_ADMIN
from api import api_bp

logger = logging.getLogger("schoolreg")

# Sample hierarchy: (state, code) → [(district, code) → [(block, code)]]
SAMPLE_HIERARCHY = {
    ("Karnataka", "KA"): {
        ("Bangalore Urban", "BU"): [("Bangalore North", "BN"), ("Bangalore South", "BS")],
        ("Mysore", "MY"): [("Mysore Urban", "MU")],
    },
    ("Tamil Nadu", "TN"): {
        ("Chennai", "CH"): [],
    },
    ("Maharashtra", "MH"): {},
}


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(level=level or config.LOG_LEVEL, format=config.LOG_FORMAT)


def create_app(db_url: str | None = None) -> Flask:
    """Flask application factory."""

    app = Flask(__name__)
    app.secret_key = config.SECRET
    app.config["MAX_CONTENT_LENGTH"] = config.MAX_UPLOAD_BYTES

    # ── Initialise database ─────────────────────────────────────────
    init_db(db_url or config.DB_URL)

    # ── Register blueprints ─────────────────────────────────────────
    app.register_blueprint(api_bp)

    # ── Error handlers ──────────────────────────────────────────────
    @app.errorhandler(404)
    def _404(e):
        return jsonify({"error": "not found"}), 404

    @app.errorhandler(500)
    def _500(e):
        return jsonify({"error": "internal server error"}), 500

    return app


def seed_if_empty() -> None:
    """Insert the sample hierarchy and a bootstrap admin into an empty database."""
    session = get_session()
    try:
        if session.query(State).count() == 0:
            for (s_name, s_code), districts in SAMPLE_HIERARCHY.items():
                state = State(name=s_name, code=s_code)
                for (d_name, d_code), blocks in districts.items():
                    district = District(name=d_name, code=d_code)
                    district.blocks = [Block(name=b, code=c) for b, c in blocks]
                    state.districts.append(district)
                session.add(state)
            logger.info("Seeded sample hierarchy (%d states)", len(SAMPLE_HIERARCHY))

        if session.query(UserProfile).count() == 0 and config.BOOTSTRAP_ADMIN_USER:
            session.add(UserProfile(
                user_id=config.BOOTSTRAP_ADMIN_USER,
                role=ROLE_ADMIN,
                name="Administrator",
                email=config.BOOTSTRAP_ADMIN_EMAIL,
            ))
            logger.info("Created bootstrap admin profile '%s'", config.BOOTSTRAP_ADMIN_USER)

        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def main():
    configure_logging()
    print("=" * 56)
    print("  SchoolReg - Student Registry")
    print("=" * 56)

    app = create_app()
    print(f"  Database: {config.DB_URL}")
    print(f"  Photos:   {config.PHOTOS_DIR}")

    if config.SEED_SAMPLE_DATA:
        seed_if_empty()

    print(f"\n  http://{config.HOST}:{config.PORT}/api/v1/health")
    print("=" * 56)

    app.run(host=config.HOST, port=config.PORT, debug=config.DEBUG)


if __name__ == "__main__":
    main()
