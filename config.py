"""
SchoolReg - Centralised configuration.

All tunables live here.  Every other module imports from config
instead of reading os.environ directly.
"""

from __future__ import annotations
import os
from pathlib import Path


# ── Paths ──────────────────────────────────────────────────────────────
BASE_DIR    = Path(__file__).resolve().parent
PHOTOS_DIR  = Path(os.environ.get("SCHOOLREG_PHOTOS_DIR", BASE_DIR / "student_photos")).resolve()

# ── Database ───────────────────────────────────────────────────────────
DB_URL = os.environ.get("SCHOOLREG_DB", f"sqlite:///{BASE_DIR / 'schoolreg.sqlite'}")

# Seed the sample State → District → Block hierarchy into an empty DB
SEED_SAMPLE_DATA = os.environ.get("SCHOOLREG_SEED", "1") == "1"

# ── Server ─────────────────────────────────────────────────────────────
HOST   = os.environ.get("SCHOOLREG_HOST", "0.0.0.0")
PORT   = int(os.environ.get("SCHOOLREG_PORT", "5000"))
DEBUG  = os.environ.get("SCHOOLREG_DEBUG", "0") == "1"
SECRET = os.environ.get("SCHOOLREG_SECRET", "schoolreg-dev-key-change-me")

# ── Logging ────────────────────────────────────────────────────────────
LOG_LEVEL  = os.environ.get("SCHOOLREG_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# ── Identity ───────────────────────────────────────────────────────────
# Header carrying the authenticated user id, set by the fronting auth proxy
USER_HEADER = os.environ.get("SCHOOLREG_USER_HEADER", "X-User-Id")

# Profile created on first start so the API can be used at all
BOOTSTRAP_ADMIN_USER  = os.environ.get("SCHOOLREG_ADMIN_USER", "admin")
BOOTSTRAP_ADMIN_EMAIL = os.environ.get("SCHOOLREG_ADMIN_EMAIL", "admin@example.org")

# ── Import / export ────────────────────────────────────────────────────
IMPORT_ERROR_PREVIEW = int(os.environ.get("SCHOOLREG_IMPORT_ERROR_PREVIEW", "10"))
MAX_UPLOAD_BYTES     = int(os.environ.get("SCHOOLREG_MAX_UPLOAD_BYTES", str(16 * 1024 * 1024)))

# ── Photos / ID cards ──────────────────────────────────────────────────
PHOTO_WIDTH   = 300
PHOTO_HEIGHT  = 400
PHOTO_QUALITY = 80

# ── API ────────────────────────────────────────────────────────────────
API_DEFAULT_LIMIT = 100
API_MAX_LIMIT     = 1000
