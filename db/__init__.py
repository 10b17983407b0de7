"""
db - Database layer.

Public API:
    init_db()       → create engine + tables
    get_session()   → new Session
    State, District, Block, School,
    UserProfile, Student, ImportLog → ORM models
"""

from db.engine import init_db, get_session, dispose_db     # noqa: F401
from db.models import (                                     # noqa: F401
    Base, State, District, Block, School,
    UserProfile, Student, ImportLog,
    ROLE_ADMIN, ROLE_SCHOOL, ROLE_EDITOR, ROLES,
)
