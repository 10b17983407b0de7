"""
services - Business-logic layer sitting between the API and the DB.

Every service call takes an explicit Scope and a caller-managed Session.
"""

from services.errors import (                                   # noqa: F401
    ServiceError, NotFound, PermissionDenied, ValidationError,
)
from services.scope import Scope, resolve_scope                 # noqa: F401
from services.hierarchy_service import HierarchyService         # noqa: F401
from services.student_service import StudentService             # noqa: F401
from services.user_service import UserService                   # noqa: F401
