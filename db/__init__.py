"""
db - Database layer.

Public API:
    init_db()       → create engine + tables
    get_session()   → new Session
    Student, School, SchoolClass, Enrollment, AuditLog → ORM models
"""

from db.engine import init_db, get_session          # noqa: F401
from db.models import (                             # noqa: F401
    Base,
    Student,
    School,
    SchoolClass,
    Enrollment,
    AuditLog,
)
