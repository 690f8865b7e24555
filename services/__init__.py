"""
services - Business-logic layer sitting between API/import engine and DB.
"""

from services.students_service import find_or_create_student, get_student     # noqa: F401
from services.schools_service import find_or_create_school, get_school        # noqa: F401
from services.classes_service import find_or_create_class                     # noqa: F401
from services.enrollment_service import create_enrollment, update_enrollment       # noqa: F401
from services.audit_service import log_enrollment_change                      # noqa: F401
from services.sequence_service import next_inep                               # noqa: F401
