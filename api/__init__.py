"""
api - JSON endpoints under /api/v1.

Import upload + pre-flight, school and student lookups, manual enrollment
edits and the enrollment audit trail.  Every route module registers on api_bp.
"""

from flask import Blueprint

api_bp = Blueprint("api", __name__, url_prefix="/api/v1")

from api import routes_import     # noqa: F401, E402
from api import routes_schools    # noqa: F401, E402
from api import routes_students   # noqa: F401, E402
from api import routes_enrollments  # noqa: F401, E402
from api import errors            # noqa: F401, E402
