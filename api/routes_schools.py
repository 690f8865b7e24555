"""
api.routes_schools - /api/v1/schools read endpoints.
"""

from flask import jsonify

from api import api_bp
from api.auth import login_required
from db import get_session
from services.schools_service import get_school, list_schools


@api_bp.route("/schools")
@login_required
def api_list_schools():
    """All schools ordered by name."""
    session = get_session()
    try:
        return jsonify([s.to_dict() for s in list_schools(session)])
    finally:
        session.close()


@api_bp.route("/schools/<int:inep>")
@login_required
def api_get_school(inep: int):
    session = get_session()
    try:
        school = get_school(session, inep)
        if school is None:
            return jsonify({"error": "school not found"}), 404
        return jsonify(school.to_dict())
    finally:
        session.close()
