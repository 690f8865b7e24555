"""
api.routes_students - /api/v1/students and enrollment audit endpoints.
"""

from flask import request, jsonify

import config
from api import api_bp
from api.auth import login_required, manager_required
from db import get_session
from services.audit_service import audit_logs_for_student
from services.enrollment_service import enrollments_for_student
from services.students_service import get_student


@api_bp.route("/students/<int:student_id>")
@login_required
def api_get_student(student_id: int):
    """One student with the enrollments it holds, newest year first."""
    session = get_session()
    try:
        student = get_student(session, student_id)
        if student is None:
            return jsonify({"error": "student not found"}), 404
        data = student.to_dict()
        data["enrollments"] = [
            e.to_dict() for e in enrollments_for_student(session, student_id)
        ]
        return jsonify(data)
    finally:
        session.close()


@api_bp.route("/audit/student/<int:student_id>")
@manager_required
def api_student_audit(student_id: int):
    """
    GET /api/v1/audit/student/<id>?limit=50

    Enrollment changes for one student, newest first.
    """
    try:
        limit = int(request.args.get("limit", config.AUDIT_DEFAULT_LIMIT))
    except ValueError:
        return jsonify({"error": "limit must be an integer"}), 400
    limit = max(1, min(limit, config.AUDIT_MAX_LIMIT))

    session = get_session()
    try:
        logs = audit_logs_for_student(session, student_id, limit=limit)
        return jsonify({"student_id": student_id,
                        "logs": [entry.to_dict() for entry in logs]})
    finally:
        session.close()
