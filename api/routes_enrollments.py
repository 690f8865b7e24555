"""
api.routes_enrollments - Manual enrollment edits and their audit trail.

Managers only.  Every effective change is written to audit_logs with
the editing professional, the client address and the User-Agent.
"""

import logging

from flask import g, request, jsonify

import config
from api import api_bp
from api.auth import manager_required
from db import get_session
from services.audit_service import audit_logs_for_enrollment
from services.enrollment_service import update_enrollment

logger = logging.getLogger(__name__)


@api_bp.route("/enrollments/<int:enrollment_id>", methods=["POST"])
@manager_required
def api_update_enrollment(enrollment_id: int):
    """
    POST /api/v1/enrollments/<id>
    Body: {"class_name": "3º Ano B", "period": "Tarde", "notes": "..."}

    School and year are not editable here.
    """
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        return jsonify({"error": "JSON object body required"}), 400

    session = get_session()
    try:
        result = update_enrollment(
            session, enrollment_id,
            class_name=body.get("class_name"),
            period=body.get("period"),
            notes=body.get("notes"),
            changed_by=g.user["profissional_id"],
            ip_address=request.remote_addr,
            user_agent=request.headers.get("User-Agent"),
        )
        if result is None:
            return jsonify({"error": "enrollment not found"}), 404
        session.commit()
    except ValueError as exc:
        session.rollback()
        return jsonify({"error": str(exc)}), 400
    finally:
        session.close()

    enrollment, audit_log_id = result
    if audit_log_id is not None:
        logger.info(f"Enrollment {enrollment_id} updated by "
                    f"profissional {g.user['profissional_id']}")
    return jsonify({"success": True,
                    "enrollment": enrollment.to_dict(),
                    "audit_log_id": audit_log_id})


@api_bp.route("/audit/enrollment/<int:enrollment_id>")
@manager_required
def api_enrollment_audit(enrollment_id: int):
    """GET /api/v1/audit/enrollment/<id>?limit=50 - newest first."""
    try:
        limit = int(request.args.get("limit", config.AUDIT_DEFAULT_LIMIT))
    except ValueError:
        return jsonify({"error": "limit must be an integer"}), 400
    limit = max(1, min(limit, config.AUDIT_MAX_LIMIT))

    session = get_session()
    try:
        logs = audit_logs_for_enrollment(session, enrollment_id, limit=limit)
        return jsonify({"enrollment_id": enrollment_id,
                        "logs": [entry.to_dict() for entry in logs]})
    finally:
        session.close()
