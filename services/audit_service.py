"""
services.audit_service - Audit trail for enrollment changes.

Entries are written inside the caller's transaction, so an enrollment
update and its audit row commit or roll back together.
"""

from __future__ import annotations

import json
from typing import Optional

from sqlalchemy.orm import Session

import config
from db.models import AuditLog, Enrollment

ENROLLMENT_TABLE = Enrollment.__tablename__


def log_enrollment_change(
    session: Session,
    enrollment_id: int,
    old_values: dict,
    new_values: dict,
    changed_by: Optional[int],
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> int:
    """Record an UPDATE on one enrollment.  Returns the audit log id."""
    entry = AuditLog(
        table_name=ENROLLMENT_TABLE,
        record_id=enrollment_id,
        action_type="UPDATE",
        changed_by=changed_by,
        old_values=json.dumps(old_values, ensure_ascii=False, default=str),
        new_values=json.dumps(new_values, ensure_ascii=False, default=str),
        ip_address=ip_address[:64] if ip_address else None,
        user_agent=user_agent[:500] if user_agent else None,
    )
    session.add(entry)
    session.flush()
    return entry.id


def audit_logs_for_student(
    session: Session, student_id: int, limit: int = config.AUDIT_DEFAULT_LIMIT,
) -> list[AuditLog]:
    """Newest-first audit entries for every enrollment of a student."""
    enrollment_ids = (session.query(Enrollment.id)
                      .filter(Enrollment.student_id == student_id))
    return (session.query(AuditLog)
            .filter(AuditLog.table_name == ENROLLMENT_TABLE,
                    AuditLog.record_id.in_(enrollment_ids.scalar_subquery()))
            .order_by(AuditLog.changed_at.desc(), AuditLog.id.desc())
            .limit(limit)
            .all())


def audit_logs_for_enrollment(
    session: Session, enrollment_id: int, limit: int = config.AUDIT_DEFAULT_LIMIT,
) -> list[AuditLog]:
    return (session.query(AuditLog)
            .filter(AuditLog.table_name == ENROLLMENT_TABLE,
                    AuditLog.record_id == enrollment_id)
            .order_by(AuditLog.changed_at.desc(), AuditLog.id.desc())
            .limit(limit)
            .all())
