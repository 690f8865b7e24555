"""
services.enrollment_service - Enrollment create-or-update.

An enrollment is unique per (student, school, school_year).  Class
name and period live on the enrollment row as plain strings; when the
enrollment already exists they are updated in place and the change
goes to the audit trail.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from db.models import Enrollment
from services.audit_service import log_enrollment_change
from services.classes_service import find_or_create_class, normalize_class_data


def create_enrollment(
    session: Session,
    *,
    student_id: int,
    school_inep: int,
    class_name: str,
    period: str,
    school_year: int,
    changed_by: Optional[int] = None,
) -> tuple[int, bool]:
    """Return (enrollment_id, is_new)."""
    class_name, period = normalize_class_data(class_name, period)

    existing = (session.query(Enrollment)
                .filter(Enrollment.student_id == student_id,
                        Enrollment.school_inep == school_inep,
                        Enrollment.school_year == school_year)
                .first())

    if existing is None:
        enrollment = Enrollment(
            student_id=student_id, school_inep=school_inep,
            school_year=school_year, class_name=class_name, period=period,
        )
        session.add(enrollment)
        session.flush()
        return enrollment.id, True

    old = {"class_name": existing.class_name, "period": existing.period}
    new = {"class_name": class_name, "period": period}
    if old != new:
        existing.class_name = class_name
        existing.period = period
        log_enrollment_change(session, existing.id, old, new, changed_by)
    existing.updated_at = datetime.now(timezone.utc)
    session.flush()
    return existing.id, False


def enrollments_for_student(session: Session, student_id: int) -> list[Enrollment]:
    return (session.query(Enrollment)
            .filter(Enrollment.student_id == student_id)
            .order_by(Enrollment.school_year.desc())
            .all())


CLASS_NAME_MAX_LENGTH = 100
NOTES_MAX_LENGTH = 500


def update_enrollment(
    session: Session,
    enrollment_id: int,
    *,
    class_name,
    period,
    notes=None,
    changed_by: Optional[int] = None,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> tuple[Enrollment, Optional[int]] | None:
    """
    Manual edit of an existing enrollment's class, period and notes.

    School and year are the enrollment's identity and stay as they are.
    The class is resolved the same way the import does, so the class
    catalogue keeps up with manual edits.

    Returns (enrollment, audit_log_id), with audit_log_id None when
    nothing changed, or None when the enrollment does not exist.
    Raises ValueError on invalid input.
    """
    if not isinstance(class_name, str) or not isinstance(period, str):
        raise ValueError("Class name and period must be text")
    if notes is not None and not isinstance(notes, str):
        raise ValueError("Notes must be text")
    class_name, period = normalize_class_data(class_name, period)
    if len(class_name) > CLASS_NAME_MAX_LENGTH:
        raise ValueError(f"Class name longer than {CLASS_NAME_MAX_LENGTH} characters")
    notes = (notes or "").strip() or None
    if notes and len(notes) > NOTES_MAX_LENGTH:
        raise ValueError(f"Notes longer than {NOTES_MAX_LENGTH} characters")

    enrollment = session.get(Enrollment, enrollment_id)
    if enrollment is None:
        return None

    find_or_create_class(
        session, name=class_name, period=period,
        school_inep=enrollment.school_inep, school_year=enrollment.school_year,
    )

    old = {"class_name": enrollment.class_name, "period": enrollment.period,
           "notes": enrollment.notes}
    new = {"class_name": class_name, "period": period, "notes": notes}
    if old == new:
        return enrollment, None

    enrollment.class_name = class_name
    enrollment.period = period
    enrollment.notes = notes
    enrollment.updated_at = datetime.now(timezone.utc)
    audit_id = log_enrollment_change(
        session, enrollment.id, old, new, changed_by,
        ip_address=ip_address, user_agent=user_agent,
    )
    return enrollment, audit_id
