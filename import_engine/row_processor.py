"""
import_engine.row_processor - Persist one ParsedRow.

Single-responsibility: given a validated row and a session, resolve
student → school → class, then create or update the enrollment.
Runs inside the caller's SAVEPOINT; raises on any problem and leaves
rollback to the caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from import_engine.row_parser import ParsedRow
from services.students_service import find_or_create_student
from services.schools_service import find_or_create_school
from services.classes_service import find_or_create_class
from services.enrollment_service import create_enrollment


class RowError(Exception):
    """Raised when a row cannot be imported."""
    pass


@dataclass(frozen=True)
class RowOutcome:
    student_id: int
    school_inep: int
    class_id: int
    enrollment_id: int
    new_student: bool
    new_school: bool
    new_class: bool
    new_enrollment: bool


class RowProcessor:

    def __init__(self, changed_by: Optional[int] = None):
        self.changed_by = changed_by   # profissional_id written to the audit trail

    def process(self, session: Session, row: ParsedRow) -> RowOutcome:
        try:
            student_id, new_student = find_or_create_student(
                session,
                full_name=row.full_name, birth_date=row.birth_date,
                sex=row.sex, cpf=row.cpf, nis=row.nis,
            )
            school_inep, new_school = find_or_create_school(
                session, name=row.school_name, inep=row.inep,
            )
            class_id, new_class = find_or_create_class(
                session,
                name=row.class_name, period=row.period,
                school_inep=school_inep, school_year=row.school_year,
            )
            enrollment_id, new_enrollment = create_enrollment(
                session,
                student_id=student_id, school_inep=school_inep,
                class_name=row.class_name, period=row.period,
                school_year=row.school_year, changed_by=self.changed_by,
            )
        except ValueError as exc:
            raise RowError(str(exc)) from exc

        return RowOutcome(
            student_id=student_id, school_inep=school_inep,
            class_id=class_id, enrollment_id=enrollment_id,
            new_student=new_student, new_school=new_school,
            new_class=new_class, new_enrollment=new_enrollment,
        )
