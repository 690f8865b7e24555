"""
services.students_service - Student lookup and find-or-create.

All session management is the caller's responsibility.  Nothing here
commits; new rows are flushed so their ids are available at once.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from db.models import Student
from schema.normalizers import clean_cpf, normalize_sex, parse_date


def _cpf_digits(column):
    """SQL expression stripping the usual CPF punctuation from a column."""
    return func.replace(func.replace(func.replace(column, ".", ""), "-", ""), "/", "")


def find_or_create_student(
    session: Session,
    *,
    full_name: Optional[str],
    birth_date: date | str | None,
    sex: Optional[str] = None,
    cpf: Optional[str] = None,
    nis: Optional[str] = None,
) -> tuple[int, bool]:
    """
    Resolve a student by CPF, then NIS, then exact (name, birth date).
    Inserts a new student when nothing matches.

    Returns (student_id, is_new).  Raises ValueError when the name or
    birth date is missing.
    """
    name = (full_name or "").strip()
    if not name or not birth_date:
        raise ValueError("Full name and birth date are required")
    if isinstance(birth_date, str):
        birth_date = parse_date(birth_date)

    cpf_digits = clean_cpf(cpf) if cpf else ""
    if cpf_digits:
        found = (session.query(Student.id)
                 .filter(_cpf_digits(Student.cpf) == cpf_digits)
                 .first())
        if found:
            return found.id, False

    nis = (nis or "").strip()
    if nis:
        found = session.query(Student.id).filter(Student.nis == nis).first()
        if found:
            return found.id, False

    found = (session.query(Student.id)
             .filter(Student.full_name == name, Student.birth_date == birth_date)
             .first())
    if found:
        return found.id, False

    student = Student(
        full_name=name,
        birth_date=birth_date,
        sex=normalize_sex(sex),
        cpf=cpf_digits or None,
        nis=nis or None,
    )
    session.add(student)
    session.flush()
    return student.id, True


def get_student(session: Session, student_id: int) -> Student | None:
    return session.get(Student, student_id)
