"""
services.classes_service - Class (turma) find-or-create.

Period is normalised before the lookup, so "manha", "M" and "Manhã"
resolve to the same class.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy.orm import Session

from db.models import SchoolClass
from schema.normalizers import normalize_period


def normalize_class_data(name: Optional[str], period: Optional[str]) -> tuple[str, str]:
    """
    Return (trimmed name, canonical period).
    Raises ValueError on missing data or an unknown period.
    """
    name = (name or "").strip()
    if not name or not period:
        raise ValueError("Incomplete class data")
    canonical = normalize_period(period)
    if canonical is None:
        raise ValueError(f"Invalid period: {period}")
    return name, canonical


def find_or_create_class(
    session: Session,
    *,
    name: Optional[str],
    period: Optional[str],
    school_inep: Optional[int],
    school_year: Optional[int],
) -> tuple[int, bool]:
    """Return (class_id, is_new) for (school, name, period, year)."""
    if not school_inep or not school_year:
        raise ValueError("Incomplete class data")
    name, period = normalize_class_data(name, period)

    found = (session.query(SchoolClass.id)
             .filter(SchoolClass.school_inep == school_inep,
                     SchoolClass.name == name,
                     SchoolClass.period == period,
                     SchoolClass.school_year == school_year)
             .first())
    if found:
        return found.id, False

    klass = SchoolClass(school_inep=school_inep, name=name,
                        period=period, school_year=school_year)
    session.add(klass)
    session.flush()
    return klass.id, True
