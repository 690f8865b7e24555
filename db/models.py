"""
db.models - SQLAlchemy ORM declarations.

Tables
------
students     - one row per unique person.  Identity is CPF, else NIS,
               else (full_name, birth_date).
schools      - keyed by the INEP code (natural, globally unique key).
classes      - one row per (school, name, period, school_year).
enrollments  - one row per (student, school, school_year).  Class name
               and period are plain strings updated in place.
audit_logs   - old/new snapshots of in-place enrollment changes.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone

from sqlalchemy import (
    Column, String, Integer, Date, DateTime, Boolean, Text, ForeignKey,
    Index, UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, relationship


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class Student(Base):
    __tablename__ = "students"

    id         = Column(Integer, primary_key=True, autoincrement=True)
    full_name  = Column(String(300), nullable=False)
    birth_date = Column(Date, nullable=True)
    sex        = Column(String(20), nullable=True)              # Masculino | Feminino
    cpf        = Column(String(14), nullable=True, index=True)  # digits only on import
    nis        = Column(String(20), nullable=True, index=True)
    active     = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    enrollments = relationship("Enrollment", back_populates="student")

    __table_args__ = (
        Index("ix_student_name_birth", "full_name", "birth_date"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "full_name": self.full_name,
            "birth_date": self.birth_date.isoformat() if self.birth_date else None,
            "sex": self.sex,
            "cpf": self.cpf,
            "nis": self.nis,
            "active": bool(self.active),
        }


class School(Base):
    __tablename__ = "schools"

    inep = Column(Integer, primary_key=True, autoincrement=False)
    name = Column(String(300), nullable=False, index=True)

    created_at = Column(DateTime, default=_utcnow)

    classes = relationship("SchoolClass", back_populates="school")

    def to_dict(self) -> dict:
        return {"inep": self.inep, "name": self.name}


class SchoolClass(Base):
    __tablename__ = "classes"

    id          = Column(Integer, primary_key=True, autoincrement=True)
    school_inep = Column(Integer, ForeignKey("schools.inep"), nullable=False, index=True)
    name        = Column(String(100), nullable=False)
    period      = Column(String(20), nullable=False)           # Manhã | Tarde | Integral | Noite
    school_year = Column(Integer, nullable=False)

    created_at = Column(DateTime, default=_utcnow)

    school = relationship("School", back_populates="classes")

    __table_args__ = (
        UniqueConstraint("school_inep", "name", "period", "school_year",
                         name="uq_class_identity"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "school_inep": self.school_inep,
            "name": self.name,
            "period": self.period,
            "school_year": self.school_year,
        }


class Enrollment(Base):
    __tablename__ = "enrollments"

    id          = Column(Integer, primary_key=True, autoincrement=True)
    student_id  = Column(Integer, ForeignKey("students.id"), nullable=False, index=True)
    school_inep = Column(Integer, ForeignKey("schools.inep"), nullable=False)
    school_year = Column(Integer, nullable=False)
    class_name  = Column(String(100), nullable=False)
    period      = Column(String(20), nullable=False)
    notes       = Column(Text, nullable=True)

    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    student = relationship("Student", back_populates="enrollments")
    school  = relationship("School")

    __table_args__ = (
        UniqueConstraint("student_id", "school_inep", "school_year",
                         name="uq_enrollment_student_school_year"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "student_id": self.student_id,
            "school_inep": self.school_inep,
            "school_year": self.school_year,
            "class_name": self.class_name,
            "period": self.period,
            "notes": self.notes,
        }


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id          = Column(Integer, primary_key=True, autoincrement=True)
    table_name  = Column(String(100), nullable=False)
    record_id   = Column(Integer, nullable=False)
    action_type = Column(String(10), nullable=False)            # CREATE | UPDATE | DELETE
    changed_by  = Column(Integer, nullable=True)                # profissional_id, None for CLI runs
    changed_at  = Column(DateTime, default=_utcnow, nullable=False)
    old_values  = Column(Text, nullable=True)                   # JSON
    new_values  = Column(Text, nullable=True)                   # JSON
    ip_address  = Column(String(64), nullable=True)
    user_agent  = Column(String(500), nullable=True)

    __table_args__ = (
        Index("ix_audit_record", "table_name", "record_id"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "table_name": self.table_name,
            "record_id": self.record_id,
            "action_type": self.action_type,
            "changed_by": self.changed_by,
            "changed_at": self.changed_at.isoformat() if self.changed_at else "",
            "old_values": _loads(self.old_values),
            "new_values": _loads(self.new_values),
            "ip_address": self.ip_address,
            "user_agent": self.user_agent,
        }


def _loads(raw: str | None):
    if not raw:
        return None
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        return None
