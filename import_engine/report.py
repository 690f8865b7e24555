"""
import_engine.report - Structured results of an enrollment import run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class ImportStats:
    total_records: int = 0
    new_students: int = 0
    updated_students: int = 0
    new_schools: int = 0
    new_classes: int = 0
    new_enrollments: int = 0
    updated_enrollments: int = 0
    errors: list[dict] = field(default_factory=list)   # [{row, message}]

    def add_error(self, row: int, message: str):
        self.errors.append({"row": row, "message": message})

    def merge(self, other: "ImportStats"):
        """Fold a finished batch into the run totals (total_records excluded)."""
        self.new_students += other.new_students
        self.updated_students += other.updated_students
        self.new_schools += other.new_schools
        self.new_classes += other.new_classes
        self.new_enrollments += other.new_enrollments
        self.updated_enrollments += other.updated_enrollments
        self.errors.extend(other.errors)

    @property
    def processed(self) -> int:
        return self.new_students + self.updated_students

    def to_dict(self) -> dict:
        return {
            "totalRecords": self.total_records,
            "newStudents": self.new_students,
            "updatedStudents": self.updated_students,
            "newSchools": self.new_schools,
            "newClasses": self.new_classes,
            "newEnrollments": self.new_enrollments,
            "updatedEnrollments": self.updated_enrollments,
            "errors": self.errors,
        }


@dataclass(frozen=True)
class ProgressEvent:
    """One snapshot of a running import.  The final event carries stats."""
    percent: int
    message: str
    stats: Optional[ImportStats] = None

    @property
    def done(self) -> bool:
        return self.stats is not None
