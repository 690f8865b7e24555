"""
services.sequence_service - INEP code allocation for new schools.

Isolated so both the import engine and any future "create school"
flow share the same logic.  The value is only a proposal: the
schools.inep primary key is the real guard, and callers retry on
IntegrityError when a concurrent run took the same code.
"""

from __future__ import annotations

from sqlalchemy import func
from sqlalchemy.orm import Session

import config
from db.models import School


def next_inep(session: Session) -> int:
    """Return max(existing INEP) + 1, or INEP_SEED + 1 on an empty table."""
    db_max = session.query(func.max(School.inep)).scalar()
    return (int(db_max) if db_max else config.INEP_SEED) + 1
