"""
services.schools_service - School lookup and find-or-create.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

import config
from db.models import School
from services.sequence_service import next_inep

logger = logging.getLogger(__name__)


def find_or_create_school(
    session: Session,
    *,
    name: Optional[str],
    inep: Optional[int] = None,
) -> tuple[int, bool]:
    """
    Resolve a school by INEP code, then by exact name.  Inserts a new
    school when nothing matches, generating an INEP code if none was
    supplied.

    Returns (inep, is_new).  Raises ValueError when the name is missing.
    """
    name = (name or "").strip()
    if not name:
        raise ValueError("School name is required")

    if inep is not None:
        inep = int(inep)
        if session.get(School, inep) is not None:
            return inep, False

    found = session.query(School.inep).filter(School.name == name).first()
    if found:
        return found.inep, False

    if inep is not None:
        session.add(School(inep=inep, name=name))
        session.flush()
        return inep, True

    return _create_with_generated_inep(session, name), True


def _create_with_generated_inep(session: Session, name: str) -> int:
    """Insert under a fresh max+1 code, retrying when another run took it."""
    for attempt in range(1, config.INEP_MAX_RETRIES + 1):
        code = next_inep(session)
        try:
            with session.begin_nested():
                session.add(School(inep=code, name=name))
                session.flush()
            return code
        except IntegrityError:
            logger.warning(f"INEP {code} already taken (attempt {attempt}), retrying")
    raise ValueError(f"Could not allocate an INEP code for school {name!r}")


def get_school(session: Session, inep: int) -> School | None:
    return session.get(School, inep)


def list_schools(session: Session) -> list[School]:
    return session.query(School).order_by(School.name).all()
