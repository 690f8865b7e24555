"""
schema.normalizers - Field-level parsing of enrollment values.

Pure functions, no database access.  Shared by the row parser and the
entity resolvers so that synonymous inputs ("manha", "M", "Manhã")
always land on the same stored value.
"""

from __future__ import annotations

import re
import unicodedata
from datetime import date
from typing import Optional

_DATE_RE = re.compile(r"^(\d{2})/(\d{2})/(\d{4})$")

SEX_VALUES = ("Masculino", "Feminino")
PERIOD_VALUES = ("Manhã", "Tarde", "Integral", "Noite")

_SEX_MAP = {
    "m": "Masculino",
    "masculino": "Masculino",
    "f": "Feminino",
    "feminino": "Feminino",
}

_PERIOD_MAP = {
    "m": "Manhã",
    "manhã": "Manhã",
    "manha": "Manhã",
    "t": "Tarde",
    "tarde": "Tarde",
    "i": "Integral",
    "integral": "Integral",
    "n": "Noite",
    "noite": "Noite",
}


def strip_accents(text: str) -> str:
    normalized = unicodedata.normalize("NFD", text)
    return "".join(c for c in normalized if unicodedata.category(c) != "Mn")


def parse_date(value: str) -> date:
    """
    Parse a strict DD/MM/YYYY string.

    Raises ValueError on bad format or on a day that does not exist
    in that month/year (31/04, 29/02 outside leap years …).
    """
    match = _DATE_RE.match((value or "").strip())
    if not match:
        raise ValueError(f"Invalid date {value!r}, expected DD/MM/YYYY")
    day, month, year = (int(g) for g in match.groups())
    return date(year, month, day)


def is_valid_date(value: str) -> bool:
    try:
        parse_date(value)
    except ValueError:
        return False
    return True


def normalize_sex(value: Optional[str]) -> Optional[str]:
    """M/F/Masculino/Feminino (any case) → 'Masculino' | 'Feminino', else None."""
    if not value:
        return None
    return _SEX_MAP.get(value.strip().lower())


def normalize_period(value: Optional[str]) -> Optional[str]:
    """Single letter or full word, accented or not → canonical period, else None."""
    if not value:
        return None
    return _PERIOD_MAP.get(value.strip().lower())


def clean_cpf(value: str) -> str:
    """Drop everything but digits ("123.456.789-09" → "12345678909")."""
    return re.sub(r"\D", "", value or "")


def is_valid_cpf(value: str) -> bool:
    """
    Standard CPF check: 11 digits, not all equal, and both check
    digits match the mod-11 weighted sums of the preceding digits.
    """
    digits = clean_cpf(value)
    if len(digits) != 11 or len(set(digits)) == 1:
        return False

    numbers = [int(d) for d in digits]
    for pos in (9, 10):
        total = sum(n * w for n, w in zip(numbers[:pos], range(pos + 1, 1, -1)))
        check = (total * 10) % 11
        if check == 10:
            check = 0
        if check != numbers[pos]:
            return False
    return True
