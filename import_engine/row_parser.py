"""
import_engine.row_parser - Turn spreadsheet rows into validated ParsedRows.

Every field is checked once here and converted to its final type;
nothing downstream re-validates a ParsedRow.  A row with any error is
left out of ParseResult.data but all of its errors are reported.
The header is the first non-blank row; leading blank rows are ignored.
Row numbers are the spreadsheet's own (1-based), so with the header
on row 1 the first data row is 2.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

import config
from import_engine.field_map import (
    FIELD_ALIASES, FIELD_LABELS, REQUIRED_FIELDS, normalize_header,
)
from import_engine.sheet_reader import SheetError, read_rows
from schema.normalizers import (
    SEX_VALUES, PERIOD_VALUES,
    parse_date, normalize_sex, normalize_period, is_valid_cpf, clean_cpf,
)

_INEP_RE = re.compile(r"[0-9]+")

_REQUIRED_MESSAGES = {
    "full_name":   "Full name is required",
    "birth_date":  "Birth date is required",
    "school_name": "School name is required",
    "class_name":  "Class name is required",
    "period":      "Period is required",
    "school_year": "School year is required",
}


@dataclass
class ValidationError:
    row: int
    field: str
    message: str
    value: Optional[str] = None


@dataclass
class ParsedRow:
    row_number: int
    full_name: str
    birth_date: date
    school_name: str
    class_name: str
    period: str                     # one of PERIOD_VALUES
    school_year: int
    sex: Optional[str] = None       # Masculino | Feminino
    cpf: Optional[str] = None       # digits only, checksum verified
    nis: Optional[str] = None
    inep: Optional[int] = None


@dataclass
class ParseResult:
    data: list[ParsedRow] = field(default_factory=list)
    errors: list[ValidationError] = field(default_factory=list)
    total_rows: int = 0

    @property
    def valid_rows(self) -> int:
        return len(self.data)

    @property
    def failed_rows(self) -> int:
        return len({e.row for e in self.errors})

    def errors_by_row(self) -> dict[int, list[ValidationError]]:
        grouped: dict[int, list[ValidationError]] = {}
        for err in self.errors:
            grouped.setdefault(err.row, []).append(err)
        return grouped


def parse_enrollment_file(raw: bytes, *, today: Optional[date] = None) -> ParseResult:
    """
    Parse a workbook buffer into a ParseResult.
    Raises SheetError when there is nothing to parse at all.
    """
    rows = read_rows(raw)
    start = next((i for i, cells in enumerate(rows) if not _is_blank(cells)), None)
    if start is None:
        raise SheetError("No header row found")
    headers = [normalize_header(h) for h in rows[start]]

    max_year = (today or date.today()).year + 1
    result = ParseResult(total_rows=len(rows) - start - 1)

    for offset, cells in enumerate(rows[start + 1:]):
        row_number = start + offset + 2
        if _is_blank(cells):
            continue

        record = _to_record(headers, cells)
        parsed, errors = _validate(record, row_number, max_year)
        if errors:
            result.errors.extend(errors)
        else:
            result.data.append(parsed)

    return result


# ── Private helpers ────────────────────────────────────────────────────

def _is_blank(cells) -> bool:
    return all(c is None or c == "" for c in cells)


def _to_record(headers: list[str], cells) -> dict[str, Optional[str]]:
    """Map one row onto logical fields; blank strings become None."""
    by_header: dict[str, Optional[str]] = {}
    for idx, header in enumerate(headers):
        if header and idx < len(cells):
            by_header[header] = cells[idx]

    record: dict[str, Optional[str]] = {}
    for logical, aliases in FIELD_ALIASES.items():
        value = None
        for alias in aliases:
            candidate = by_header.get(alias)
            if candidate is not None and str(candidate).strip():
                value = str(candidate).strip()
                break
        record[logical] = value
    return record


def _validate(record: dict, row_number: int, max_year: int):
    errors: list[ValidationError] = []

    def fail(name: str, message: str):
        errors.append(ValidationError(row_number, FIELD_LABELS[name],
                                      message, record.get(name)))

    for name in REQUIRED_FIELDS:
        if not record[name]:
            fail(name, _REQUIRED_MESSAGES[name])

    birth_date = None
    if record["birth_date"]:
        try:
            birth_date = parse_date(record["birth_date"])
        except ValueError:
            fail("birth_date", "Invalid birth date, use DD/MM/YYYY")

    sex = None
    if record["sex"]:
        sex = normalize_sex(record["sex"])
        if sex is None:
            fail("sex", f"Invalid sex, use M, F, {' or '.join(SEX_VALUES)}")

    period = None
    if record["period"]:
        period = normalize_period(record["period"])
        if period is None:
            fail("period", f"Invalid period, use {', '.join(PERIOD_VALUES)}")

    school_year = None
    if record["school_year"]:
        try:
            school_year = int(record["school_year"])
        except ValueError:
            school_year = None
        if school_year is None or not config.MIN_SCHOOL_YEAR <= school_year <= max_year:
            school_year = None
            fail("school_year",
                 f"Invalid school year, use a year between "
                 f"{config.MIN_SCHOOL_YEAR} and {max_year}")

    cpf = None
    if record["cpf"]:
        if is_valid_cpf(record["cpf"]):
            cpf = clean_cpf(record["cpf"])
        else:
            fail("cpf", "Invalid CPF")

    inep = None
    if record["inep"]:
        if _INEP_RE.fullmatch(record["inep"]):
            inep = int(record["inep"])
        else:
            fail("inep", "INEP code must be numeric")

    if errors:
        return None, errors

    return ParsedRow(
        row_number=row_number,
        full_name=record["full_name"],
        birth_date=birth_date,
        school_name=record["school_name"],
        class_name=record["class_name"],
        period=period,
        school_year=school_year,
        sex=sex,
        cpf=cpf,
        nis=record["nis"],
        inep=inep,
    ), []
