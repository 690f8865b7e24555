"""
import_engine.file_gate - Pre-flight checks on an uploaded spreadsheet.

Cheap checks (size, signature, extension) run first; the file is only
parsed when they all pass.  Nothing here touches the database.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import config
from import_engine.row_parser import parse_enrollment_file
from import_engine.sheet_reader import SheetError, XLSX_SIGNATURE, XLS_SIGNATURE

ALLOWED_EXTENSIONS = (".xlsx", ".xls")


@dataclass
class FileCheck:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    total_rows: int = 0
    valid_rows: int = 0

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict:
        return {
            "isValid": self.is_valid,
            "errors": self.errors,
            "warnings": self.warnings,
            "totalRows": self.total_rows,
            "validRows": self.valid_rows,
        }


def validate_file(file_content: bytes, file_name: str) -> FileCheck:
    check = FileCheck()
    limit_mb = config.IMPORT_MAX_FILE_SIZE // (1024 * 1024)

    if len(file_content) > config.IMPORT_MAX_FILE_SIZE:
        check.errors.append(f"File too large. The maximum allowed size is {limit_mb}MB")

    if file_content[:4] not in (XLSX_SIGNATURE, XLS_SIGNATURE):
        check.errors.append("Invalid file type. Only .xlsx and .xls files are allowed")

    if not (file_name or "").lower().endswith(ALLOWED_EXTENSIONS):
        check.errors.append("Invalid file extension. Use .xlsx or .xls")

    if check.errors:
        return check

    try:
        parsed = parse_enrollment_file(file_content)
    except SheetError as exc:
        check.errors.append(f"Could not read the file: {exc}")
        return check

    check.total_rows = parsed.total_rows
    check.valid_rows = parsed.valid_rows

    if parsed.total_rows == 0:
        check.errors.append("The file is empty or contains no data rows")
    if parsed.valid_rows == 0:
        check.errors.append("No valid records found. Check the column layout.")

    if parsed.errors:
        check.warnings.append(f"{len(parsed.errors)} validation errors found. "
                              f"Review the report after the import.")
    if parsed.valid_rows < parsed.total_rows * config.IMPORT_WARN_VALID_RATIO:
        check.warnings.append(f"Less than {config.IMPORT_WARN_VALID_RATIO:.0%} of the records "
                              f"are valid. Check the file layout.")
    if parsed.total_rows > config.IMPORT_WARN_MAX_ROWS:
        check.warnings.append("File has many records. Processing may take several minutes.")

    return check
