"""
import_engine - Spreadsheet enrollment import pipeline.

Public API:
    validate_file(content, file_name)            → FileCheck
    parse_enrollment_file(content)               → ParseResult
    iter_import(content, file_name)              → Iterator[ProgressEvent]
    process_import(content, file_name, …)        → ImportStats
"""

from import_engine.file_gate import validate_file, FileCheck                 # noqa: F401
from import_engine.importer import (                                         # noqa: F401
    iter_import,
    process_import,
    ImportAbortedError,
)
from import_engine.report import ImportStats, ProgressEvent                  # noqa: F401
from import_engine.row_parser import parse_enrollment_file, ParseResult      # noqa: F401
from import_engine.sheet_reader import SheetError                            # noqa: F401
