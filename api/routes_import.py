"""
api.routes_import - /api/v1/import/enrollments endpoints.

Accepts a spreadsheet via multipart upload (field name 'file').
Managers only.
"""

import logging

from flask import g, request, jsonify
from werkzeug.utils import secure_filename

from api import api_bp
from api.auth import manager_required
from import_engine import (
    validate_file, process_import, ImportAbortedError, SheetError,
)

logger = logging.getLogger(__name__)


def _fail(status: int, message: str, errors: list[str]):
    return jsonify({"status": "error", "message": message, "errors": errors}), status


def _read_upload():
    """Return (file_name, content) or an error response tuple."""
    f = request.files.get("file")
    if not f or not f.filename:
        return None, _fail(400, "No file selected", ["Select a file to import"])

    content = f.read()
    if not content:
        return None, _fail(400, "Empty file", ["The selected file is empty"])

    return (secure_filename(f.filename) or f.filename, content), None


@api_bp.route("/import/enrollments/validate", methods=["POST"])
@manager_required
def validate_enrollment_file():
    """
    POST /api/v1/import/enrollments/validate

    Pre-flight checks only; nothing is written.
    """
    upload, error = _read_upload()
    if error:
        return error
    file_name, content = upload
    return jsonify(validate_file(content, file_name).to_dict())


@api_bp.route("/import/enrollments", methods=["POST"])
@manager_required
def import_enrollments():
    """
    POST /api/v1/import/enrollments

    Runs the pre-flight checks, then the import.  Partial failures come
    back as row errors inside 'results'; only file-level problems fail
    the request.
    """
    upload, error = _read_upload()
    if error:
        return error
    file_name, content = upload

    check = validate_file(content, file_name)
    if not check.is_valid:
        return _fail(400, "Invalid file", check.errors)

    try:
        stats = process_import(
            content, file_name, changed_by=g.user["profissional_id"],
        )
    except ImportAbortedError as exc:
        return _fail(400, "Import aborted", [str(exc)])
    except SheetError:
        return _fail(400, "Corrupted or invalid file",
                     ["The file could not be read. Check that it is not corrupted."])
    except Exception:
        logger.exception(f"Import of {file_name!r} failed")
        return _fail(500, "Error during import",
                     ["An internal error occurred. Please contact support."])

    return jsonify({
        "status": "success",
        "message": f"Import finished. {stats.processed} students processed.",
        "warnings": check.warnings,
        "results": stats.to_dict(),
    })
