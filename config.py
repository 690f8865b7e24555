"""
PSEDB - Centralised configuration.

All tunables live here.  Every other module imports from config
instead of reading os.environ directly.
"""

from __future__ import annotations
import os
from pathlib import Path


# ── Paths ──────────────────────────────────────────────────────────────
BASE_DIR = Path(__file__).resolve().parent

# ── Database ───────────────────────────────────────────────────────────
DB_URL = os.environ.get("PSEDB_DB", f"sqlite:///{BASE_DIR / 'psedb.sqlite'}")

# ── Server ─────────────────────────────────────────────────────────────
HOST   = os.environ.get("PSEDB_HOST", "0.0.0.0")
PORT   = int(os.environ.get("PSEDB_PORT", "5000"))
DEBUG  = os.environ.get("PSEDB_DEBUG", "0") == "1"
SECRET = os.environ.get("PSEDB_SECRET", "psedb-dev-key-change-in-prod")
LOG_LEVEL = os.environ.get("PSEDB_LOG_LEVEL", "INFO").upper()

# ── Enrollment import ──────────────────────────────────────────────────
IMPORT_MAX_FILE_SIZE  = int(os.environ.get("PSEDB_IMPORT_MAX_BYTES", 10 * 1024 * 1024))
IMPORT_BATCH_SIZE     = int(os.environ.get("PSEDB_IMPORT_BATCH_SIZE", "100"))
IMPORT_BATCH_DELAY    = float(os.environ.get("PSEDB_IMPORT_BATCH_DELAY", "0.1"))   # seconds
IMPORT_ABORT_RATIO    = 0.5     # failed rows / total rows above which nothing is written
IMPORT_WARN_VALID_RATIO = 0.8
IMPORT_WARN_MAX_ROWS  = 5000
MIN_SCHOOL_YEAR       = 2000

# ── School codes ───────────────────────────────────────────────────────
# Generated INEP codes start right after this floor on an empty table
INEP_SEED        = int(os.environ.get("PSEDB_INEP_SEED", "35000000"))
INEP_MAX_RETRIES = 5

# ── Pagination ─────────────────────────────────────────────────────────
AUDIT_DEFAULT_LIMIT = 50
AUDIT_MAX_LIMIT     = 500
