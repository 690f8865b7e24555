"""
import_engine.importer - Top-level orchestrator.

Coordinates row_parser → batched row_processor → DB commit and
produces a structured ImportStats.

Progress is an explicit event stream: iter_import() yields
ProgressEvent snapshots (coarse milestones plus one per processed row)
and the last event carries the final stats.  process_import() drains
the stream for callers that only want the result.

Transactions: one per batch, one SAVEPOINT per row.  A failing row
rolls back only its own writes; a failing batch (lost connection,
commit error) rolls back the whole batch and every row in it is
reported.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Iterator, Optional

from sqlalchemy.exc import InterfaceError, OperationalError

import config
from db.engine import get_session
from import_engine.report import ImportStats, ProgressEvent
from import_engine.row_parser import ParsedRow, parse_enrollment_file
from import_engine.row_processor import RowError, RowOutcome, RowProcessor

logger = logging.getLogger(__name__)

# Errors that say "the database is gone", not "this row is bad"
_CONNECTION_ERRORS = (OperationalError, InterfaceError)


class ImportAbortedError(Exception):
    """Raised before any write when the file as a whole is unusable."""
    pass


def iter_import(
    file_content: bytes,
    file_name: str = "",
    *,
    changed_by: Optional[int] = None,
) -> Iterator[ProgressEvent]:
    """
    Run an import, yielding progress as it goes.

    Raises SheetError (unreadable file) or ImportAbortedError (too many
    invalid rows, nothing valid) before touching the database.
    """
    started = time.monotonic()
    yield ProgressEvent(0, "Parsing spreadsheet...")

    parsed = parse_enrollment_file(file_content)
    stats = ImportStats(total_records=parsed.total_rows)
    for row, errors in sorted(parsed.errors_by_row().items()):
        stats.add_error(row, "; ".join(f"{e.field}: {e.message}" for e in errors))

    if parsed.failed_rows > parsed.total_rows * config.IMPORT_ABORT_RATIO:
        logger.warning(f"Import of {file_name!r} aborted: "
                       f"{parsed.failed_rows}/{parsed.total_rows} rows invalid")
        raise ImportAbortedError(
            f"Too many validation errors ({parsed.failed_rows} of "
            f"{parsed.total_rows} records). Check the file layout."
        )
    if parsed.valid_rows == 0:
        logger.warning(f"Import of {file_name!r} aborted: no valid rows")
        raise ImportAbortedError("No valid records found to import")

    records = parsed.data
    total = len(records)
    size = max(1, config.IMPORT_BATCH_SIZE)
    batches = [records[i:i + size] for i in range(0, total, size)]
    processor = RowProcessor(changed_by=changed_by)

    logger.info(f"Importing {file_name!r}: {total} valid rows in {len(batches)} batches")
    yield ProgressEvent(0, "Starting record processing...")

    done = 0
    for idx, batch in enumerate(batches, start=1):
        yield ProgressEvent(_percent(done, total),
                            f"Processing batch {idx} of {len(batches)}...")
        try:
            batch_stats = yield from _run_batch(processor, batch, done, total)
        except Exception as exc:
            logger.exception(f"Batch {idx} of {file_name!r} failed")
            for record in batch:
                stats.add_error(record.row_number, f"Batch processing error: {exc}")
        else:
            stats.merge(batch_stats)
        done += len(batch)

        if idx < len(batches) and config.IMPORT_BATCH_DELAY > 0:
            time.sleep(config.IMPORT_BATCH_DELAY)

    elapsed = time.monotonic() - started
    logger.info(f"Import of {file_name!r} done in {elapsed:.1f}s: "
                f"{stats.new_students} new / {stats.updated_students} existing students, "
                f"{len(stats.errors)} errors")
    yield ProgressEvent(100, f"Import finished in {round(elapsed)} seconds", stats)


def process_import(
    file_content: bytes,
    file_name: str = "",
    *,
    on_progress: Optional[Callable[[int, str], None]] = None,
    changed_by: Optional[int] = None,
) -> ImportStats:
    """Run an import to completion and return its stats."""
    stats = ImportStats()
    for event in iter_import(file_content, file_name, changed_by=changed_by):
        if on_progress is not None:
            on_progress(event.percent, event.message)
        if event.done:
            stats = event.stats
    return stats


# ── Private helpers ────────────────────────────────────────────────────

def _run_batch(
    processor: RowProcessor,
    batch: list[ParsedRow],
    done: int,
    total: int,
):
    """Process one batch in its own transaction; returns the batch stats."""
    stats = ImportStats(total_records=len(batch))
    session = get_session()
    try:
        for offset, record in enumerate(batch, start=1):
            try:
                with session.begin_nested():
                    outcome = processor.process(session, record)
            except _CONNECTION_ERRORS:
                raise
            except RowError as exc:
                logger.warning(f"Row {record.row_number}: {exc}")
                stats.add_error(record.row_number, str(exc))
            except Exception as exc:
                logger.exception(f"Row {record.row_number} failed")
                stats.add_error(record.row_number, f"Unexpected: {exc}")
            else:
                _count(stats, outcome)

            position = done + offset
            yield ProgressEvent(_percent(position, total),
                                f"Processing record {position} of {total}...")

        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()

    return stats


def _count(stats: ImportStats, outcome: RowOutcome):
    if outcome.new_student:
        stats.new_students += 1
    else:
        stats.updated_students += 1
    if outcome.new_school:
        stats.new_schools += 1
    if outcome.new_class:
        stats.new_classes += 1
    if outcome.new_enrollment:
        stats.new_enrollments += 1
    else:
        stats.updated_enrollments += 1


def _percent(position: int, total: int) -> int:
    if total <= 0:
        return 100
    return min(100, round(position * 100 / total))
