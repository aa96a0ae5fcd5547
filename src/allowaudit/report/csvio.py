"""
Execution log and report CSV files.
"""

from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import IO, Any, Iterable, Iterator

from allowaudit.policy.models import REPORT_FIELDS, ExecutionRecord


logger = logging.getLogger(__name__)


class ExecutionLogError(Exception):
    """Error reading an execution log."""

    pass


def iter_execution_records(stream: IO[str]) -> Iterator[ExecutionRecord]:
    """
    Yield execution records from an open CSV stream with a header row.

    Raises:
        ExecutionLogError: If the stream has no header row
    """
    reader = csv.DictReader(stream)
    if not reader.fieldnames:
        raise ExecutionLogError("Execution log has no header row")

    for row in reader:
        yield ExecutionRecord.from_dict(row)


def read_execution_log(path: str | Path) -> Iterator[ExecutionRecord]:
    """
    Read execution records from a CSV file.

    Args:
        path: Path to the execution log

    Returns:
        Iterator over records in file order

    Raises:
        ExecutionLogError: If the file is missing or has no header row
    """
    path = Path(path)
    if not path.is_file():
        raise ExecutionLogError(f"Execution log not found: {path}")

    def _records() -> Iterator[ExecutionRecord]:
        count = 0
        with open(path, newline="", encoding="utf-8-sig") as f:
            for record in iter_execution_records(f):
                count += 1
                yield record
        logger.info("Read %d execution records from %s", count, path)

    return _records()


def _format(value: Any) -> str:
    if isinstance(value, bool):
        return "True" if value else "False"
    return "" if value is None else str(value)


def write_report_rows(rows: Iterable[dict[str, Any]], stream: IO[str]) -> int:
    """Write report rows to an open stream; returns the row count."""
    writer = csv.DictWriter(stream, fieldnames=REPORT_FIELDS, lineterminator="\n")
    writer.writeheader()
    count = 0
    for row in rows:
        writer.writerow({name: _format(row.get(name)) for name in REPORT_FIELDS})
        count += 1
    return count


def write_report(rows: Iterable[dict[str, Any]], path: str | Path) -> int:
    """
    Write report rows to a CSV file.

    Args:
        rows: Report rows (ClassificationResult.to_dict output)
        path: Destination file; parent directories are created

    Returns:
        Number of rows written
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", newline="", encoding="utf-8") as f:
        count = write_report_rows(rows, f)
    logger.info("Wrote %d report rows to %s", count, path)
    return count
