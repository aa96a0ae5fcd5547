"""
Audit reporting.

Builds deduplicated, ordered reports from classified execution records
and reads/writes them as CSV.
"""

from allowaudit.report.builder import Report, ReportBuilder, build_report, deduplicate
from allowaudit.report.csvio import (
    ExecutionLogError,
    iter_execution_records,
    read_execution_log,
    write_report,
    write_report_rows,
)

__all__ = [
    "Report",
    "ReportBuilder",
    "build_report",
    "deduplicate",
    "ExecutionLogError",
    "iter_execution_records",
    "read_execution_log",
    "write_report",
    "write_report_rows",
]
