"""
Report Builder.

Drives the classifier over an execution log, deduplicates results by
file identity and returns them in a deterministic order.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from itertools import islice
from typing import Any, Callable, Iterable, Iterator

from allowaudit.policy.engine import ExecutionClassifier
from allowaudit.policy.models import ClassificationResult, ExecutionRecord
from allowaudit.policy.ruleset import RuleSet


logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 5000

ProgressCallback = Callable[[int], None]


@dataclass
class Report:
    """
    Deduplicated classification results for one audit run.

    Rows are sorted by folder, file name and hash.
    """

    rows: list[ClassificationResult] = field(default_factory=list)
    records_processed: int = 0
    duplicates_dropped: int = 0

    @property
    def blocked(self) -> int:
        return sum(1 for row in self.rows if row.would_be_blocked)

    @property
    def allowed(self) -> int:
        return len(self.rows) - self.blocked

    def blocked_rows(self) -> list[ClassificationResult]:
        """Rows that no allow mechanism covers."""
        return [row for row in self.rows if row.would_be_blocked]

    def by_mechanism(self) -> dict[str, int]:
        """Count rows allowed by each mechanism (a row may count more than once)."""
        return {
            "path": sum(1 for row in self.rows if row.path_allowed),
            "publisher": sum(1 for row in self.rows if row.publisher_allowed),
            "hash": sum(1 for row in self.rows if row.hash_allowed),
        }

    def to_rows(self, blocked_only: bool = False) -> list[dict[str, Any]]:
        rows = self.blocked_rows() if blocked_only else self.rows
        return [row.to_dict() for row in rows]

    def summary(self) -> dict[str, Any]:
        return {
            "records_processed": self.records_processed,
            "unique_files": len(self.rows),
            "duplicates_dropped": self.duplicates_dropped,
            "allowed": self.allowed,
            "would_be_blocked": self.blocked,
            "allowed_by": self.by_mechanism(),
        }


def deduplicate(results: Iterable[ClassificationResult]) -> list[ClassificationResult]:
    """
    Keep one result per (folder, file name).

    Results are stable-sorted by folder, file name and hash, and the last
    result for each identity is kept, so among observations of the same
    file the one with the highest hash survives. The returned list is in
    ascending (folder, file name, hash) order.
    """
    ordered = sorted(results, key=lambda result: result.sort_key)
    kept: dict[tuple[str, str], ClassificationResult] = {}
    for result in ordered:
        kept[result.record.identity] = result
    return sorted(kept.values(), key=lambda result: result.sort_key)


def _chunks(
    records: Iterable[ExecutionRecord],
    size: int,
) -> Iterator[list[ExecutionRecord]]:
    iterator = iter(records)
    while True:
        chunk = list(islice(iterator, size))
        if not chunk:
            return
        yield chunk


class ReportBuilder:
    """
    Builds reports from execution records.

    Classification of each record is independent, so chunks may be
    classified on worker threads; results are merged in input order
    before deduplication and sorting run on the calling thread.
    """

    def __init__(
        self,
        classifier: ExecutionClassifier,
        workers: int = 1,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        progress: ProgressCallback | None = None,
    ) -> None:
        """
        Initialize the builder.

        Args:
            classifier: Classifier to run on every record
            workers: Number of classification threads
            chunk_size: Records handed to a worker at a time
            progress: Called with the running record count after each chunk
        """
        if workers < 1:
            raise ValueError(f"workers must be at least 1, got {workers}")
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be at least 1, got {chunk_size}")
        self.classifier = classifier
        self.workers = workers
        self.chunk_size = chunk_size
        self.progress = progress

    def _classify_chunk(self, chunk: list[ExecutionRecord]) -> list[ClassificationResult]:
        return [self.classifier.classify(record) for record in chunk]

    def classify_all(self, records: Iterable[ExecutionRecord]) -> list[ClassificationResult]:
        """Classify every record, preserving input order."""
        results: list[ClassificationResult] = []
        chunks = _chunks(records, self.chunk_size)

        if self.workers == 1:
            for chunk in chunks:
                results.extend(self._classify_chunk(chunk))
                self._report_progress(len(results))
            return results

        with ThreadPoolExecutor(
            max_workers=self.workers,
            thread_name_prefix="classify",
        ) as executor:
            for chunk_results in executor.map(self._classify_chunk, chunks):
                results.extend(chunk_results)
                self._report_progress(len(results))
        return results

    def _report_progress(self, processed: int) -> None:
        if self.progress is None:
            return
        try:
            self.progress(processed)
        except Exception as e:
            logger.error("Progress callback error: %s", e)

    def build(self, records: Iterable[ExecutionRecord]) -> Report:
        """
        Classify records and build a deduplicated, sorted report.

        Args:
            records: Execution records in log order

        Returns:
            Report with one row per (folder, file name)
        """
        results = self.classify_all(records)
        rows = deduplicate(results)
        report = Report(
            rows=rows,
            records_processed=len(results),
            duplicates_dropped=len(results) - len(rows),
        )
        logger.info(
            "Classified %d records into %d unique files, %d would be blocked",
            report.records_processed, len(rows), report.blocked,
        )
        return report


def build_report(
    records: Iterable[ExecutionRecord],
    rule_set: RuleSet,
    workers: int = 1,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    progress: ProgressCallback | None = None,
) -> Report:
    """Classify records against a rule set and build a report."""
    builder = ReportBuilder(
        ExecutionClassifier(rule_set),
        workers=workers,
        chunk_size=chunk_size,
        progress=progress,
    )
    return builder.build(records)
