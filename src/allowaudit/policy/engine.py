"""
Execution Classifier.

Evaluates execution records against a rule set and determines whether
each execution would have been blocked.
"""

from __future__ import annotations

import logging
import threading

from allowaudit.policy.models import ClassificationResult, ExecutionRecord
from allowaudit.policy.ruleset import RuleSet


logger = logging.getLogger(__name__)


class ExecutionClassifier:
    """
    Classifies execution records against the three allow mechanisms.

    Path rules are scanned in source order and the first full match
    wins. Publisher and hash checks are plain membership tests. The rule
    set is only read, so one classifier can serve many worker threads.
    """

    def __init__(self, rule_set: RuleSet) -> None:
        """
        Initialize the classifier.

        Args:
            rule_set: Compiled rules to evaluate against
        """
        self.rule_set = rule_set

        # Statistics
        self._lock = threading.Lock()
        self._evaluations = 0
        self._path_allowed = 0
        self._publisher_allowed = 0
        self._hash_allowed = 0
        self._blocked = 0

    def match_path(self, path: str) -> str | None:
        """
        Find the first path rule matching the whole path.

        Uses the rule set's prefix index when it has one.

        Args:
            path: Full candidate path (folder + file name)

        Returns:
            The matched rule, or None
        """
        if not path:
            return None
        for matcher in self.rule_set.candidates(path):
            if matcher.matches(path):
                return matcher.rule
        return None

    def match_path_linear(self, path: str) -> str | None:
        """Find the first matching path rule by scanning every rule."""
        if not path:
            return None
        for matcher in self.rule_set.path_matchers:
            if matcher.matches(path):
                return matcher.rule
        return None

    def classify(self, record: ExecutionRecord) -> ClassificationResult:
        """
        Classify one execution record.

        Args:
            record: Execution record to evaluate

        Returns:
            ClassificationResult with each mechanism's outcome
        """
        result = ClassificationResult(
            record=record,
            matched_rule=self.match_path(record.path),
            publisher_allowed=self.rule_set.allows_publisher(record.publisher),
            hash_allowed=self.rule_set.allows_hash(record.sha256),
        )

        self._update_stats(result)

        if result.would_be_blocked:
            logger.debug("Would block: %s", record.path)
        return result

    def _update_stats(self, result: ClassificationResult) -> None:
        """Update classification statistics."""
        with self._lock:
            self._evaluations += 1
            if result.path_allowed:
                self._path_allowed += 1
            if result.publisher_allowed:
                self._publisher_allowed += 1
            if result.hash_allowed:
                self._hash_allowed += 1
            if result.would_be_blocked:
                self._blocked += 1

    def get_statistics(self) -> dict:
        """Get classification statistics."""
        with self._lock:
            return {
                "total_evaluations": self._evaluations,
                "path_allowed": self._path_allowed,
                "publisher_allowed": self._publisher_allowed,
                "hash_allowed": self._hash_allowed,
                "blocked": self._blocked,
                "rule_count": len(self.rule_set.path_matchers),
            }

    def reset_statistics(self) -> None:
        """Reset classification statistics."""
        with self._lock:
            self._evaluations = 0
            self._path_allowed = 0
            self._publisher_allowed = 0
            self._hash_allowed = 0
            self._blocked = 0
