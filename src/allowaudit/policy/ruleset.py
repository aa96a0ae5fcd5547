"""
Rule set assembly.

Builds the immutable collection of compiled path matchers, allowed
publishers and allowed hashes that every classification reads from.
"""

from __future__ import annotations

import heapq
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, Sequence

from allowaudit.policy.cleaner import clean_path_rules
from allowaudit.policy.compiler import compile_path_rule, fold_case
from allowaudit.policy.models import CompiledPathMatcher


logger = logging.getLogger(__name__)

PATH_SEPARATOR = "\\"

SHA256_PATTERN = re.compile(r"[0-9a-f]{64}")


def normalize_publisher(value: Any) -> str:
    if not isinstance(value, str):
        return ""
    return value.lower()


def normalize_hash(value: Any) -> str:
    if not isinstance(value, str):
        return ""
    return value.strip().lower()


@dataclass
class _IndexNode:
    children: dict[str, _IndexNode] = field(default_factory=dict)
    rule_indices: list[int] = field(default_factory=list)


class PathRuleIndex:
    """
    Trie over the literal directory prefix of each path rule.

    A rule can only match paths that start with its literal prefix, so
    walking a path's segments down the trie collects every rule that
    could match it. Candidates come back in source order, which keeps
    first-match-wins results identical to a full linear scan.
    """

    def __init__(
        self,
        matchers: Sequence[CompiledPathMatcher],
        case_sensitive: bool = True,
    ) -> None:
        self._matchers = tuple(matchers)
        self._case_sensitive = case_sensitive
        self._root = _IndexNode()
        for position, matcher in enumerate(self._matchers):
            node = self._root
            for segment in self._directory_segments(matcher.literal_prefix):
                node = node.children.setdefault(self._key(segment), _IndexNode())
            node.rule_indices.append(position)

    def _key(self, segment: str) -> str:
        return segment if self._case_sensitive else fold_case(segment)

    @staticmethod
    def _directory_segments(prefix: str) -> list[str]:
        """Complete segments of a literal prefix (text up to its last separator)."""
        cut = prefix.rfind(PATH_SEPARATOR)
        if cut < 0:
            return []
        return prefix[:cut].split(PATH_SEPARATOR)

    def candidates(self, path: str) -> Iterator[CompiledPathMatcher]:
        """Yield matchers that may match path, in source order."""
        buckets = []
        node = self._root
        if node.rule_indices:
            buckets.append(node.rule_indices)
        for segment in path.split(PATH_SEPARATOR):
            node = node.children.get(self._key(segment))
            if node is None:
                break
            if node.rule_indices:
                buckets.append(node.rule_indices)

        if len(buckets) == 1:
            positions: Iterable[int] = buckets[0]
        else:
            positions = heapq.merge(*buckets)
        for position in positions:
            yield self._matchers[position]

    def __len__(self) -> int:
        return len(self._matchers)


@dataclass(frozen=True)
class RuleSet:
    """
    Compiled allow rules for one audit run.

    Path matchers keep source order (first match wins). Publishers and
    hashes are stored lower-cased for case-insensitive membership checks.
    """

    path_matchers: tuple[CompiledPathMatcher, ...] = ()
    publishers: frozenset[str] = frozenset()
    hashes: frozenset[str] = frozenset()
    case_sensitive: bool = True
    index: PathRuleIndex | None = field(default=None, compare=False, repr=False)
    rejected_rules: tuple[str, ...] = ()
    rejected_hashes: tuple[str, ...] = ()

    @property
    def path_rules(self) -> list[str]:
        return [matcher.rule for matcher in self.path_matchers]

    def candidates(self, path: str) -> Iterable[CompiledPathMatcher]:
        """Matchers to try for path, in source order."""
        if self.index is None:
            return self.path_matchers
        return self.index.candidates(path)

    def allows_publisher(self, publisher: Any) -> bool:
        normalized = normalize_publisher(publisher)
        return bool(normalized) and normalized in self.publishers

    def allows_hash(self, sha256: Any) -> bool:
        normalized = normalize_hash(sha256)
        return bool(normalized) and normalized in self.hashes

    def summary(self) -> dict[str, int]:
        return {
            "path_rules": len(self.path_matchers),
            "rejected_rules": len(self.rejected_rules),
            "publishers": len(self.publishers),
            "hashes": len(self.hashes),
            "rejected_hashes": len(self.rejected_hashes),
        }


def build_rule_set(
    path_rules: Iterable[Any],
    publishers: Iterable[Any] = (),
    hashes: Iterable[Any] = (),
    *,
    case_sensitive: bool = True,
    use_index: bool = True,
) -> RuleSet:
    """
    Build a rule set from raw rule sources.

    Args:
        path_rules: Raw path rule strings in source order
        publishers: Allowed publisher names
        hashes: Allowed SHA-256 hashes (hex)
        case_sensitive: Match path letter case exactly; False folds ASCII letters
        use_index: Build a prefix index to prune path rule scans

    Returns:
        Immutable RuleSet
    """
    matchers: list[CompiledPathMatcher] = []
    rejected: list[str] = []
    seen_rules: set[str] = set()

    for rule in clean_path_rules(path_rules, rejected):
        if rule in seen_rules:
            logger.debug("Duplicate path rule collapsed: %s", rule)
            continue
        seen_rules.add(rule)
        matchers.append(
            compile_path_rule(rule, index=len(matchers), case_sensitive=case_sensitive)
        )

    allowed_publishers = frozenset(
        normalized for normalized in map(normalize_publisher, publishers) if normalized
    )

    allowed_hashes: set[str] = set()
    rejected_hashes: list[str] = []
    for raw in hashes:
        normalized = normalize_hash(raw)
        if SHA256_PATTERN.fullmatch(normalized) is None:
            rejected_hashes.append(raw if isinstance(raw, str) else repr(raw))
            continue
        allowed_hashes.add(normalized)

    if rejected_hashes:
        logger.warning(
            "Skipped %d allowed hash(es) that are not SHA-256 hex digests",
            len(rejected_hashes),
        )

    rule_set = RuleSet(
        path_matchers=tuple(matchers),
        publishers=allowed_publishers,
        hashes=frozenset(allowed_hashes),
        case_sensitive=case_sensitive,
        index=PathRuleIndex(matchers, case_sensitive) if use_index else None,
        rejected_rules=tuple(rejected),
        rejected_hashes=tuple(rejected_hashes),
    )
    logger.info(
        "Rule set built: %d path rules (%d rejected), %d publishers, %d hashes",
        len(matchers), len(rejected), len(allowed_publishers), len(allowed_hashes),
    )
    return rule_set
