"""
Rule source parser.

Loads allowed path rules, publishers and hashes from a YAML policy file
or from plain one-entry-per-line text files.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from allowaudit.policy.cleaner import clean_path_rule
from allowaudit.policy.compiler import compile_path_rule
from allowaudit.policy.ruleset import SHA256_PATTERN, normalize_hash, normalize_publisher


class RuleSourceError(Exception):
    """Error loading or parsing a rule source."""

    pass


@dataclass
class RuleSources:
    """
    Raw, unvalidated allow rules as read from their sources.

    Path rules keep source order; cleaning and compilation happen when
    the rule set is built.
    """

    paths: list[str] = field(default_factory=list)
    publishers: list[str] = field(default_factory=list)
    hashes: list[str] = field(default_factory=list)

    def merge(self, other: RuleSources) -> RuleSources:
        """Concatenate two sources, this one first."""
        return RuleSources(
            paths=self.paths + other.paths,
            publishers=self.publishers + other.publishers,
            hashes=self.hashes + other.hashes,
        )

    def is_empty(self) -> bool:
        return not (self.paths or self.publishers or self.hashes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "paths": list(self.paths),
            "publishers": list(self.publishers),
            "hashes": list(self.hashes),
        }


def load_rule_sources(path: str | Path) -> RuleSources:
    """
    Load rule sources from a YAML policy file.

    Args:
        path: Path to policy YAML file

    Returns:
        RuleSources with the file's entries

    Raises:
        FileNotFoundError: If file doesn't exist
        RuleSourceError: If file contains an invalid policy
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Policy file not found: {path}")

    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if data is None:
        return RuleSources()

    return parse_rule_sources(data)


def parse_rule_sources(data: dict[str, Any]) -> RuleSources:
    """
    Parse rule sources from a dictionary.

    Args:
        data: Dictionary with optional 'paths', 'publishers' and 'hashes' lists

    Returns:
        RuleSources object
    """
    if not isinstance(data, dict):
        raise RuleSourceError("Policy must be a dictionary")

    sections: dict[str, list[str]] = {}
    for name in ("paths", "publishers", "hashes"):
        entries = data.get(name) or []
        if not isinstance(entries, list):
            raise RuleSourceError(f"'{name}' must be a list")
        for i, entry in enumerate(entries):
            if not isinstance(entry, str):
                raise RuleSourceError(f"Entry {i} of '{name}' must be a string")
        sections[name] = list(entries)

    return RuleSources(**sections)


def read_lines(path: str | Path) -> list[str]:
    """
    Read a one-entry-per-line text file.

    Blank lines and lines starting with '#' are dropped. Lines are
    otherwise returned as-is; path rules are cleaned later.

    Raises:
        FileNotFoundError: If file doesn't exist
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Rule file not found: {path}")

    entries = []
    with open(path, encoding="utf-8-sig") as f:
        for line in f:
            stripped = line.strip()
            if not stripped or stripped.startswith("#"):
                continue
            entries.append(line.rstrip("\r\n"))
    return entries


def validate_rule_sources(sources: RuleSources) -> list[str]:
    """
    Validate rule sources and return a list of warnings.

    Args:
        sources: Rule sources to validate

    Returns:
        List of warning messages
    """
    warnings: list[str] = []

    if sources.is_empty():
        warnings.append("Warning: Policy has no rules")
        return warnings

    compiled = []
    seen: dict[str, int] = {}
    for i, raw in enumerate(sources.paths):
        rule = clean_path_rule(raw)
        if rule is None:
            warnings.append(f"Path rule {i} is not a valid path rule: {raw!r}")
            continue
        if rule in seen:
            warnings.append(f"Warning: Path rule {i} duplicates path rule {seen[rule]}")
            continue
        seen[rule] = i
        compiled.append((i, compile_path_rule(rule)))

    # A wildcard-free rule can only match its own text; if an earlier
    # rule already matches that text it never wins.
    for position, (i, matcher) in enumerate(compiled):
        if matcher.has_wildcards:
            continue
        for j, earlier in compiled[:position]:
            if earlier.matches(matcher.rule):
                warnings.append(
                    f"Warning: Path rule {i} is unreachable, "
                    f"path rule {j} ({earlier.rule}) matches it first"
                )
                break

    for i, raw in enumerate(sources.hashes):
        if SHA256_PATTERN.fullmatch(normalize_hash(raw)) is None:
            warnings.append(f"Hash {i} is not a SHA-256 hex digest: {raw!r}")

    for i, publisher in enumerate(sources.publishers):
        if not normalize_publisher(publisher):
            warnings.append(f"Warning: Publisher {i} is empty and never matches")

    return warnings
