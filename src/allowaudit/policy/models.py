"""
Policy data models.

Defines execution records, compiled path matchers and classification
results shared by the rule set, the classifier and the report builder.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any


# Column spellings accepted for each record field, checked in order.
RECORD_FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "folder": ("folder", "Folder", "folder_path", "Folder Path"),
    "file_name": ("file_name", "filename", "FileName", "File Name", "name"),
    "sha256": ("sha256", "SHA256", "hash", "Hash", "sha_256"),
    "publisher": ("publisher", "Publisher", "signer"),
    "hostname": ("hostname", "Hostname", "host", "computer"),
    "user": ("user", "User", "username", "Username"),
}

REPORT_FIELDS = (
    "folder",
    "file_name",
    "sha256",
    "publisher",
    "hostname",
    "user",
    "matched_path_rule",
    "publisher_allowed",
    "hash_allowed",
    "would_be_blocked",
)


def _text(value: Any) -> str:
    """Coerce a raw field value to text; None becomes empty."""
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


@dataclass(frozen=True)
class ExecutionRecord:
    """
    One historical execution event.

    All fields are plain strings; absent values are empty strings so
    every check can degrade to a non-match instead of failing.
    """

    folder: str = ""
    file_name: str = ""
    sha256: str = ""
    publisher: str = ""
    hostname: str = ""
    user: str = ""

    def __post_init__(self) -> None:
        for name in RECORD_FIELD_ALIASES:
            value = getattr(self, name)
            if not isinstance(value, str):
                object.__setattr__(self, name, _text(value))

    @property
    def path(self) -> str:
        """Candidate path checked against path rules."""
        return self.folder + self.file_name

    @property
    def identity(self) -> tuple[str, str]:
        """Deduplication key."""
        return (self.folder, self.file_name)

    @property
    def sort_key(self) -> tuple[str, str, str]:
        return (self.folder, self.file_name, self.sha256)

    def to_dict(self) -> dict[str, str]:
        return {
            "folder": self.folder,
            "file_name": self.file_name,
            "sha256": self.sha256,
            "publisher": self.publisher,
            "hostname": self.hostname,
            "user": self.user,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ExecutionRecord:
        """Create from a mapping such as a CSV row."""
        values: dict[str, str] = {}
        for name, aliases in RECORD_FIELD_ALIASES.items():
            value = None
            for alias in aliases:
                if data.get(alias) is not None:
                    value = data[alias]
                    break
            values[name] = _text(value)
        return cls(**values)


@dataclass(frozen=True)
class CompiledPathMatcher:
    """
    A path rule and its anchored matching pattern.

    Created by the pattern compiler; never mutated.
    """

    rule: str
    pattern: re.Pattern
    literal_prefix: str
    index: int = 0

    def matches(self, path: str) -> bool:
        """Check whether the whole path matches this rule."""
        return self.pattern.fullmatch(path) is not None

    @property
    def has_wildcards(self) -> bool:
        return self.literal_prefix != self.rule


@dataclass(frozen=True)
class ClassificationResult:
    """
    Verdict for one execution record.

    Each allow mechanism is reported independently; the record would
    be blocked only when none of them allows it.
    """

    record: ExecutionRecord
    matched_rule: str | None
    publisher_allowed: bool
    hash_allowed: bool

    @property
    def path_allowed(self) -> bool:
        return self.matched_rule is not None

    @property
    def would_be_blocked(self) -> bool:
        return not (self.path_allowed or self.publisher_allowed or self.hash_allowed)

    @property
    def sort_key(self) -> tuple[str, str, str]:
        return self.record.sort_key

    def to_dict(self) -> dict[str, Any]:
        """Convert to a report row."""
        row: dict[str, Any] = dict(self.record.to_dict())
        row["matched_path_rule"] = self.matched_rule or ""
        row["publisher_allowed"] = self.publisher_allowed
        row["hash_allowed"] = self.hash_allowed
        row["would_be_blocked"] = self.would_be_blocked
        return row
