"""
Path rule cleaning and validation.

Rule strings are often pasted from consoles and spreadsheets, so they
may carry zero-width or other invisible characters. Cleaning keeps only
printable basic Latin, trims the result and checks the path rule shape.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Iterable, Iterator


logger = logging.getLogger(__name__)

# Anything outside printable basic Latin (U+0020 - U+007E)
_NON_PRINTABLE = re.compile(r"[^\x20-\x7e]")

# Drive letter or UNC prefix; ends in a 1-10 character extension or a wildcard
PATH_RULE_SHAPE = re.compile(
    r"""
    (?:[A-Za-z]:\\|\\\\)    # C:\ or \\server
    .*
    (?:\.[^.\\\s]{1,10}|[*?])
    """,
    re.VERBOSE,
)


def strip_non_printable(value: str) -> str:
    """Remove characters outside printable basic Latin."""
    return _NON_PRINTABLE.sub("", value)


def clean_path_rule(raw: Any) -> str | None:
    """
    Clean and validate a raw path rule string.

    Args:
        raw: Rule text as read from a source (may be None or non-text)

    Returns:
        The cleaned rule, or None when the value is not a path rule
    """
    if not isinstance(raw, str):
        return None

    cleaned = strip_non_printable(raw).strip()
    if not cleaned or PATH_RULE_SHAPE.fullmatch(cleaned) is None:
        return None
    return cleaned


def clean_path_rules(
    raw_rules: Iterable[Any],
    rejected: list[str] | None = None,
) -> Iterator[str]:
    """
    Yield cleaned rules in source order, skipping rejected lines.

    Args:
        raw_rules: Raw rule values as read from a source
        rejected: If given, receives the text of every skipped entry
    """
    for position, raw in enumerate(raw_rules):
        cleaned = clean_path_rule(raw)
        if cleaned is None:
            logger.debug("Skipping non-rule entry %d: %r", position, raw)
            if rejected is not None:
                rejected.append(raw if isinstance(raw, str) else repr(raw))
            continue
        yield cleaned
