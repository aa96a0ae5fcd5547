"""
Path rule compiler.

Translates the allowlisting product's wildcard path syntax into anchored
regular expressions:

    **  any run of characters, path separators included
    *   any run of characters within one path segment
    ?   exactly one character

Tokens are recognised longest first, so ``**`` is never read as two
single-segment wildcards. Everything else is matched literally.
"""

from __future__ import annotations

import re
import string

from allowaudit.policy.models import CompiledPathMatcher


# Wildcard tokens in precedence order, with their regex expansions
WILDCARD_TOKENS: tuple[tuple[str, str], ...] = (
    ("**", ".*"),
    ("*", r"[^\\]*"),
    ("?", "."),
)

_EXPANSIONS = dict(WILDCARD_TOKENS)

_TOKENIZER = re.compile(
    "|".join(re.escape(token) for token, _ in WILDCARD_TOKENS)
)

# Case folding must agree with re.IGNORECASE | re.ASCII
_ASCII_LOWER = str.maketrans(string.ascii_uppercase, string.ascii_lowercase)


def fold_case(value: str) -> str:
    """Lower-case ASCII letters only."""
    return value.translate(_ASCII_LOWER)


def translate_path_rule(rule: str) -> str:
    """
    Translate a path rule into a regular expression source string.

    The result is meant for ``fullmatch``; it carries no anchors itself.
    """
    parts: list[str] = []
    position = 0
    for token in _TOKENIZER.finditer(rule):
        parts.append(re.escape(rule[position:token.start()]))
        parts.append(_EXPANSIONS[token.group()])
        position = token.end()
    parts.append(re.escape(rule[position:]))
    return "".join(parts)


def literal_prefix(rule: str) -> str:
    """Return the part of a rule before its first wildcard."""
    token = _TOKENIZER.search(rule)
    return rule if token is None else rule[:token.start()]


def compile_path_rule(
    rule: str,
    index: int = 0,
    case_sensitive: bool = True,
) -> CompiledPathMatcher:
    """
    Compile a validated path rule.

    Args:
        rule: Cleaned path rule
        index: Position of the rule in its source
        case_sensitive: Match letter case exactly; False folds ASCII letters

    Returns:
        CompiledPathMatcher whose pattern must match an entire path
    """
    flags = 0 if case_sensitive else re.IGNORECASE | re.ASCII
    return CompiledPathMatcher(
        rule=rule,
        pattern=re.compile(translate_path_rule(rule), flags | re.DOTALL),
        literal_prefix=literal_prefix(rule),
        index=index,
    )
