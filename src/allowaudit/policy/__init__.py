"""
Policy Engine.

Compiles allowlisting rules and classifies execution records against
them: path rules (wildcard patterns), publishers and file hashes.
"""

from allowaudit.policy.cleaner import clean_path_rule, clean_path_rules
from allowaudit.policy.compiler import (
    WILDCARD_TOKENS,
    compile_path_rule,
    translate_path_rule,
)
from allowaudit.policy.engine import ExecutionClassifier
from allowaudit.policy.models import (
    ClassificationResult,
    CompiledPathMatcher,
    ExecutionRecord,
)
from allowaudit.policy.parser import (
    RuleSourceError,
    RuleSources,
    load_rule_sources,
    parse_rule_sources,
    read_lines,
    validate_rule_sources,
)
from allowaudit.policy.ruleset import PathRuleIndex, RuleSet, build_rule_set

__all__ = [
    # Cleaning
    "clean_path_rule",
    "clean_path_rules",
    # Compilation
    "WILDCARD_TOKENS",
    "compile_path_rule",
    "translate_path_rule",
    # Classification
    "ExecutionClassifier",
    # Models
    "ClassificationResult",
    "CompiledPathMatcher",
    "ExecutionRecord",
    # Rule sources
    "RuleSourceError",
    "RuleSources",
    "load_rule_sources",
    "parse_rule_sources",
    "read_lines",
    "validate_rule_sources",
    # Rule set
    "PathRuleIndex",
    "RuleSet",
    "build_rule_set",
]
