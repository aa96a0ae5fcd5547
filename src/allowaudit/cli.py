"""
allowlist-audit Command Line Interface.

Provides commands for auditing an allowlisting policy:
- audit: Classify an execution log and write the report
- rules show: List the compiled path rules
- rules validate: Check rule sources for problems
- rules test: Classify a single path against the rules
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any

import yaml

from allowaudit import __version__
from allowaudit.config import AuditConfig, load_config, validate_config
from allowaudit.policy.engine import ExecutionClassifier
from allowaudit.policy.models import ExecutionRecord
from allowaudit.policy.parser import (
    RuleSourceError,
    RuleSources,
    load_rule_sources,
    read_lines,
    validate_rule_sources,
)
from allowaudit.policy.ruleset import RuleSet, build_rule_set
from allowaudit.report.builder import build_report
from allowaudit.report.csvio import (
    ExecutionLogError,
    read_execution_log,
    write_report,
    write_report_rows,
)


logger = logging.getLogger("allowaudit")

# Errors at the input boundary: reported as a message and exit status 1
BOUNDARY_ERRORS = (
    FileNotFoundError,
    RuleSourceError,
    ExecutionLogError,
    yaml.YAMLError,
)


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        prog="allowlist-audit",
        description="Audit execution history against application allowlisting rules",
    )
    parser.add_argument(
        "-V", "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-c", "--config",
        metavar="FILE",
        help="Path to configuration file",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output in JSON format",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # audit command
    audit_parser = subparsers.add_parser("audit", help="Audit an execution log")
    audit_parser.add_argument("log", help="Execution log CSV file")
    audit_parser.add_argument(
        "-o", "--output",
        help="Report CSV file (default: stdout)",
    )
    audit_parser.add_argument(
        "-p", "--policy",
        metavar="FILE",
        help="Policy YAML file (overrides configuration)",
    )
    audit_parser.add_argument(
        "--blocked-only",
        action="store_true",
        help="Only report executions that would be blocked",
    )
    audit_parser.add_argument(
        "-w", "--workers",
        type=int,
        help="Number of classification threads",
    )
    audit_parser.set_defaults(func=cmd_audit)

    # rules command
    rules_parser = subparsers.add_parser("rules", help="Inspect allow rules")
    rules_parser.add_argument(
        "-p", "--policy",
        metavar="FILE",
        help="Policy YAML file (overrides configuration)",
    )
    rules_sub = rules_parser.add_subparsers(dest="rules_cmd")

    rules_sub.add_parser("show", help="Show compiled path rules")
    rules_sub.add_parser("validate", help="Validate rule sources")

    test_parser = rules_sub.add_parser("test", help="Classify a single file path")
    test_parser.add_argument("path", help="Full file path, e.g. C:\\Tools\\app.exe")
    test_parser.add_argument("--publisher", default="", help="Publisher name")
    test_parser.add_argument("--hash", dest="sha256", default="", help="SHA-256 hash")

    rules_parser.set_defaults(func=cmd_rules)

    # Parse arguments
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    try:
        config = load_config(args.config)
    except BOUNDARY_ERRORS as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    setup_logging(config, verbose=args.verbose)

    if getattr(args, "policy", None):
        config.rules.policy_file = args.policy
    if getattr(args, "workers", None) is not None:
        config.report.workers = args.workers

    errors = validate_config(config)
    if errors:
        for error in errors:
            print(f"Configuration error: {error}", file=sys.stderr)
        return 1

    # Execute command
    try:
        return args.func(args, config)
    except BOUNDARY_ERRORS as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def setup_logging(config: AuditConfig, verbose: bool = False) -> None:
    """Configure logging based on config."""
    if verbose:
        level = logging.DEBUG
    else:
        level = getattr(logging, config.logging.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        filename=config.logging.log_file,
    )


def output(data: Any, args: argparse.Namespace) -> None:
    """Output data in requested format."""
    if getattr(args, "json", False):
        print(json.dumps(data, indent=2, default=str))
    elif isinstance(data, dict):
        for key, value in data.items():
            print(f"{key}: {value}")
    else:
        print(data)


def load_sources(config: AuditConfig) -> RuleSources:
    """Load every configured rule source, policy file first."""
    sources = RuleSources()

    if config.rules.policy_file:
        sources = sources.merge(load_rule_sources(config.rules.policy_file))
    if config.rules.path_rules_file:
        sources = sources.merge(RuleSources(paths=read_lines(config.rules.path_rules_file)))
    if config.rules.publishers_file:
        sources = sources.merge(
            RuleSources(publishers=read_lines(config.rules.publishers_file))
        )
    if config.rules.hashes_file:
        sources = sources.merge(RuleSources(hashes=read_lines(config.rules.hashes_file)))

    return sources


def build_configured_rule_set(config: AuditConfig, sources: RuleSources) -> RuleSet:
    return build_rule_set(
        sources.paths,
        sources.publishers,
        sources.hashes,
        case_sensitive=config.rules.case_sensitive_paths,
        use_index=config.rules.use_prefix_index,
    )


def split_path(path: str) -> tuple[str, str]:
    """Split a Windows path into folder (with trailing separator) and file name."""
    cut = path.rfind("\\")
    return path[:cut + 1], path[cut + 1:]


def cmd_audit(args: argparse.Namespace, config: AuditConfig) -> int:
    """Classify an execution log and write the report."""
    sources = load_sources(config)
    rule_set = build_configured_rule_set(config, sources)

    records = read_execution_log(args.log)
    report = build_report(
        records,
        rule_set,
        workers=config.report.workers,
        chunk_size=config.report.chunk_size,
        progress=lambda processed: logger.info("Classified %d records", processed),
    )

    blocked_only = args.blocked_only or config.report.blocked_only
    rows = report.to_rows(blocked_only=blocked_only)

    output_file = args.output or config.report.output_file
    if output_file:
        write_report(rows, output_file)
    else:
        write_report_rows(rows, sys.stdout)

    # Keep stdout clean when the report itself goes there
    summary = report.summary()
    stream = sys.stdout if output_file else sys.stderr
    if getattr(args, "json", False):
        print(json.dumps(summary, indent=2), file=stream)
    else:
        print("Audit Summary", file=stream)
        print("=" * 50, file=stream)
        print(f"Records processed:  {summary['records_processed']}", file=stream)
        print(f"Unique files:       {summary['unique_files']}", file=stream)
        print(f"Allowed:            {summary['allowed']}", file=stream)
        print(f"Would be blocked:   {summary['would_be_blocked']}", file=stream)
        if output_file:
            print(f"Report:             {output_file}", file=stream)

    return 0


def cmd_rules(args: argparse.Namespace, config: AuditConfig) -> int:
    """Inspect allow rules."""
    sources = load_sources(config)

    if args.rules_cmd == "show" or args.rules_cmd is None:
        rule_set = build_configured_rule_set(config, sources)

        if getattr(args, "json", False):
            output({"path_rules": rule_set.path_rules, **rule_set.summary()}, args)
        else:
            print(f"Path Rules ({len(rule_set.path_matchers)} compiled)")
            print("=" * 60)
            for i, rule in enumerate(rule_set.path_rules, 1):
                print(f"{i:>4}. {rule}")
            print()
            print(f"Publishers:  {len(rule_set.publishers)}")
            print(f"Hashes:      {len(rule_set.hashes)}")
            if rule_set.rejected_rules:
                print(f"Rejected:    {len(rule_set.rejected_rules)} path rule line(s)")

    elif args.rules_cmd == "validate":
        warnings = validate_rule_sources(sources)

        if getattr(args, "json", False):
            output({"valid": not warnings, "warnings": warnings}, args)
        else:
            print(
                f"Rule sources loaded: {len(sources.paths)} path rules, "
                f"{len(sources.publishers)} publishers, {len(sources.hashes)} hashes"
            )
            if warnings:
                print("\nWarnings:")
                for w in warnings:
                    print(f"  - {w}")

    elif args.rules_cmd == "test":
        rule_set = build_configured_rule_set(config, sources)
        folder, file_name = split_path(args.path)
        record = ExecutionRecord(
            folder=folder,
            file_name=file_name,
            sha256=args.sha256,
            publisher=args.publisher,
        )
        result = ExecutionClassifier(rule_set).classify(record)

        if getattr(args, "json", False):
            output(result.to_dict(), args)
        else:
            print(f"Testing rules for {args.path}")
            print("=" * 40)
            print(f"Path rule:   {result.matched_rule or 'No match'}")
            print(f"Publisher:   {'allowed' if result.publisher_allowed else 'not allowed'}")
            print(f"Hash:        {'allowed' if result.hash_allowed else 'not allowed'}")
            print(f"Verdict:     {'WOULD BE BLOCKED' if result.would_be_blocked else 'ALLOWED'}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
