"""
Configuration management for allowlist-audit.

Handles loading, validation, and access to audit run configuration.
A loaded AuditConfig is passed explicitly to whatever needs it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml


# Default configuration paths
DEFAULT_CONFIG_PATH = Path("/etc/allowlist-audit/audit.yaml")


@dataclass
class LoggingConfig:
    """Logging settings."""

    log_level: str = "info"
    log_file: str | None = None


@dataclass
class RulesConfig:
    """Rule source and matching settings."""

    policy_file: str | None = None
    path_rules_file: str | None = None
    publishers_file: str | None = None
    hashes_file: str | None = None
    case_sensitive_paths: bool = True
    use_prefix_index: bool = True


@dataclass
class ReportConfig:
    """Report building settings."""

    workers: int = 1
    chunk_size: int = 5000
    blocked_only: bool = False
    output_file: str | None = None


@dataclass
class AuditConfig:
    """Main configuration container."""

    logging: LoggingConfig = field(default_factory=LoggingConfig)
    rules: RulesConfig = field(default_factory=RulesConfig)
    report: ReportConfig = field(default_factory=ReportConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AuditConfig:
        """Create configuration from dictionary."""
        return cls(
            logging=LoggingConfig(**(data.get("logging") or {})),
            rules=RulesConfig(**(data.get("rules") or {})),
            report=ReportConfig(**(data.get("report") or {})),
        )


def load_config(path: str | Path | None = None) -> AuditConfig:
    """
    Load configuration from YAML file.

    Args:
        path: Path to configuration file. If None, uses default paths.

    Returns:
        AuditConfig instance with loaded settings.

    Raises:
        FileNotFoundError: If an explicit config file does not exist.
        yaml.YAMLError: If config file is invalid YAML.
    """
    if path is None:
        # Try default locations
        candidates = [
            DEFAULT_CONFIG_PATH,
            Path("config/audit.yaml"),
            Path("audit.yaml"),
        ]
        for candidate in candidates:
            if candidate.exists():
                path = candidate
                break

    if path is None:
        # Return default configuration
        return AuditConfig()

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    return AuditConfig.from_dict(data)


def validate_config(config: AuditConfig) -> list[str]:
    """
    Validate configuration and return list of errors.

    Args:
        config: Configuration to validate.

    Returns:
        List of error messages. Empty list if valid.
    """
    errors: list[str] = []

    valid_log_levels = {"debug", "info", "warning", "error"}
    if config.logging.log_level not in valid_log_levels:
        errors.append(f"Invalid log_level: {config.logging.log_level}")

    if not (
        config.rules.policy_file
        or config.rules.path_rules_file
        or config.rules.publishers_file
        or config.rules.hashes_file
    ):
        errors.append("No rule source configured")

    if config.report.workers < 1:
        errors.append(f"Invalid workers: {config.report.workers}")

    if config.report.chunk_size < 1:
        errors.append(f"Invalid chunk_size: {config.report.chunk_size}")

    return errors
