"""
Tests for configuration loading and validation.
"""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from allowaudit.config import (
    AuditConfig,
    ReportConfig,
    RulesConfig,
    load_config,
    validate_config,
)


class TestAuditConfig:
    """Tests for AuditConfig dataclass."""

    def test_default_config(self) -> None:
        """Test default configuration values."""
        config = AuditConfig()

        assert config.logging.log_level == "info"
        assert config.logging.log_file is None
        assert config.rules.policy_file is None
        assert config.rules.case_sensitive_paths is True
        assert config.rules.use_prefix_index is True
        assert config.report.workers == 1
        assert config.report.chunk_size == 5000

    def test_from_dict(self) -> None:
        """Test creating config from dictionary."""
        data = {
            "logging": {"log_level": "debug"},
            "report": {"workers": 4},
        }
        config = AuditConfig.from_dict(data)

        assert config.logging.log_level == "debug"
        assert config.report.workers == 4
        # Check defaults still work
        assert config.report.chunk_size == 5000
        assert config.rules == RulesConfig()

    def test_from_dict_empty(self) -> None:
        """Test creating config from empty dictionary."""
        config = AuditConfig.from_dict({})

        assert config.logging.log_level == "info"
        assert config.report == ReportConfig()

    def test_from_dict_null_sections(self) -> None:
        """Test sections left empty in YAML fall back to defaults."""
        config = AuditConfig.from_dict({"rules": None, "report": None})

        assert config.rules.policy_file is None
        assert config.report.workers == 1

    def test_from_dict_unknown_key(self) -> None:
        """Test unknown settings are rejected."""
        with pytest.raises(TypeError):
            AuditConfig.from_dict({"report": {"threads": 2}})


class TestLoadConfig:
    """Tests for load_config function."""

    def test_load_from_file(self, sample_config: Path, sample_policy: Path) -> None:
        """Test loading configuration from file."""
        config = load_config(sample_config)

        assert config.logging.log_level == "debug"
        assert config.rules.policy_file == str(sample_policy)
        assert config.report.workers == 2
        assert config.report.chunk_size == 2

    def test_load_missing_file(self, temp_dir: Path) -> None:
        """Test loading from non-existent file raises error."""
        with pytest.raises(FileNotFoundError):
            load_config(temp_dir / "nonexistent.yaml")

    def test_load_default_when_no_path(
        self, temp_dir: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test loading returns default config when no file found."""
        monkeypatch.chdir(temp_dir)
        monkeypatch.setattr("allowaudit.config.DEFAULT_CONFIG_PATH", temp_dir / "none.yaml")

        config = load_config(None)
        assert config == AuditConfig()

    def test_load_from_working_directory(
        self, temp_dir: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test audit.yaml in the working directory is found."""
        (temp_dir / "audit.yaml").write_text("report:\n  workers: 3\n")
        monkeypatch.chdir(temp_dir)
        monkeypatch.setattr("allowaudit.config.DEFAULT_CONFIG_PATH", temp_dir / "none.yaml")

        config = load_config(None)
        assert config.report.workers == 3

    def test_load_empty_file(self, temp_dir: Path) -> None:
        """Test an empty file gives defaults."""
        empty = temp_dir / "empty.yaml"
        empty.write_text("")

        assert load_config(empty) == AuditConfig()

    def test_load_invalid_yaml(self, temp_dir: Path) -> None:
        """Test loading invalid YAML raises error."""
        bad_file = temp_dir / "bad.yaml"
        bad_file.write_text("invalid: yaml: content: [")

        with pytest.raises(yaml.YAMLError):
            load_config(bad_file)


class TestValidateConfig:
    """Tests for validate_config function."""

    def _config(self) -> AuditConfig:
        config = AuditConfig()
        config.rules.policy_file = "policy.yaml"
        return config

    def test_valid_config(self) -> None:
        """Test validation passes for valid config."""
        assert validate_config(self._config()) == []

    def test_text_rule_source_is_enough(self) -> None:
        """Test a single text rule file counts as a rule source."""
        config = AuditConfig()
        config.rules.hashes_file = "hashes.txt"

        assert validate_config(config) == []

    def test_no_rule_source(self) -> None:
        """Test validation requires a rule source."""
        errors = validate_config(AuditConfig())
        assert "No rule source configured" in errors

    def test_invalid_log_level(self) -> None:
        """Test validation catches invalid log level."""
        config = self._config()
        config.logging.log_level = "invalid"

        errors = validate_config(config)
        assert any("log_level" in e for e in errors)

    def test_invalid_workers(self) -> None:
        """Test validation catches a non-positive worker count."""
        config = self._config()
        config.report.workers = 0

        errors = validate_config(config)
        assert any("workers" in e for e in errors)

    def test_invalid_chunk_size(self) -> None:
        """Test validation catches a non-positive chunk size."""
        config = self._config()
        config.report.chunk_size = -1

        errors = validate_config(config)
        assert any("chunk_size" in e for e in errors)
