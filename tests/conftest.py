"""
Pytest configuration and shared fixtures for allowlist-audit tests.
"""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Generator

import pytest
import yaml


ALLOWED_HASH = "a" * 64
OTHER_HASH = "b" * 64


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_policy(temp_dir: Path) -> Path:
    """Create a sample policy file."""
    policy_path = temp_dir / "policy.yaml"
    policy_data = {
        "paths": [
            "C:\\Program Files\\*",
            "C:\\Users\\*\\AppData\\Local\\assembly\\dl3\\????????.???\\*",
            "C:\\Tools\\**",
        ],
        "publishers": ["Microsoft Corporation"],
        "hashes": [ALLOWED_HASH.upper()],
    }
    with open(policy_path, "w") as f:
        yaml.dump(policy_data, f)
    return policy_path


@pytest.fixture
def sample_config(temp_dir: Path, sample_policy: Path) -> Path:
    """Create a sample configuration file."""
    config_path = temp_dir / "audit.yaml"
    config_data = {
        "logging": {
            "log_level": "debug",
        },
        "rules": {
            "policy_file": str(sample_policy),
        },
        "report": {
            "workers": 2,
            "chunk_size": 2,
        },
    }
    with open(config_path, "w") as f:
        yaml.dump(config_data, f)
    return config_path


@pytest.fixture
def sample_log(temp_dir: Path) -> Path:
    """Create a sample execution log (unsorted, with a duplicate file)."""
    log_path = temp_dir / "executions.csv"
    lines = [
        "folder,file_name,sha256,publisher,hostname,user",
        f"C:\\Temp\\,evil.exe,{OTHER_HASH},,WS01,alice",
        f"C:\\Program Files\\,app.exe,{OTHER_HASH},,WS01,alice",
        f"C:\\Temp\\,signed.exe,{OTHER_HASH},Microsoft Corporation,WS02,bob",
        f"C:\\Temp\\,known.exe,{ALLOWED_HASH},,WS02,bob",
        f"C:\\Temp\\,evil.exe,{'c' * 64},,WS03,carol",
    ]
    log_path.write_text("\n".join(lines) + "\n")
    return log_path
