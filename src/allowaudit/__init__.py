"""
allowlist-audit - application allowlisting policy auditor.

Replays a historical execution log against the current allow rules
(path patterns, code-signing publishers and file hashes) and reports
which executions the active policy would have blocked.
"""

__version__ = "0.1.0"
__author__ = "allowlist-audit Contributors"

from allowaudit.config import AuditConfig, load_config

__all__ = ["AuditConfig", "load_config", "__version__"]
