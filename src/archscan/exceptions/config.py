"""Configuration exceptions: paths, settings, rule definitions."""

from pathlib import Path
from typing import Any, Optional

from .base import ArchScanError


class ConfigurationError(ArchScanError):
    """Base class for configuration-related errors."""

    pass


class InvalidPathError(ConfigurationError):
    """Raised when a provided path is invalid."""

    def __init__(self, path: Path, reason: str):
        super().__init__(f"Invalid path: {path}", details={"path": str(path), "reason": reason})
        self.path = path
        self.reason = reason


class InvalidConfigError(ConfigurationError):
    """Raised when configuration values are invalid."""

    def __init__(self, key: str, value: Any, reason: str):
        super().__init__(
            f"Invalid configuration for {key}: {value}",
            details={"key": key, "value": str(value), "reason": reason},
        )
        self.key = key
        self.value = value
        self.reason = reason


class InvalidRuleError(ConfigurationError):
    """Raised when a rule definition cannot be compiled.

    Rule errors abort the run before any file is read.
    """

    def __init__(self, rule_id: str, reason: str, field: Optional[str] = None):
        details = {"rule": rule_id, "reason": reason}
        if field:
            details["field"] = field
        super().__init__(f"Invalid rule '{rule_id}'", details=details)
        self.rule_id = rule_id
        self.reason = reason
        self.field = field
