"""Exception hierarchy for archscan."""

from .base import ArchScanError
from .config import (
    ConfigurationError,
    InvalidConfigError,
    InvalidPathError,
    InvalidRuleError,
)
from .conformance import ConformanceError
from .scanning import FileAccessError, ScanCancelledError, ScanError

__all__ = [
    "ArchScanError",
    "ScanError",
    "FileAccessError",
    "ScanCancelledError",
    "ConfigurationError",
    "InvalidPathError",
    "InvalidConfigError",
    "InvalidRuleError",
    "ConformanceError",
]
