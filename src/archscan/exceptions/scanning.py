"""Scanning exceptions: unreadable files, cancelled scans."""

from pathlib import Path

from .base import ArchScanError


class ScanError(ArchScanError):
    """Base class for errors raised while scanning a source tree."""

    pass


class FileAccessError(ScanError):
    """Raised when a source file cannot be read or decoded.

    The scanner isolates these per file: the file is skipped and logged,
    the rest of the tree is still scanned.
    """

    def __init__(self, filepath: Path, reason: str):
        super().__init__(
            f"Cannot access file: {filepath}",
            details={"filepath": str(filepath), "reason": reason},
        )
        self.filepath = filepath
        self.reason = reason


class ScanCancelledError(ScanError):
    """Raised when a scan is cancelled before it completes.

    A cancelled scan never produces a partial report.
    """

    def __init__(self, files_done: int, files_total: int):
        super().__init__(
            "Scan cancelled",
            details={"files_done": str(files_done), "files_total": str(files_total)},
        )
        self.files_done = files_done
        self.files_total = files_total
