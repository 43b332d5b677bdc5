"""Public API for archscan.

Example:
    >>> from archscan import scan, check
    >>>
    >>> report = scan("/path/to/solution")
    >>> report.passed
    True
    >>>
    >>> # Inside a test suite: raise with the full report on failure
    >>> check("/path/to/solution")
"""

from __future__ import annotations

import threading
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional, Union

from .config import ScanConfig, load_config
from .exceptions import ConformanceError, InvalidPathError
from .file_ops import find_solution_root
from .formatters.markdown_formatter import MarkdownFormatter
from .logging_config import get_logger
from .report.models import Report
from .rules.engine import RuleEngine
from .rules.loader import rules_from_config
from .rules.models import Rule
from .scanning.scanner import SourceScanner

logger = get_logger(__name__)


def scan(
    root: Union[str, Path] = ".",
    rules: Optional[Iterable[Rule]] = None,
    config: Optional[ScanConfig] = None,
    cancel_event: Optional[threading.Event] = None,
    generated_at: Optional[datetime] = None,
) -> Report:
    """Scan a source tree and return the aggregated report.

    Args:
        root: Directory to scan
        rules: Rules to apply; defaults to the configured rules or the
            built-in pack
        config: Scan configuration; defaults to ``load_config()``
        cancel_event: Set it from another thread to abort the scan
        generated_at: Optional timestamp shown in rendered reports

    Returns:
        The Report

    Raises:
        ConfigurationError: On invalid configuration or rules
        ScanCancelledError: If the scan was cancelled
    """
    root_path = Path(root)
    if not root_path.is_dir():
        raise InvalidPathError(root_path, "not a directory")

    config = config or load_config()
    rule_list = list(rules) if rules is not None else rules_from_config(config)
    engine = RuleEngine(rule_list)

    result = SourceScanner(root_path, engine, config).scan(
        cancel_event=cancel_event, generated_at=generated_at
    )
    report = result.report
    logger.info(
        f"Scanned {report.files_scanned} files: {len(report.violations)} violations, "
        f"{len(report.similarity_pairs)} similar pairs"
    )
    return report


def check(
    root: Union[str, Path] = ".",
    rules: Optional[Iterable[Rule]] = None,
    config: Optional[ScanConfig] = None,
) -> Report:
    """Scan like ``scan`` and raise when any enforcing or threshold rule fails.

    Raises:
        ConformanceError: Carrying the report and its Markdown rendering
    """
    report = scan(root, rules=rules, config=config)
    if not report.passed:
        raise ConformanceError(report, MarkdownFormatter().format(report))
    return report


__all__ = ["scan", "check", "find_solution_root"]
