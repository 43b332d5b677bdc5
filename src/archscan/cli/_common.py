"""Shared CLI helpers."""

import difflib
from pathlib import Path
from typing import Optional

from rich.console import Console

from ..config import ScanConfig, load_config
from ..formatters import FORMATTERS, BaseFormatter, get_formatter

console = Console()
err_console = Console(stderr=True)

# Exit codes
EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG_ERROR = 2


def resolve_config(
    config: Optional[Path] = None,
    output_format: Optional[str] = None,
    workers: Optional[int] = None,
    scope_mode: Optional[str] = None,
    verbose: bool = False,
    quiet: bool = False,
) -> ScanConfig:
    """Build the scan configuration from CLI options."""
    return load_config(
        config_file=config,
        output_format=output_format,
        workers=workers,
        scope_mode=scope_mode,
        verbose=verbose,
        quiet=quiet,
    )


def did_you_mean(unknown: str, candidates: list[str], threshold: float = 0.6) -> list[str]:
    """Close matches for an unrecognized option value, best first."""
    return difflib.get_close_matches(unknown, candidates, n=3, cutoff=threshold)


def resolve_formatter(name: str) -> BaseFormatter:
    """Formatter by name; the ValueError names close matches when there are any."""
    try:
        return get_formatter(name)
    except ValueError as e:
        suggestions = did_you_mean(name, sorted(FORMATTERS))
        if suggestions:
            raise ValueError(f"{e} Did you mean: {', '.join(suggestions)}?") from e
        raise
