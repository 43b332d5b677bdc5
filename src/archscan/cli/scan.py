"""Scan CLI command: run the rules and print the report."""

from datetime import datetime
from pathlib import Path
from typing import Optional

import typer

from ..api import scan as run_scan
from ..exceptions import ArchScanError, ConfigurationError
from ..logging_config import setup_logging
from . import app
from ._common import (
    EXIT_CONFIG_ERROR,
    EXIT_FAILED,
    EXIT_OK,
    err_console,
    resolve_config,
    resolve_formatter,
)


@app.command()
def scan(
    path: Path = typer.Argument(
        Path("."),
        help="Root of the source tree to scan",
        exists=True,
        file_okay=False,
        dir_okay=True,
        resolve_path=True,
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Configuration file (TOML), may hold [[rules]]",
        exists=True,
        file_okay=True,
        dir_okay=False,
    ),
    output_format: Optional[str] = typer.Option(
        None,
        "--format",
        "-f",
        help="Output format: markdown, json, rich, github",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the report to this file instead of stdout",
    ),
    workers: Optional[int] = typer.Option(
        None,
        "--workers",
        "-w",
        help="Parallel workers",
        min=1,
        max=64,
    ),
    scope_mode: Optional[str] = typer.Option(
        None,
        "--scope-mode",
        help="Container tracking: stack (nested) or single (legacy)",
    ),
    timestamp: bool = typer.Option(
        False,
        "--timestamp",
        help="Include the generation time in the report",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Only log errors",
    ),
):
    """
    Scan a source tree and report architecture rule violations.

    Exits 0 when every enforcing and threshold rule passes, 1 when any
    fails and 2 on configuration errors.

    [bold cyan]Examples:[/bold cyan]

      archscan scan .

      archscan scan src --format rich --scope-mode single

      archscan scan . --config archscan.toml --output report.md --timestamp
    """
    setup_logging(verbose=verbose, quiet=quiet)

    try:
        settings = resolve_config(
            config=config,
            output_format=output_format,
            workers=workers,
            scope_mode=scope_mode,
            verbose=verbose,
            quiet=quiet,
        )
        formatter = resolve_formatter(settings.output_format)
    except (ConfigurationError, ValueError) as e:
        err_console.print(f"[red]Configuration error:[/red] {e}", highlight=False)
        raise typer.Exit(code=EXIT_CONFIG_ERROR)

    try:
        report = run_scan(
            path,
            config=settings,
            generated_at=datetime.now() if timestamp else None,
        )
    except ConfigurationError as e:
        err_console.print(f"[red]Configuration error:[/red] {e}", highlight=False)
        raise typer.Exit(code=EXIT_CONFIG_ERROR)
    except ArchScanError as e:
        err_console.print(f"[red]Error:[/red] {e}", highlight=False)
        raise typer.Exit(code=EXIT_CONFIG_ERROR)

    if output is not None:
        output.write_text(formatter.format(report), encoding="utf-8")
        err_console.print(f"Report written to {output}", highlight=False)
    else:
        formatter.render(report)

    raise typer.Exit(code=EXIT_OK if report.passed else EXIT_FAILED)
