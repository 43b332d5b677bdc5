"""Rules CLI command: show the effective rule set."""

from pathlib import Path
from typing import Optional

import typer
from rich.table import Table
from rich.text import Text

from ..exceptions import ConfigurationError
from ..rules.engine import RuleEngine
from ..rules.loader import rules_from_config
from . import app
from ._common import EXIT_CONFIG_ERROR, console, err_console, resolve_config


@app.command()
def rules(
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Configuration file (TOML), may hold [[rules]]",
        exists=True,
        file_okay=True,
        dir_okay=False,
    ),
):
    """
    List the rules a scan would apply, after validating them.

    Shows the configured [[rules]] or, when there are none, the built-in pack.
    """
    try:
        settings = resolve_config(config=config)
        engine = RuleEngine(rules_from_config(settings))
    except ConfigurationError as e:
        err_console.print(f"[red]Configuration error:[/red] {e}", highlight=False)
        raise typer.Exit(code=EXIT_CONFIG_ERROR)

    table = Table(title=f"{len(engine.rules)} rules")
    table.add_column("Id", style="bold")
    table.add_column("Type")
    table.add_column("Mode")
    table.add_column("Severity")
    table.add_column("Description")
    for rule in sorted(engine.rules, key=lambda r: r.id):
        mode = rule.mode.value
        if mode == "threshold":
            mode = f"threshold ({rule.threshold})"
        table.add_row(rule.id, rule.type_name, mode, rule.severity.value, Text(rule.description))
    console.print(table)
