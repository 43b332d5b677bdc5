"""CLI entry point, registers all subcommands."""

import typer

from .. import __version__
from ._common import console

app = typer.Typer(
    name="archscan",
    help="archscan - Architecture conformance scanner for C# source trees",
    add_completion=False,
    rich_markup_mode="rich",
    no_args_is_help=True,
)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"archscan {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        help="Show the version and exit",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """Check a source tree against placement, naming and uniqueness rules."""


# Import subcommands to register them
from .scan import scan as _scan  # noqa: F401, E402
from .rules import rules as _rules  # noqa: F401, E402
