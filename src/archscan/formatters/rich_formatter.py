"""Rich terminal formatter for archscan."""

import io
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..report.models import Report, RuleVerdict
from ..rules.models import Severity
from .base import BaseFormatter

_SEVERITY_STYLES = {
    Severity.ERROR: "red",
    Severity.WARNING: "yellow",
    Severity.INFO: "cyan",
}


def _result_label(verdict: RuleVerdict) -> str:
    if verdict.mode.value == "advisory":
        return "[dim]advisory[/dim]"
    return "[green]pass[/green]" if verdict.passed else "[red bold]FAIL[/red bold]"


class RichFormatter(BaseFormatter):
    """Summary panel, verdict table, then one table of findings per rule."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def render(self, report: Report) -> None:
        self._print(report, self.console)

    def format(self, report: Report) -> str:
        capture = Console(file=io.StringIO(), record=True, width=120, color_system=None)
        self._print(report, capture)
        return capture.export_text()

    def _print(self, report: Report, console: Console) -> None:
        status = "[green bold]PASSED[/green bold]" if report.passed else "[red bold]FAILED[/red bold]"
        summary = (
            f"{status}\n"
            f"Files scanned: {report.files_scanned}  "
            f"Skipped: {len(report.files_skipped)}  "
            f"Findings: {sum(report.by_rule.values())}"
        )
        if report.generated_at is not None:
            summary += f"\nGenerated: {report.generated_at:%Y-%m-%d %H:%M:%S}"
        console.print(Panel(summary, title="[bold cyan]Architecture Conformance[/bold cyan]", expand=False))

        verdicts = Table(title="Rules", show_lines=False)
        verdicts.add_column("Rule", style="bold")
        verdicts.add_column("Mode")
        verdicts.add_column("Severity")
        verdicts.add_column("Findings", justify="right")
        verdicts.add_column("Result")
        for v in report.verdicts:
            style = _SEVERITY_STYLES[v.severity]
            verdicts.add_row(
                v.rule_id, v.mode.value, f"[{style}]{v.severity.value}[/{style}]", str(v.count), _result_label(v)
            )
        console.print(verdicts)

        for v in report.verdicts:
            violations = report.violations_for(v.rule_id)
            if violations:
                table = Table(title=v.rule_id, title_justify="left")
                table.add_column("Location")
                table.add_column("Subject", style="bold")
                table.add_column("Message")
                for violation in violations:
                    table.add_row(
                        Text(f"{violation.path}:{violation.line}"), Text(violation.subject), Text(violation.message)
                    )
                console.print(table)

            pairs = report.pairs_for(v.rule_id)
            if pairs:
                table = Table(title=v.rule_id, title_justify="left")
                table.add_column("Subject A", style="bold")
                table.add_column("Subject B", style="bold")
                table.add_column("Shared", justify="right")
                table.add_column("Ratio", justify="right")
                for p in pairs:
                    table.add_row(Text(p.subject_a), Text(p.subject_b), f"{p.shared}/{p.total}", p.percent)
                console.print(table)

        if report.files_skipped:
            console.print(f"[yellow]Skipped {len(report.files_skipped)} unreadable file(s):[/yellow]")
            for path in report.files_skipped:
                console.print(f"  {path}", markup=False)
