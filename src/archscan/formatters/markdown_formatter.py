"""Markdown formatter: the canonical text report.

Output depends only on the Report, so rendering the same report twice gives
identical text. The timestamp line appears only when the report carries one.
The scan root is left out so reports of the same tree checked out in
different places match; the JSON output carries it.
"""

from typing import List

from ..report.models import Report, RuleVerdict
from .base import BaseFormatter


def _result(verdict: RuleVerdict) -> str:
    if verdict.mode.value == "advisory":
        return "ADVISORY"
    return "PASS" if verdict.passed else "FAIL"


def _escape(text: str) -> str:
    return text.replace("|", "\\|")


class MarkdownFormatter(BaseFormatter):
    """Render the report as a Markdown document."""

    title = "Architecture Conformance Report"

    def render(self, report: Report) -> None:
        print(self.format(report))

    def format(self, report: Report) -> str:
        lines: List[str] = [f"# {self.title}", ""]
        if report.generated_at is not None:
            lines.append(f"**Generated**: {report.generated_at:%Y-%m-%d %H:%M:%S}  ")
        lines.append(f"**Result**: {'PASSED' if report.passed else 'FAILED'}  ")
        lines.append(
            f"**Files scanned**: {report.files_scanned}, "
            f"**skipped**: {len(report.files_skipped)}, "
            f"**findings**: {sum(report.by_rule.values())}"
        )
        lines.append("")

        lines.extend(self._summary(report))
        lines.extend(self._layers(report))
        for verdict in report.verdicts:
            lines.extend(self._rule_section(report, verdict))
        if report.files_skipped:
            lines.append("## Skipped files")
            lines.append("")
            lines.extend(f"- `{path}`" for path in report.files_skipped)
            lines.append("")

        return "\n".join(lines).rstrip() + "\n"

    def _summary(self, report: Report) -> List[str]:
        lines = [
            "## Summary",
            "",
            "| Rule | Mode | Severity | Findings | Threshold | Result |",
            "|------|------|----------|----------|-----------|--------|",
        ]
        for v in report.verdicts:
            threshold = str(v.threshold) if v.mode.value == "threshold" else "-"
            lines.append(
                f"| {v.rule_id} | {v.mode.value} | {v.severity.value} | {v.count} | {threshold} | {_result(v)} |"
            )
        lines.append("")
        return lines

    def _layers(self, report: Report) -> List[str]:
        if not report.by_layer:
            return []
        lines = ["## Findings by layer", "", "| Layer | Findings |", "|-------|----------|"]
        lines.extend(f"| {layer} | {count} |" for layer, count in report.by_layer.items())
        lines.append("")
        return lines

    def _rule_section(self, report: Report, verdict: RuleVerdict) -> List[str]:
        if verdict.count == 0:
            return []
        lines = [f"## {verdict.rule_id} ({verdict.count})", ""]
        if verdict.description:
            lines.extend([f"_{verdict.description}_", ""])

        current_path = None
        for violation in report.violations_for(verdict.rule_id):
            if violation.path != current_path:
                if current_path is not None:
                    lines.append("")
                current_path = violation.path
                lines.append(f"### `{current_path}`")
                lines.append("")
            lines.append(f"- line {violation.line}: `{violation.subject}`: {violation.message}")
        if current_path is not None:
            lines.append("")

        pairs = report.pairs_for(verdict.rule_id)
        if pairs:
            lines.append("| Subject A | Subject B | Shared | Total | Ratio | Shared members |")
            lines.append("|-----------|-----------|--------|-------|-------|----------------|")
            for p in pairs:
                members = ", ".join(p.shared_members)
                lines.append(
                    f"| `{p.subject_a}` | `{p.subject_b}` | {p.shared} | {p.total} | {p.percent} | {_escape(members)} |"
                )
            lines.append("")
        return lines
