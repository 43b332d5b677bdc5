"""GitHub Actions formatter: workflow annotations."""

from typing import List

from ..report.models import Report
from ..rules.models import Severity
from .base import BaseFormatter

_LEVELS = {Severity.ERROR: "error", Severity.WARNING: "warning", Severity.INFO: "notice"}


def _escape(text: str) -> str:
    return text.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


class GithubFormatter(BaseFormatter):
    """Output ``::error`` / ``::warning`` / ``::notice`` annotations.

    Violations of advisory rules are downgraded to ``notice``.
    """

    def render(self, report: Report) -> None:
        print(self.format(report))

    def format(self, report: Report) -> str:
        advisory = {v.rule_id for v in report.verdicts if v.mode.value == "advisory"}
        lines: List[str] = []
        for v in report.violations:
            level = "notice" if v.rule_id in advisory else _LEVELS[v.severity]
            lines.append(
                f"::{level} file={v.path},line={v.line},title={v.rule_id}::{_escape(v.message)}"
            )
        for p in report.similarity_pairs:
            where = ""
            if p.location_a:
                path, _, line = p.location_a.rpartition(":")
                where = f" file={path},line={line},title={p.rule_id}"
            lines.append(f"::notice{where}::{_escape(p.message or p.key)}")

        failed = report.failed_rules
        status = "passed" if not failed else f"failed: {', '.join(failed)}"
        lines.append(f"archscan {status} ({sum(report.by_rule.values())} findings)")
        return "\n".join(lines)
