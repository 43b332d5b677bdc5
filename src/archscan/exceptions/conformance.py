"""Raised by the test-gate helper when a scan fails its rules."""

from typing import TYPE_CHECKING

from .base import ArchScanError

if TYPE_CHECKING:
    from ..report.models import Report


class ConformanceError(ArchScanError):
    """The scanned tree violates at least one Enforcing or Threshold rule.

    ``str(error)`` is the full rendered report so a failing assertion shows
    every grouped violation, not just a count.
    """

    def __init__(self, report: "Report", rendered: str):
        failed = [v.rule_id for v in report.verdicts if not v.passed]
        super().__init__(
            f"Architecture conformance failed: {len(failed)} rule(s) violated",
            details={"rules": ", ".join(failed)},
        )
        self.report = report
        self.rendered = rendered

    def __str__(self) -> str:
        return f"{super().__str__()}\n\n{self.rendered}"
