"""JSON formatter for archscan."""

import json
from dataclasses import asdict
from enum import Enum

from ..report.models import Report
from .base import BaseFormatter


def _default(value):
    if isinstance(value, Enum):
        return value.value
    if hasattr(value, "isoformat"):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class JsonFormatter(BaseFormatter):
    """Render the report as JSON."""

    def render(self, report: Report) -> None:
        print(self.format(report))

    def format(self, report: Report) -> str:
        data = {
            "passed": report.passed,
            "root": report.root,
            "generated_at": report.generated_at,
            "files_scanned": report.files_scanned,
            "files_skipped": list(report.files_skipped),
            "verdicts": [asdict(v) for v in report.verdicts],
            "by_rule": report.by_rule,
            "by_layer": report.by_layer,
            "violations": [asdict(v) for v in report.violations],
            "similarity_pairs": [asdict(p) for p in report.similarity_pairs],
        }
        return json.dumps(data, indent=2, default=_default)
