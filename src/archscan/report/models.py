"""Aggregated scan results."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from ..rules.models import RuleMode, Severity, Violation
from ..similarity.models import SimilarityPair


@dataclass(frozen=True)
class RuleVerdict:
    rule_id: str
    mode: RuleMode
    severity: Severity
    count: int
    threshold: int
    passed: bool
    description: str = ""


@dataclass
class Report:
    """Everything a formatter needs, already sorted and grouped.

    ``generated_at`` is informational only and never affects ordering or
    grouping.
    """

    violations: List[Violation] = field(default_factory=list)
    similarity_pairs: List[SimilarityPair] = field(default_factory=list)
    verdicts: List[RuleVerdict] = field(default_factory=list)
    by_file: Dict[str, List[Violation]] = field(default_factory=dict)
    by_layer: Dict[str, int] = field(default_factory=dict)
    by_rule: Dict[str, int] = field(default_factory=dict)
    files_scanned: int = 0
    files_skipped: Tuple[str, ...] = ()
    root: Optional[str] = None
    generated_at: Optional[datetime] = None

    @property
    def passed(self) -> bool:
        return all(v.passed for v in self.verdicts)

    @property
    def failed_rules(self) -> List[str]:
        return [v.rule_id for v in self.verdicts if not v.passed]

    def violations_for(self, rule_id: str) -> List[Violation]:
        return [v for v in self.violations if v.rule_id == rule_id]

    def pairs_for(self, rule_id: str) -> List[SimilarityPair]:
        return [p for p in self.similarity_pairs if p.rule_id == rule_id]

    def verdict(self, rule_id: str) -> Optional[RuleVerdict]:
        return next((v for v in self.verdicts if v.rule_id == rule_id), None)
