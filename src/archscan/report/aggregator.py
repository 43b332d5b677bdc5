"""Deterministic grouping of findings into a Report."""

from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence

from ..config import DEFAULT_LAYERS
from ..rules.models import Rule, Violation
from ..similarity.models import SimilarityPair
from .models import Report, RuleVerdict

OTHER_LAYER = "Other"


def layer_of(path: str, layers: Sequence[str] = DEFAULT_LAYERS) -> str:
    """First layer marker (in ``layers`` order) present as a path segment.

    A segment matches a marker when it equals it or ends with ``.<marker>``,
    so both ``src/Core/...`` and ``src/Acme.Core/...`` land in ``Core``.
    """
    segments = path.split("/")
    for marker in layers:
        suffix = "." + marker
        if any(seg == marker or seg.endswith(suffix) for seg in segments):
            return marker
    return OTHER_LAYER


def aggregate(
    violations: Iterable[Violation],
    similarity_pairs: Iterable[SimilarityPair],
    rules: Sequence[Rule],
    layers: Sequence[str] = DEFAULT_LAYERS,
    files_scanned: int = 0,
    files_skipped: Iterable[str] = (),
    root: Optional[str] = None,
    generated_at: Optional[datetime] = None,
) -> Report:
    """Sort, group and judge findings.

    Violations sort by path, line, rule id and subject; pairs by rule id and
    subjects. Every rule gets a verdict, including rules with no findings.
    Similarity pairs count toward their rule's total and their first
    subject's layer.
    """
    ordered = sorted(violations)
    pairs = sorted(similarity_pairs, key=lambda p: (p.rule_id, p.subject_a, p.subject_b))

    by_file: Dict[str, List[Violation]] = {}
    for violation in ordered:
        by_file.setdefault(violation.path, []).append(violation)

    by_layer: Dict[str, int] = {}
    for violation in ordered:
        layer = layer_of(violation.path, layers)
        by_layer[layer] = by_layer.get(layer, 0) + 1
    for pair in pairs:
        path = (pair.location_a or "").rsplit(":", 1)[0]
        layer = layer_of(path, layers)
        by_layer[layer] = by_layer.get(layer, 0) + 1

    counts: Dict[str, int] = {rule.id: 0 for rule in rules}
    for violation in ordered:
        counts[violation.rule_id] = counts.get(violation.rule_id, 0) + 1
    for pair in pairs:
        counts[pair.rule_id] = counts.get(pair.rule_id, 0) + 1

    verdicts = [
        RuleVerdict(
            rule_id=rule.id,
            mode=rule.mode,
            severity=rule.severity,
            count=counts[rule.id],
            threshold=rule.threshold,
            passed=rule.passes(counts[rule.id]),
            description=rule.description,
        )
        for rule in sorted(rules, key=lambda r: r.id)
    ]

    return Report(
        violations=ordered,
        similarity_pairs=pairs,
        verdicts=verdicts,
        by_file=by_file,
        by_layer=dict(sorted(by_layer.items())),
        by_rule=dict(sorted(counts.items())),
        files_scanned=files_scanned,
        files_skipped=tuple(sorted(files_skipped)),
        root=root,
        generated_at=generated_at,
    )
