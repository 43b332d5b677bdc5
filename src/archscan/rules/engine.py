"""Rule evaluation over extracted declarations."""

from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ..exceptions import InvalidRuleError
from ..logging_config import get_logger
from ..scanning.models import (
    UNKNOWN_NAMESPACE,
    ContainerKind,
    Declaration,
    DeclarationKind,
    FileDeclarations,
    ScopeFrame,
)
from ..scanning.patterns import is_comment_line
from ..scanning.scope import ContainerFilter
from .duplicates import find_duplicate_groups
from .models import (
    DuplicateRule,
    NamespaceRule,
    PlacementRule,
    Rule,
    SimilarityRule,
    UsageRule,
    Violation,
)

logger = get_logger(__name__)


class RuleEngine:
    """Compiled rule set.

    Every rule is validated when the engine is built, so a malformed rule
    fails the run before any file is read.

    Per-file rules (placement constraints, namespace, usage) run in
    ``evaluate_file`` and may be called from worker threads. Cross-file rules
    (placement ``max_count``, duplicates) run once in ``evaluate_global``.
    Similarity rules are only carried here; the similarity detector runs them.

    Raises:
        InvalidRuleError: On a duplicate rule id or a malformed rule
    """

    def __init__(self, rules: Iterable[Rule]):
        self.rules: List[Rule] = list(rules)
        seen = set()
        for rule in self.rules:
            if rule.id in seen:
                raise InvalidRuleError(rule.id, "duplicate rule id", field="id")
            seen.add(rule.id)
            try:
                rule.compile()
            except TypeError as e:
                raise InvalidRuleError(str(rule.id), str(e)) from e
        logger.debug(f"Compiled {len(self.rules)} rules")

    def _of_type(self, rule_type) -> list:
        return [r for r in self.rules if isinstance(r, rule_type)]

    @property
    def placement_rules(self) -> List[PlacementRule]:
        return self._of_type(PlacementRule)

    @property
    def namespace_rules(self) -> List[NamespaceRule]:
        return self._of_type(NamespaceRule)

    @property
    def usage_rules(self) -> List[UsageRule]:
        return self._of_type(UsageRule)

    @property
    def duplicate_rules(self) -> List[DuplicateRule]:
        return self._of_type(DuplicateRule)

    @property
    def similarity_rules(self) -> List[SimilarityRule]:
        return self._of_type(SimilarityRule)

    def container_filter(self) -> Optional[ContainerFilter]:
        """Containers any placement rule constrains, for the single-frame tracker.

        Returns None when no rule names a container, meaning every
        container is tracked.
        """
        constrained = [
            r for r in self.placement_rules if r.required_kinds or r.forbidden_kinds
        ]
        if not constrained:
            return None

        def accepts(kind: ContainerKind, name: str) -> bool:
            for rule in constrained:
                if kind not in rule.required_kinds | rule.forbidden_kinds:
                    continue
                pattern = rule.compiled_container_pattern
                if pattern is None or pattern.search(name):
                    return True
            return False

        return accepts

    def evaluate(self, files: Sequence[FileDeclarations]) -> List[Violation]:
        """Run every per-file and cross-file rule; violations come back sorted."""
        violations: List[Violation] = []
        for file_decls in files:
            violations.extend(self.evaluate_file(file_decls))
        violations.extend(self.evaluate_global([d for f in files for d in f.declarations]))
        return sorted(violations)

    def evaluate_file(self, file_decls: FileDeclarations) -> List[Violation]:
        violations: List[Violation] = []
        for rule in self.placement_rules:
            if rule.has_file_constraints or rule.reports_every_match:
                violations.extend(self._check_placement(rule, file_decls.declarations))
        for rule in self.namespace_rules:
            violations.extend(self._check_namespace(rule, file_decls))
        for rule in self.usage_rules:
            violations.extend(self._check_usage(rule, file_decls))
        return violations

    def evaluate_global(self, declarations: Sequence[Declaration]) -> List[Violation]:
        violations: List[Violation] = []
        for rule in self.placement_rules:
            if rule.max_count is not None:
                violations.extend(self._check_uniqueness(rule, declarations))
        for rule in self.duplicate_rules:
            violations.extend(self._check_duplicates(rule, declarations))
        return violations

    # -- placement ---------------------------------------------------------

    @staticmethod
    def _matches(rule: PlacementRule, decl: Declaration) -> bool:
        if decl.kind not in rule.kind_set:
            return False
        if rule.allows(decl.name) or rule.allows(decl.qualified_name):
            return False
        assert rule.compiled_pattern is not None
        return rule.compiled_pattern.search(decl.name) is not None

    def _check_placement(self, rule: PlacementRule, declarations: Sequence[Declaration]) -> List[Violation]:
        violations = []
        for decl in declarations:
            if not self._matches(rule, decl):
                continue
            problem = self._placement_problem(rule, decl)
            if problem is not None:
                reason, frame = problem
                violations.append(_violation(rule, decl, reason, frame))
        return violations

    @staticmethod
    def _placement_problem(
        rule: PlacementRule, decl: Declaration
    ) -> Optional[Tuple[str, Optional[ScopeFrame]]]:
        if rule.container_scope == "any":
            frames: Tuple[ScopeFrame, ...] = decl.ancestors
        else:
            frames = (decl.container,) if decl.container is not None else ()
        if rule.compiled_container_pattern is not None:
            pattern = rule.compiled_container_pattern
            frames = tuple(f for f in frames if pattern.search(f.name))

        if rule.forbidden_kinds:
            for frame in reversed(frames):
                if frame.kind in rule.forbidden_kinds:
                    return f"must not be declared inside {frame.label}", frame
        if rule.required_kinds and not any(f.kind in rule.required_kinds for f in frames):
            wanted = " or ".join(sorted(k.value for k in rule.required_kinds))
            return f"must be declared inside {wanted}", decl.container
        slashed = "/" + decl.path
        if rule.required_path and rule.required_path not in slashed:
            return f"must be located under {rule.required_path}", decl.container
        if rule.forbidden_path and rule.forbidden_path in slashed:
            return f"must not be located under {rule.forbidden_path}", decl.container
        if rule.require_namespace and decl.namespace == UNKNOWN_NAMESPACE:
            return "has no namespace declaration", decl.container
        if rule.reports_every_match:
            return f"matches forbidden pattern {rule.pattern}", decl.container
        return None

    def _check_uniqueness(self, rule: PlacementRule, declarations: Sequence[Declaration]) -> List[Violation]:
        assert rule.max_count is not None
        matched = sorted((d for d in declarations if self._matches(rule, d)), key=lambda d: d.sort_key)
        if len(matched) <= rule.max_count:
            return []
        reason = f"is one of {len(matched)} declarations matching {rule.pattern} (max {rule.max_count})"
        return [_violation(rule, d, reason, d.container) for d in matched]

    # -- namespace and usage -------------------------------------------------

    def _check_namespace(self, rule: NamespaceRule, file_decls: FileDeclarations) -> List[Violation]:
        path = file_decls.path
        namespace = file_decls.namespace
        if namespace == UNKNOWN_NAMESPACE or any(p in "/" + path for p in rule.exempt_paths):
            return []
        expected = rule.expected_namespace(path)
        if expected is None or namespace == expected:
            return []
        if rule.allows(namespace) or rule.allows(path):
            return []

        line = next(
            (d.line for d in file_decls.declarations if d.kind is DeclarationKind.NAMESPACE), 1
        )
        message = _render(
            rule,
            name=namespace,
            kind=DeclarationKind.NAMESPACE.value,
            path=path,
            line=line,
            namespace=namespace,
            reason=f"expected {expected}",
            expected=expected,
        )
        return [
            Violation(
                path=path,
                line=line,
                rule_id=rule.id,
                subject=namespace,
                severity=rule.severity,
                message=message,
                namespace=namespace,
            )
        ]

    def _check_usage(self, rule: UsageRule, file_decls: FileDeclarations) -> List[Violation]:
        unit = file_decls.unit
        if rule.exempts(unit.relative_path, unit.text):
            return []
        assert rule.compiled_pattern is not None

        violations = []
        for number, text in enumerate(unit.lines, start=1):
            if is_comment_line(text):
                continue
            match = rule.compiled_pattern.search(text)
            if match is None or rule.allows(match.group(0)):
                continue
            message = _render(
                rule,
                name=match.group(0),
                kind="usage",
                path=unit.relative_path,
                line=number,
                namespace=file_decls.namespace,
                reason="forbidden usage",
                text=text.strip(),
            )
            violations.append(
                Violation(
                    path=unit.relative_path,
                    line=number,
                    rule_id=rule.id,
                    subject=match.group(0),
                    severity=rule.severity,
                    message=message,
                    namespace=file_decls.namespace,
                )
            )
        return violations

    # -- duplicates ------------------------------------------------------------

    def _check_duplicates(self, rule: DuplicateRule, declarations: Sequence[Declaration]) -> List[Violation]:
        violations = []
        for group in find_duplicate_groups(rule, declarations):
            names = ", ".join(group.names)
            for decl in group.members:
                violations.append(
                    _violation(
                        rule,
                        decl,
                        f"shares base name {group.base}",
                        decl.container,
                        base=group.base,
                        count=len(group.members),
                        group=names,
                    )
                )
        return violations


def _render(rule: Rule, **values) -> str:
    fields: Dict[str, object] = defaultdict(str)
    fields.update(
        rule=rule.id,
        name="",
        kind="",
        path="",
        line=0,
        container="",
        container_kind="",
        namespace="",
        reason="",
    )
    fields.update(values)
    return rule.template.format_map(fields)


def _violation(
    rule: Rule, decl: Declaration, reason: str, frame: Optional[ScopeFrame], **extras
) -> Violation:
    container_name = frame.name if frame else None
    container_kind = frame.kind.value if frame else None
    message = _render(
        rule,
        name=decl.name,
        kind=decl.kind.value,
        path=decl.path,
        line=decl.line,
        container=container_name or "",
        container_kind=container_kind or "",
        namespace=decl.namespace,
        reason=reason,
        **extras,
    )
    return Violation(
        path=decl.path,
        line=decl.line,
        rule_id=rule.id,
        subject=decl.name,
        severity=rule.severity,
        message=message,
        container_name=container_name,
        container_kind=container_kind,
        namespace=decl.namespace,
    )
