"""Rule definitions and the violations they produce."""

from __future__ import annotations

import re
import string
from dataclasses import dataclass, field, fields
from enum import Enum
from functools import lru_cache
from typing import (
    Any,
    ClassVar,
    Dict,
    FrozenSet,
    Mapping,
    Optional,
    Pattern,
    Tuple,
    Union,
    get_args,
    get_origin,
    get_type_hints,
)

from ..exceptions import InvalidRuleError
from ..scanning.models import ContainerKind, DeclarationKind


class Severity(Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class RuleMode(Enum):
    """How a rule's finding count turns into pass or fail.

    ENFORCING fails on any finding, ADVISORY never fails and THRESHOLD fails
    once the count exceeds the rule's threshold.
    """

    ENFORCING = "enforcing"
    ADVISORY = "advisory"
    THRESHOLD = "threshold"


# Fields every message template may use, with a value of the type a real
# violation passes for each. Templates are rendered against these once at
# compile time so a bad format spec fails before scanning.
MESSAGE_SAMPLES: Mapping[str, Any] = {
    "rule": "rule-id",
    "name": "Name",
    "kind": "type",
    "path": "src/Name.cs",
    "line": 1,
    "container": "Container",
    "container_kind": "class",
    "namespace": "Acme",
    "reason": "reason",
}
MESSAGE_FIELDS = frozenset(MESSAGE_SAMPLES)


@lru_cache(maxsize=None)
def field_hints(rule_cls: type) -> Dict[str, Any]:
    """Resolved annotations of a rule dataclass."""
    return get_type_hints(rule_cls)


def unwrap_optional(hint: Any) -> Tuple[Any, bool]:
    """``Optional[X]`` as ``(X, True)``, anything else as ``(hint, False)``."""
    if get_origin(hint) is Union:
        args = [a for a in get_args(hint) if a is not type(None)]
        if len(args) == 1:
            return args[0], True
    return hint, False


def is_collection_hint(hint: Any) -> bool:
    return get_origin(hint) in (tuple, frozenset)


def value_fits(value: Any, hint: Any) -> bool:
    """Whether ``value`` is acceptable for a field annotated ``hint``.

    Bools are not ints here, ints are accepted as floats and collections of
    strings may be any of list, tuple, set or frozenset.
    """
    hint, optional = unwrap_optional(hint)
    if value is None:
        return optional
    if is_collection_hint(hint):
        return isinstance(value, (list, tuple, set, frozenset)) and all(
            isinstance(v, (str, Enum)) for v in value
        )
    if hint is bool:
        return isinstance(value, bool)
    if hint is int:
        return isinstance(value, int) and not isinstance(value, bool)
    if hint is float:
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if isinstance(hint, type):
        return isinstance(value, hint)
    return True


def describe_hint(hint: Any) -> str:
    hint, _ = unwrap_optional(hint)
    if is_collection_hint(hint):
        return "list of strings"
    return getattr(hint, "__name__", str(hint))


@dataclass
class Rule:
    """Fields shared by every rule type.

    ``message`` is a ``str.format`` template; empty means the rule type's
    default. ``allow_list`` names are never reported.
    """

    id: str
    description: str = ""
    severity: Severity = Severity.ERROR
    mode: RuleMode = RuleMode.ENFORCING
    threshold: int = 0
    allow_list: FrozenSet[str] = frozenset()
    message: str = ""

    type_name: ClassVar[str] = "rule"
    default_message: ClassVar[str] = "{name} violates {rule}"
    extra_message_samples: ClassVar[Mapping[str, Any]] = {}

    @property
    def template(self) -> str:
        return self.message or self.default_message

    def allows(self, name: str) -> bool:
        return name in self.allow_list

    def passes(self, count: int) -> bool:
        if self.mode is RuleMode.ADVISORY:
            return True
        if self.mode is RuleMode.THRESHOLD:
            return count <= self.threshold
        return count == 0

    def compile(self) -> None:
        """Validate the rule and prepare its patterns.

        Raises:
            InvalidRuleError: On the first malformed field
        """
        if not self.id or not isinstance(self.id, str):
            raise InvalidRuleError(
                str(self.id or "<unnamed>"), "rule id must be a non-empty string", field="id"
            )
        hints = field_hints(type(self))
        for f in fields(self):
            if not f.init:
                continue
            value = getattr(self, f.name)
            if not value_fits(value, hints[f.name]):
                raise InvalidRuleError(
                    self.id,
                    f"expected {describe_hint(hints[f.name])}, got {type(value).__name__}",
                    field=f.name,
                )
        if self.threshold < 0:
            raise InvalidRuleError(self.id, "threshold must not be negative", field="threshold")
        self._check_template()

    def _check_template(self) -> None:
        samples = dict(MESSAGE_SAMPLES, rule=self.id, **self.extra_message_samples)
        try:
            parsed = list(string.Formatter().parse(self.template))
        except ValueError as e:
            raise InvalidRuleError(self.id, f"bad message template: {e}", field="message")
        for _, field_name, _, _ in parsed:
            if field_name is None:
                continue
            root = re.split(r"[.\[]", field_name, maxsplit=1)[0]
            if root not in samples:
                raise InvalidRuleError(
                    self.id, f"unknown message field '{{{field_name}}}'", field="message"
                )
        try:
            self.template.format_map(samples)
        except (ValueError, TypeError, KeyError, IndexError, AttributeError) as e:
            raise InvalidRuleError(self.id, f"bad message template: {e}", field="message")

    def _regex(self, pattern: Optional[str], field_name: str) -> Optional[Pattern[str]]:
        if pattern is None:
            return None
        try:
            return re.compile(pattern)
        except re.error as e:
            raise InvalidRuleError(self.id, f"bad regex {pattern!r}: {e}", field=field_name)

    def _declaration_kinds(self, values, field_name: str) -> FrozenSet[DeclarationKind]:
        try:
            return frozenset(v if isinstance(v, DeclarationKind) else DeclarationKind(v) for v in values)
        except ValueError as e:
            raise InvalidRuleError(self.id, str(e), field=field_name)

    def _container_kinds(self, values, field_name: str) -> FrozenSet[ContainerKind]:
        try:
            return frozenset(v if isinstance(v, ContainerKind) else ContainerKind(v) for v in values)
        except ValueError as e:
            raise InvalidRuleError(self.id, str(e), field=field_name)


@dataclass
class PlacementRule(Rule):
    """Where declarations whose name matches ``pattern`` may live.

    Container constraints look at the innermost enclosing container, or at
    every enclosing container with ``container_scope = "any"``.
    ``container_pattern`` narrows them to containers with a matching name.
    Path constraints are substrings tested against ``"/" + relative_path``.
    A rule with no constraint at all reports every matching declaration.
    ``max_count`` limits how many matching declarations may exist in the
    whole tree; above the limit every one of them is reported.
    """

    pattern: str = r".*"
    kinds: Tuple[str, ...] = ("type", "interface", "enum")
    required_container: Tuple[str, ...] = ()
    forbidden_container: Tuple[str, ...] = ()
    container_pattern: Optional[str] = None
    container_scope: str = "innermost"
    required_path: Optional[str] = None
    forbidden_path: Optional[str] = None
    require_namespace: bool = False
    max_count: Optional[int] = None

    type_name: ClassVar[str] = "placement"
    default_message: ClassVar[str] = "{kind} {name} {reason}"

    compiled_pattern: Optional[Pattern[str]] = field(default=None, init=False, repr=False, compare=False)
    compiled_container_pattern: Optional[Pattern[str]] = field(
        default=None, init=False, repr=False, compare=False
    )
    kind_set: FrozenSet[DeclarationKind] = field(default=frozenset(), init=False, repr=False, compare=False)
    required_kinds: FrozenSet[ContainerKind] = field(
        default=frozenset(), init=False, repr=False, compare=False
    )
    forbidden_kinds: FrozenSet[ContainerKind] = field(
        default=frozenset(), init=False, repr=False, compare=False
    )

    def compile(self) -> None:
        super().compile()
        self.compiled_pattern = self._regex(self.pattern, "pattern")
        self.compiled_container_pattern = self._regex(self.container_pattern, "container_pattern")
        self.kind_set = self._declaration_kinds(self.kinds, "kinds")
        if not self.kind_set:
            raise InvalidRuleError(self.id, "at least one kind required", field="kinds")
        self.required_kinds = self._container_kinds(self.required_container, "required_container")
        self.forbidden_kinds = self._container_kinds(self.forbidden_container, "forbidden_container")
        if self.container_scope not in ("innermost", "any"):
            raise InvalidRuleError(
                self.id, "container_scope must be 'innermost' or 'any'", field="container_scope"
            )
        if self.max_count is not None and self.max_count < 0:
            raise InvalidRuleError(self.id, "max_count must not be negative", field="max_count")

    @property
    def has_file_constraints(self) -> bool:
        return bool(
            self.required_kinds
            or self.forbidden_kinds
            or self.required_path
            or self.forbidden_path
            or self.require_namespace
        )

    @property
    def reports_every_match(self) -> bool:
        return not self.has_file_constraints and self.max_count is None


@dataclass
class NamespaceRule(Rule):
    """A file's namespace must mirror its folder path.

    Only files under ``source_prefix`` are checked. The expected namespace is
    the folder path after the prefix, starting at the first segment that
    begins with ``project_prefix`` when one does, else after dropping
    ``skip_segments`` leading segments. Files without a namespace are left to
    placement rules with ``require_namespace``.
    """

    source_prefix: str = ""
    skip_segments: int = 0
    project_prefix: Optional[str] = None
    exempt_paths: Tuple[str, ...] = ()

    type_name: ClassVar[str] = "namespace"
    default_message: ClassVar[str] = "namespace {namespace} does not match folder, expected {expected}"
    extra_message_samples: ClassVar[Mapping[str, Any]] = {"expected": "Acme.Core"}

    def compile(self) -> None:
        super().compile()
        if self.skip_segments < 0:
            raise InvalidRuleError(self.id, "skip_segments must not be negative", field="skip_segments")

    def expected_namespace(self, relative_path: str) -> Optional[str]:
        prefix = self.source_prefix
        if prefix and not prefix.endswith("/"):
            prefix += "/"
        if not relative_path.startswith(prefix):
            return None
        folders = relative_path[len(prefix):].split("/")[:-1]

        start = None
        if self.project_prefix:
            start = next(
                (i for i, part in enumerate(folders) if part.startswith(self.project_prefix)), None
            )
        if start is None:
            start = self.skip_segments
        segments = folders[start:]
        return ".".join(segments) if segments else None


@dataclass
class UsageRule(Rule):
    """Forbids a text pattern on any non-comment source line."""

    pattern: str = ""
    exempt_paths: Tuple[str, ...] = ()
    exempt_if_contains: Tuple[str, ...] = ()

    type_name: ClassVar[str] = "usage"
    default_message: ClassVar[str] = "forbidden usage of {name}"
    extra_message_samples: ClassVar[Mapping[str, Any]] = {"text": "var now = DateTime.UtcNow;"}

    compiled_pattern: Optional[Pattern[str]] = field(default=None, init=False, repr=False, compare=False)

    def compile(self) -> None:
        super().compile()
        if not self.pattern:
            raise InvalidRuleError(self.id, "pattern must not be empty", field="pattern")
        self.compiled_pattern = self._regex(self.pattern, "pattern")

    def exempts(self, relative_path: str, text: str) -> bool:
        slashed = "/" + relative_path
        if any(p in slashed for p in self.exempt_paths):
            return True
        return any(marker in text for marker in self.exempt_if_contains)


DEFAULT_DUPLICATE_SUFFIX = r"(?:Impl|V\d+|Old|New|Legacy)$"


@dataclass
class DuplicateRule(Rule):
    """Type names that collapse to the same base key.

    The base key is the name with ``suffix_pattern`` removed. With
    ``require_distinct_suffixes`` the ``suffixes`` family is stripped
    instead and a group counts only when its members carry different
    suffixes (``FooDto`` next to ``FooOptions``).
    """

    kinds: Tuple[str, ...] = ("type", "interface", "enum")
    suffix_pattern: str = DEFAULT_DUPLICATE_SUFFIX
    suffixes: Tuple[str, ...] = ()
    require_distinct_suffixes: bool = False
    min_group: int = 2
    ignore_file_scoped: bool = True

    type_name: ClassVar[str] = "duplicate"
    default_message: ClassVar[str] = "{name} duplicates {base} ({count} declarations: {group})"
    extra_message_samples: ClassVar[Mapping[str, Any]] = {
        "base": "Name",
        "count": 2,
        "group": "Name, NameImpl",
    }

    compiled_suffix: Optional[Pattern[str]] = field(default=None, init=False, repr=False, compare=False)
    kind_set: FrozenSet[DeclarationKind] = field(default=frozenset(), init=False, repr=False, compare=False)

    def compile(self) -> None:
        super().compile()
        self.kind_set = self._declaration_kinds(self.kinds, "kinds")
        if self.require_distinct_suffixes:
            if not self.suffixes:
                raise InvalidRuleError(
                    self.id, "suffixes required with require_distinct_suffixes", field="suffixes"
                )
            family = "|".join(re.escape(s) for s in sorted(self.suffixes, key=len, reverse=True))
            self.compiled_suffix = self._regex(f"(?:{family})$", "suffixes")
        else:
            self.compiled_suffix = self._regex(self.suffix_pattern, "suffix_pattern")
        if self.min_group < 2:
            raise InvalidRuleError(self.id, "min_group must be at least 2", field="min_group")

    def base_key(self, name: str) -> str:
        assert self.compiled_suffix is not None
        stripped = self.compiled_suffix.sub("", name)
        return stripped or name

    def suffix_of(self, name: str) -> str:
        return name[len(self.base_key(name)):]


@dataclass
class SimilarityRule(Rule):
    """Pairs of declarations whose member sets (or names) overlap.

    ``allow_list`` holds ``"A,B"`` pair keys with the names sorted.
    """

    kinds: Tuple[str, ...] = ("enum",)
    subject_pattern: Optional[str] = None
    similarity: float = 0.8
    min_members: int = 3
    compare: str = "members"

    type_name: ClassVar[str] = "similarity"
    default_message: ClassVar[str] = "{name} overlaps {other} ({ratio:.0%})"
    extra_message_samples: ClassVar[Mapping[str, Any]] = {"other": "Other", "ratio": 0.8, "shared": "a, b"}

    compiled_subject: Optional[Pattern[str]] = field(default=None, init=False, repr=False, compare=False)
    kind_set: FrozenSet[DeclarationKind] = field(default=frozenset(), init=False, repr=False, compare=False)

    def compile(self) -> None:
        super().compile()
        self.kind_set = self._declaration_kinds(self.kinds, "kinds")
        self.compiled_subject = self._regex(self.subject_pattern, "subject_pattern")
        if not 0.0 < self.similarity <= 1.0:
            raise InvalidRuleError(self.id, "similarity must be in (0, 1]", field="similarity")
        if self.min_members < 1:
            raise InvalidRuleError(self.id, "min_members must be at least 1", field="min_members")
        if self.compare not in ("members", "names"):
            raise InvalidRuleError(self.id, "compare must be 'members' or 'names'", field="compare")

    def allows_pair(self, a: str, b: str) -> bool:
        first, second = sorted((a, b))
        return f"{first},{second}" in self.allow_list or a in self.allow_list or b in self.allow_list


@dataclass(frozen=True, order=True)
class Violation:
    """One finding. Ordered by path, line, rule id and subject."""

    path: str
    line: int
    rule_id: str
    subject: str
    severity: Severity = field(default=Severity.ERROR, compare=False)
    message: str = field(default="", compare=False)
    container_name: Optional[str] = field(default=None, compare=False)
    container_kind: Optional[str] = field(default=None, compare=False)
    namespace: Optional[str] = field(default=None, compare=False)
