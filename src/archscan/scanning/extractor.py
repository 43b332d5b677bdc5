"""Regex-based declaration extraction.

Each line is matched against the patterns in ``patterns.py``; the scope
tracker says which container, if any, encloses the match. Enum bodies and
property lists are attached afterwards as ``Declaration.members``.
"""

from dataclasses import replace
from typing import Dict, List, Optional, Sequence, Tuple

from ..logging_config import get_logger
from .models import (
    UNKNOWN_NAMESPACE,
    ContainerKind,
    Declaration,
    DeclarationKind,
    FileDeclarations,
    LineScope,
    SourceUnit,
)
from .patterns import (
    CONTAINER_PATTERN,
    EVENT_PAYLOAD_SUFFIX,
    METHOD_PATTERN,
    NAMESPACE_PATTERN,
    NON_METHOD_TYPES,
    PROPERTY_PATTERN,
    parse_enum_members,
    parse_type_tail,
)
from .scope import ScopeTracker

logger = get_logger(__name__)

_KIND_BY_CONTAINER = {
    ContainerKind.INTERFACE: DeclarationKind.INTERFACE,
    ContainerKind.ENUM: DeclarationKind.ENUM,
    ContainerKind.CLASS: DeclarationKind.TYPE,
    ContainerKind.STRUCT: DeclarationKind.TYPE,
    ContainerKind.RECORD: DeclarationKind.TYPE,
}


class DeclarationExtractor:
    """Extracts declarations from SourceUnits.

    Args:
        tracker: Scope tracker deciding each declaration's container.
            Defaults to a stack-mode tracker over every container kind.
    """

    def __init__(self, tracker: Optional[ScopeTracker] = None):
        self.tracker = tracker or ScopeTracker()
        # Property ownership needs full nesting whatever the rule tracker does.
        if self.tracker.mode == "stack" and self.tracker.container_filter is None:
            self._member_tracker = self.tracker
        else:
            self._member_tracker = ScopeTracker("stack")

    @staticmethod
    def extract_namespace(text: str) -> str:
        """First ``namespace X;`` or ``namespace X {`` in ``text``, else ``"Unknown"``."""
        match = NAMESPACE_PATTERN.search(text)
        return match.group(1) if match else UNKNOWN_NAMESPACE

    def extract(self, unit: SourceUnit) -> FileDeclarations:
        text = unit.text
        namespace = self.extract_namespace(text)
        scopes = self.tracker.track(unit)

        declarations: List[Declaration] = []
        ns_match = NAMESPACE_PATTERN.search(text)
        if ns_match:
            declarations.append(
                Declaration(
                    kind=DeclarationKind.NAMESPACE,
                    name=namespace,
                    path=unit.relative_path,
                    line=text.count("\n", 0, ns_match.start()) + 1,
                    namespace=namespace,
                )
            )

        for scope in scopes:
            declarations.extend(self.extract_line(scope, unit.relative_path, namespace))

        declarations = self._attach_members(unit, scopes, declarations)
        declarations.sort(key=lambda d: d.sort_key)
        logger.debug(f"{unit.relative_path}: {len(declarations)} declarations")
        return FileDeclarations(unit=unit, namespace=namespace, declarations=declarations, scopes=scopes)

    def extract_line(self, scope: LineScope, path: str, namespace: str) -> List[Declaration]:
        """Declarations that start on one tracked line."""
        found: List[Declaration] = []
        text = scope.text

        for match in CONTAINER_PATTERN.finditer(text):
            keyword = match.group("keyword")
            kind = ContainerKind.from_keyword(keyword)
            name = match.group("name")
            column = match.start("name")
            modifiers = _modifiers(match.group("vis") or match.group("nested_vis"), match.group("mods"))
            params, bases = parse_type_tail(text[match.end():])
            decl = Declaration(
                kind=_KIND_BY_CONTAINER[kind],
                name=name,
                path=path,
                line=scope.number,
                namespace=namespace,
                container=scope.container_at(column),
                column=column,
                modifiers=modifiers,
                bases=bases,
                members=params if kind is ContainerKind.RECORD else (),
                is_file_scoped="file" in modifiers,
                ancestors=scope.enclosing_at(column),
            )
            found.append(decl)
            if name.endswith(EVENT_PAYLOAD_SUFFIX) and kind is not ContainerKind.ENUM:
                found.append(replace(decl, kind=DeclarationKind.EVENT_PAYLOAD))

        method = METHOD_PATTERN.match(text)
        if method and method.group("type") not in NON_METHOD_TYPES:
            found.append(self._member_declaration(DeclarationKind.METHOD, method, scope, path, namespace))

        prop = PROPERTY_PATTERN.match(text)
        if prop and prop.group("type") not in NON_METHOD_TYPES:
            found.append(self._member_declaration(DeclarationKind.PROPERTY, prop, scope, path, namespace))

        return found

    @staticmethod
    def _member_declaration(kind, match, scope: LineScope, path: str, namespace: str) -> Declaration:
        column = match.start("name")
        return Declaration(
            kind=kind,
            name=match.group("name"),
            path=path,
            line=scope.number,
            namespace=namespace,
            container=scope.container_at(column),
            column=column,
            modifiers=_modifiers(match.group("vis"), match.group("mods")),
            ancestors=scope.enclosing_at(column),
        )

    def _attach_members(
        self, unit: SourceUnit, scopes: List[LineScope], declarations: List[Declaration]
    ) -> List[Declaration]:
        member_scopes = scopes if self._member_tracker is self.tracker else self._member_tracker.track(unit)

        properties: Dict[Tuple[int, str], List[str]] = {}
        for decl in declarations:
            if decl.kind is not DeclarationKind.PROPERTY:
                continue
            owner = member_scopes[decl.line - 1].container_at(decl.column)
            if owner is not None:
                properties.setdefault((owner.start_line, owner.name), []).append(decl.name)

        result: List[Declaration] = []
        enum_members: List[Declaration] = []
        for decl in declarations:
            if decl.kind is DeclarationKind.ENUM:
                body = _enum_body(unit.lines, decl.line - 1, decl.column)
                members = parse_enum_members(body) if body is not None else ()
                decl = replace(decl, members=members)
                enum_members.extend(
                    Declaration(
                        kind=DeclarationKind.ENUM_MEMBER,
                        name=member,
                        path=decl.path,
                        line=decl.line,
                        namespace=decl.namespace,
                        column=decl.column,
                    )
                    for member in members
                )
            elif decl.kind in (DeclarationKind.TYPE, DeclarationKind.INTERFACE, DeclarationKind.EVENT_PAYLOAD):
                owned = properties.get((decl.line, decl.name))
                if owned:
                    decl = replace(decl, members=_unique(decl.members + tuple(owned)))
            result.append(decl)
        return result + enum_members


def _modifiers(visibility: Optional[str], mods: Optional[str]) -> Tuple[str, ...]:
    words: List[str] = []
    if visibility:
        words.extend(visibility.split())
    if mods:
        words.extend(mods.split())
    return tuple(words)


def _unique(names: Sequence[str]) -> Tuple[str, ...]:
    seen = set()
    ordered = []
    for name in names:
        if name not in seen:
            seen.add(name)
            ordered.append(name)
    return tuple(ordered)


def _enum_body(lines: Sequence[str], line_index: int, column: int) -> Optional[str]:
    """Text between an enum's opening brace and its matching closing brace.

    Returns None for a declaration without a body or an unterminated one.
    """
    depth = 0
    body: List[str] = []
    for index in range(line_index, len(lines)):
        text = lines[index]
        start = column if index == line_index else 0
        for ch in text[start:]:
            if depth == 0:
                if ch == "{":
                    depth = 1
                elif ch == ";":
                    return None
                continue
            if ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    return "".join(body)
            body.append(ch)
        if depth > 0:
            body.append("\n")
    return None
