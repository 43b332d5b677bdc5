"""Data models produced by the scanning layer."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple

UNKNOWN_NAMESPACE = "Unknown"


class ContainerKind(Enum):
    """Type declarations whose body can enclose other declarations."""

    INTERFACE = "interface"
    CLASS = "class"
    STRUCT = "struct"
    RECORD = "record"
    ENUM = "enum"

    @classmethod
    def from_keyword(cls, keyword: str) -> "ContainerKind":
        """Map a declaration keyword (``record struct`` included) to a kind."""
        head = keyword.split()[0]
        return cls(head)


class DeclarationKind(Enum):
    TYPE = "type"
    INTERFACE = "interface"
    ENUM = "enum"
    EVENT_PAYLOAD = "event_payload"
    METHOD = "method"
    PROPERTY = "property"
    ENUM_MEMBER = "enum_member"
    NAMESPACE = "namespace"


@dataclass(frozen=True)
class SourceUnit:
    """The lines of one source file. Read once per scan, never mutated."""

    path: Path
    relative_path: str
    lines: Tuple[str, ...]

    @property
    def text(self) -> str:
        return "\n".join(self.lines)

    def __len__(self) -> int:
        return len(self.lines)


@dataclass(frozen=True)
class ScopeFrame:
    """One open container.

    ``start_depth`` is the brace depth just before the container's body
    opens; a position belongs to the frame while the depth there is strictly
    greater than it.
    """

    kind: ContainerKind
    name: str
    start_depth: int
    start_line: int
    start_column: int = 0

    def encloses(self, depth: int) -> bool:
        return depth > self.start_depth

    @property
    def label(self) -> str:
        return f"{self.kind.value} {self.name}"


@dataclass(frozen=True)
class ScopePoint:
    """Tracker state from ``column`` up to the next point on the same line."""

    column: int
    depth: int
    frames: Tuple[ScopeFrame, ...] = ()


@dataclass(frozen=True)
class LineScope:
    """Brace depth and open frames across one line.

    ``points`` always starts with a point at column 0 carrying the state the
    line inherited; every brace and container entry adds one more.
    """

    number: int
    text: str
    depth_before: int
    depth_after: int
    points: Tuple[ScopePoint, ...]

    def point_at(self, column: int) -> ScopePoint:
        current = self.points[0]
        for point in self.points:
            if point.column > column:
                break
            current = point
        return current

    def depth_at(self, column: int) -> int:
        return self.point_at(column).depth

    def enclosing_at(self, column: int) -> Tuple[ScopeFrame, ...]:
        """Frames enclosing ``column``, outermost first."""
        point = self.point_at(column)
        return tuple(f for f in point.frames if f.encloses(point.depth))

    def container_at(self, column: int) -> Optional[ScopeFrame]:
        enclosing = self.enclosing_at(column)
        return enclosing[-1] if enclosing else None


@dataclass(frozen=True)
class Declaration:
    """A named construct found in source text."""

    kind: DeclarationKind
    name: str
    path: str
    line: int
    namespace: str = UNKNOWN_NAMESPACE
    container: Optional[ScopeFrame] = None
    column: int = 0
    modifiers: Tuple[str, ...] = ()
    bases: Tuple[str, ...] = ()
    members: Tuple[str, ...] = ()
    is_file_scoped: bool = False
    # Every frame enclosing the declaration, outermost first. ``container``
    # is the last one.
    ancestors: Tuple[ScopeFrame, ...] = ()

    @property
    def container_name(self) -> Optional[str]:
        return self.container.name if self.container else None

    @property
    def qualified_name(self) -> str:
        if self.namespace == UNKNOWN_NAMESPACE:
            return self.name
        return f"{self.namespace}.{self.name}"

    @property
    def sort_key(self) -> Tuple[str, int, int, str]:
        return (self.path, self.line, self.column, self.name)


@dataclass
class FileDeclarations:
    """Everything the extractor learned about one file."""

    unit: SourceUnit
    namespace: str
    declarations: list[Declaration] = field(default_factory=list)
    scopes: list[LineScope] = field(default_factory=list, repr=False)

    @property
    def path(self) -> str:
        return self.unit.relative_path

    def of_kind(self, *kinds: DeclarationKind) -> list[Declaration]:
        return [d for d in self.declarations if d.kind in kinds]
