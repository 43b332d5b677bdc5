"""Brace-depth scope tracking.

Works out which container (interface, class, struct, record, enum) a
position sits in by counting braces, without parsing. Braces inside comments
and string literals are counted like any other.

Two modes:

- ``stack`` keeps every open container on a stack, so a declaration is
  attributed to its innermost container. A container whose body has not
  opened yet is *pending*: it survives line ends (Allman braces) and is
  dropped by a ``;`` at its own depth (``record Point(int X, int Y);``).
- ``single`` holds at most one container per file and only enters a new one
  once the previous one has closed. Its depth check runs after each line, so
  a container whose ``{`` is on the next line is left again immediately.
"""

from dataclasses import dataclass
from typing import Callable, Iterator, List, Optional, Sequence, Tuple, Union

from ..exceptions import InvalidConfigError
from .models import ContainerKind, LineScope, ScopeFrame, ScopePoint, SourceUnit
from .patterns import CONTAINER_PATTERN

ContainerFilter = Callable[[ContainerKind, str], bool]

SCOPE_MODES = ("stack", "single")


@dataclass(frozen=True)
class EnterContainer:
    frame: ScopeFrame
    line: int


@dataclass(frozen=True)
class ExitContainer:
    frame: ScopeFrame
    line: int


ScopeEvent = Union[EnterContainer, ExitContainer]


class _OpenFrame:
    __slots__ = ("frame", "opened")

    def __init__(self, frame: ScopeFrame):
        self.frame = frame
        self.opened = False


class ScopeTracker:
    """Tracks brace depth and open containers line by line.

    Args:
        mode: ``"stack"`` or ``"single"``
        container_filter: Optional predicate on ``(kind, name)`` deciding
            which declarations open a frame. ``None`` tracks every container.
    """

    def __init__(self, mode: str = "stack", container_filter: Optional[ContainerFilter] = None):
        if mode not in SCOPE_MODES:
            raise InvalidConfigError(
                "scope_mode", mode, f"expected one of {', '.join(SCOPE_MODES)}"
            )
        self.mode = mode
        self.container_filter = container_filter

    def track(self, unit: Union[SourceUnit, Sequence[str]]) -> List[LineScope]:
        """Return one LineScope per line of ``unit``."""
        scopes, _ = self._run(_lines_of(unit))
        return scopes

    def iter_events(self, unit: Union[SourceUnit, Sequence[str]]) -> Iterator[ScopeEvent]:
        """Yield container entry and exit events in source order.

        Frames still open at end of file exit on the last line.
        """
        _, events = self._run(_lines_of(unit))
        yield from events

    def _run(self, lines: Sequence[str]) -> Tuple[List[LineScope], List[ScopeEvent]]:
        if self.mode == "single":
            return self._track_single(lines)
        return self._track_stack(lines)

    def _accepts(self, kind: ContainerKind, name: str) -> bool:
        return self.container_filter is None or self.container_filter(kind, name)

    def _track_stack(self, lines: Sequence[str]) -> Tuple[List[LineScope], List[ScopeEvent]]:
        scopes: List[LineScope] = []
        events: List[ScopeEvent] = []
        stack: List[_OpenFrame] = []
        depth = 0

        def frames() -> Tuple[ScopeFrame, ...]:
            return tuple(entry.frame for entry in stack)

        for number, text in enumerate(lines, start=1):
            depth_before = depth
            entries = {}
            for match in CONTAINER_PATTERN.finditer(text):
                kind = ContainerKind.from_keyword(match.group("keyword"))
                if self._accepts(kind, match.group("name")):
                    entries[match.start()] = (kind, match)

            points = [ScopePoint(0, depth, frames())]
            for column, ch in enumerate(text):
                entry = entries.get(column)
                if entry is not None:
                    kind, match = entry
                    frame = ScopeFrame(
                        kind=kind,
                        name=match.group("name"),
                        start_depth=depth,
                        start_line=number,
                        start_column=match.start("name"),
                    )
                    stack.append(_OpenFrame(frame))
                    events.append(EnterContainer(frame, number))
                    points.append(ScopePoint(column, depth, frames()))

                if ch == "{":
                    depth += 1
                    top = stack[-1] if stack else None
                    if top is not None and not top.opened and top.frame.start_depth == depth - 1:
                        top.opened = True
                elif ch == "}":
                    depth -= 1
                    while stack and depth <= stack[-1].frame.start_depth:
                        events.append(ExitContainer(stack.pop().frame, number))
                elif ch == ";":
                    while stack and not stack[-1].opened and stack[-1].frame.start_depth == depth:
                        events.append(ExitContainer(stack.pop().frame, number))
                else:
                    continue
                points.append(ScopePoint(column + 1, depth, frames()))

            scopes.append(LineScope(number, text, depth_before, depth, tuple(points)))

        last_line = len(lines)
        while stack:
            events.append(ExitContainer(stack.pop().frame, last_line))
        return scopes, events

    def _track_single(self, lines: Sequence[str]) -> Tuple[List[LineScope], List[ScopeEvent]]:
        scopes: List[LineScope] = []
        events: List[ScopeEvent] = []
        active: Optional[ScopeFrame] = None
        depth = 0

        for number, text in enumerate(lines, start=1):
            depth_before = depth
            if active is None:
                active = self._first_line_start_container(text, number, depth_before)
                if active is not None:
                    events.append(EnterContainer(active, number))

            frames = (active,) if active is not None else ()
            points = [ScopePoint(0, depth, frames)]
            for column, ch in enumerate(text):
                if ch == "{":
                    depth += 1
                elif ch == "}":
                    depth -= 1
                else:
                    continue
                points.append(ScopePoint(column + 1, depth, frames))

            scopes.append(LineScope(number, text, depth_before, depth, tuple(points)))

            if active is not None and depth <= active.start_depth:
                events.append(ExitContainer(active, number))
                active = None

        if active is not None:
            events.append(ExitContainer(active, len(lines)))
        return scopes, events

    def _first_line_start_container(
        self, text: str, number: int, depth: int
    ) -> Optional[ScopeFrame]:
        for match in CONTAINER_PATTERN.finditer(text):
            if match.group("vis") is None:
                continue
            kind = ContainerKind.from_keyword(match.group("keyword"))
            if self._accepts(kind, match.group("name")):
                return ScopeFrame(
                    kind=kind,
                    name=match.group("name"),
                    start_depth=depth,
                    start_line=number,
                    start_column=match.start("name"),
                )
        return None


def _lines_of(unit: Union[SourceUnit, Sequence[str]]) -> Sequence[str]:
    if isinstance(unit, SourceUnit):
        return unit.lines
    return tuple(unit)
