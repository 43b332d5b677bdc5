"""Declaration patterns: the single source of truth for every regex the
scanner applies to C-family source text.

All patterns work on one physical line. A declaration whose keyword and
name are split across lines is not matched. Comments and string literals
are not stripped first, so text inside them can match.
"""

import re
from typing import List

VISIBILITY = r"(?:public|internal|private|protected)"
_VISIBILITY_RUN = rf"{VISIBILITY}(?:\s+{VISIBILITY})?"
_ATTRIBUTES = r"(?:\[[^\]]*\]\s*)*"
_TYPE_MODIFIERS = r"(?:static|sealed|abstract|partial|readonly|ref|unsafe|new|file)"
_MEMBER_MODIFIERS = (
    r"(?:static|virtual|override|abstract|sealed|async|extern|unsafe|new|partial|readonly|required)"
)
_TYPE_REF = r"[\w.]+(?:<[^(){};=]*?>)?(?:\[,*\])*\??"

# Container declarations. At the start of a line a visibility keyword (or the
# ``file`` modifier) is required; directly after ``{``, ``}`` or ``;`` on the
# same line it is optional, because nested members default to private.
CONTAINER_PATTERN = re.compile(
    rf"(?:^\s*{_ATTRIBUTES}(?P<vis>{_VISIBILITY_RUN}|file)\s+"
    rf"|(?<=[{{}};])\s*{_ATTRIBUTES}(?:(?P<nested_vis>{_VISIBILITY_RUN})\s+)?)"
    rf"(?P<mods>(?:{_TYPE_MODIFIERS}\s+)*)"
    r"(?P<keyword>record\s+class|record\s+struct|record|class|struct|interface|enum)"
    r"\s+(?P<name>[A-Za-z_]\w*)"
)

METHOD_PATTERN = re.compile(
    rf"^\s*{_ATTRIBUTES}(?P<vis>{_VISIBILITY_RUN})\s+"
    rf"(?P<mods>(?:{_MEMBER_MODIFIERS}\s+)*)"
    rf"(?P<type>{_TYPE_REF})\s+(?P<name>[A-Za-z_]\w*)\s*(?:<[^()]*?>)?\s*\("
)

PROPERTY_PATTERN = re.compile(
    rf"^\s*{_ATTRIBUTES}(?P<vis>{_VISIBILITY_RUN})\s+"
    rf"(?P<mods>(?:{_MEMBER_MODIFIERS}\s+)*)"
    rf"(?P<type>{_TYPE_REF})\s+(?P<name>[A-Za-z_]\w*)\s*"
    rf"(?:\{{\s*(?:{VISIBILITY}\s+)?(?:get|set|init)\b|=>)"
)

# Searched once over the whole file text; ``\s*`` may cross the line break
# of a block-scoped namespace.
NAMESPACE_PATTERN = re.compile(r"namespace\s+([\w.]+)\s*[;{]")

# Text following a type name: generic parameters, positional parameters and
# the base list.
_GENERIC_PARAMS = re.compile(r"^\s*<[^>{;]*>")
_POSITIONAL_PARAMS = re.compile(r"^\s*\((?P<params>[^)]*)\)")
_BASE_LIST = re.compile(r"^\s*:\s*(?P<bases>[^{;]+?)\s*(?:\bwhere\b|\{|;|$)")

_IDENTIFIER = re.compile(r"[A-Za-z_]\w*")
_ATTRIBUTE_BLOCK = re.compile(r"\[[^\]]*\]")
_LINE_COMMENT = re.compile(r"//[^\n]*")
_BLOCK_COMMENT = re.compile(r"/\*.*?\*/", re.DOTALL)

# Keywords that can sit in the return-type slot of METHOD_PATTERN but mean
# the line is not a method.
NON_METHOD_TYPES = frozenset(
    {
        "class",
        "struct",
        "interface",
        "enum",
        "record",
        "delegate",
        "event",
        "operator",
        "implicit",
        "explicit",
        "return",
        "new",
        "await",
        "throw",
    }
)

EVENT_PAYLOAD_SUFFIX = "EventArgs"

COMMENT_LINE_PREFIXES = ("//", "/*", "*")


def split_top_level(text: str, separator: str = ",") -> List[str]:
    """Split on ``separator`` outside of ``<>``, ``()`` and ``[]`` nesting."""
    parts: List[str] = []
    depth = 0
    current: List[str] = []
    for ch in text:
        if ch in "<([":
            depth += 1
        elif ch in ">)]":
            depth = max(depth - 1, 0)
        if ch == separator and depth == 0:
            parts.append("".join(current).strip())
            current = []
        else:
            current.append(ch)
    tail = "".join(current).strip()
    if tail:
        parts.append(tail)
    return [p for p in parts if p]


def parse_type_tail(tail: str) -> tuple[tuple[str, ...], tuple[str, ...]]:
    """Parse what follows a type name on its declaration line.

    Returns ``(positional_parameter_names, base_types)``.
    """
    rest = tail
    generic = _GENERIC_PARAMS.match(rest)
    if generic:
        rest = rest[generic.end():]

    params: tuple[str, ...] = ()
    positional = _POSITIONAL_PARAMS.match(rest)
    if positional:
        params = tuple(
            name for name in (_parameter_name(p) for p in split_top_level(positional.group("params")))
            if name
        )
        rest = rest[positional.end():]

    bases: tuple[str, ...] = ()
    base_list = _BASE_LIST.match(rest)
    if base_list:
        bases = tuple(
            _strip_call(b) for b in split_top_level(base_list.group("bases"))
        )
    return params, bases


def _parameter_name(parameter: str) -> str:
    parameter = _ATTRIBUTE_BLOCK.sub("", parameter).split("=")[0].strip()
    names = _IDENTIFIER.findall(parameter)
    return names[-1] if len(names) >= 2 else ""


def _strip_call(base: str) -> str:
    # ``record B(int X) : A(X)`` passes arguments to the base
    return base.split("(")[0].strip()


def parse_enum_members(body: str) -> tuple[str, ...]:
    """Member names from the text between an enum's braces."""
    body = _BLOCK_COMMENT.sub("", body)
    body = _LINE_COMMENT.sub("", body)
    body = _ATTRIBUTE_BLOCK.sub("", body)
    members = []
    for entry in body.split(","):
        name = entry.split("=")[0].strip()
        match = _IDENTIFIER.match(name)
        if match and match.group(0) == name:
            members.append(name)
    return tuple(members)


def is_comment_line(line: str) -> bool:
    return line.lstrip().startswith(COMMENT_LINE_PREFIXES)
