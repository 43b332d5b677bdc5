"""Built-in rule pack for C# solutions.

Used when no ``[[rules]]`` are configured and ``use_default_rules`` is on.
"""

from typing import List

from .models import (
    DuplicateRule,
    NamespaceRule,
    PlacementRule,
    Rule,
    RuleMode,
    Severity,
    SimilarityRule,
    UsageRule,
)

SHAPE_SUFFIXES = (
    "Dto",
    "Model",
    "Response",
    "Request",
    "Options",
    "Config",
    "Configuration",
    "Settings",
    "Entry",
)


def default_rules() -> List[Rule]:
    """A fresh copy of the default pack. Rules are compiled per engine."""
    shape_pattern = "(?:" + "|".join(SHAPE_SUFFIXES) + ")$"
    return [
        PlacementRule(
            id="enum-in-interface",
            description="Enums must not be declared inside interfaces",
            kinds=("enum",),
            forbidden_container=("interface",),
            container_scope="any",
        ),
        PlacementRule(
            id="enum-in-dto",
            description="Enums must not be declared inside DTO types",
            kinds=("enum",),
            forbidden_container=("class", "record", "struct"),
            container_pattern=r"Dto$",
            container_scope="any",
        ),
        PlacementRule(
            id="event-payload-location",
            description="Event payload types live in an Events folder",
            kinds=("event_payload",),
            required_path="/Events/",
        ),
        PlacementRule(
            id="no-legacy-types",
            description="Legacy and deprecated types are removed, not kept alongside",
            pattern=r"(?:Legacy|Deprecated)",
            kinds=("type", "interface", "enum"),
            message="{kind} {name} looks like leftover legacy code",
        ),
        PlacementRule(
            id="type-has-namespace",
            description="Every type is declared inside a namespace",
            kinds=("type", "interface", "enum"),
            require_namespace=True,
            severity=Severity.WARNING,
            mode=RuleMode.ADVISORY,
        ),
        NamespaceRule(
            id="namespace-matches-folder",
            description="File namespace mirrors its folder under src/",
            source_prefix="src/",
            severity=Severity.WARNING,
            mode=RuleMode.ADVISORY,
        ),
        UsageRule(
            id="no-direct-clock",
            description="Read time through ISystemClock, not DateTime.UtcNow",
            pattern=r"\bDateTime(?:Offset)?\.UtcNow\b",
            exempt_paths=("/Communication/", "/tests/", ".Tests/"),
            exempt_if_contains=(": ISystemClock",),
        ),
        DuplicateRule(
            id="duplicate-types",
            description="One type per concept; no Impl/V2/Old/New/Legacy twins",
        ),
        DuplicateRule(
            id="shape-suffix-family",
            description="One model per concept across the Dto/Options/Config suffix family",
            kinds=("type",),
            suffixes=SHAPE_SUFFIXES,
            require_distinct_suffixes=True,
            severity=Severity.WARNING,
            mode=RuleMode.ADVISORY,
        ),
        SimilarityRule(
            id="enum-overlap",
            description="Enums sharing most of their members shadow each other",
            kinds=("enum",),
            similarity=0.8,
            min_members=3,
            severity=Severity.WARNING,
            mode=RuleMode.ADVISORY,
        ),
        SimilarityRule(
            id="shape-overlap",
            description="DTO and options types with near-identical properties",
            kinds=("type",),
            subject_pattern=shape_pattern,
            similarity=0.8,
            min_members=3,
            severity=Severity.WARNING,
            mode=RuleMode.ADVISORY,
        ),
    ]
