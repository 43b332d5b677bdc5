"""Declarative architecture rules and their evaluation."""

from .defaults import default_rules
from .duplicates import DuplicateGroup, find_duplicate_groups
from .engine import RuleEngine
from .loader import RULE_TYPES, load_rules, rule_from_table, rules_from_config
from .models import (
    DuplicateRule,
    NamespaceRule,
    PlacementRule,
    Rule,
    RuleMode,
    Severity,
    SimilarityRule,
    UsageRule,
    Violation,
)

__all__ = [
    "DuplicateGroup",
    "DuplicateRule",
    "NamespaceRule",
    "PlacementRule",
    "RULE_TYPES",
    "Rule",
    "RuleEngine",
    "RuleMode",
    "Severity",
    "SimilarityRule",
    "UsageRule",
    "Violation",
    "default_rules",
    "find_duplicate_groups",
    "load_rules",
    "rule_from_table",
    "rules_from_config",
]
