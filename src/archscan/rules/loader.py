"""Rule loading from TOML ``[[rules]]`` tables.

Example:

    [[rules]]
    type = "placement"
    id = "enum-in-interface"
    pattern = ".*"
    kinds = ["enum"]
    forbidden_container = ["interface"]
    allow_list = ["LegacyStatus"]
"""

from dataclasses import fields
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Mapping, Type, get_type_hints

from ..config import ScanConfig, read_config_file
from ..exceptions import InvalidRuleError
from .defaults import default_rules
from .models import (
    DuplicateRule,
    NamespaceRule,
    PlacementRule,
    Rule,
    SimilarityRule,
    UsageRule,
    describe_hint,
    is_collection_hint,
    unwrap_optional,
    value_fits,
)

RULE_TYPES: Dict[str, Type[Rule]] = {
    cls.type_name: cls
    for cls in (PlacementRule, NamespaceRule, UsageRule, DuplicateRule, SimilarityRule)
}


def rule_from_table(table: Mapping[str, Any]) -> Rule:
    """Build one rule from a TOML table.

    Raises:
        InvalidRuleError: On a missing or unknown type, unknown fields or
            values of the wrong shape
    """
    data = dict(table)
    rule_id = str(data.get("id", "<unnamed>"))

    type_name = data.pop("type", None)
    if type_name is None:
        raise InvalidRuleError(rule_id, "missing 'type'", field="type")
    rule_cls = RULE_TYPES.get(type_name)
    if rule_cls is None:
        raise InvalidRuleError(
            rule_id, f"unknown type '{type_name}', expected one of {', '.join(sorted(RULE_TYPES))}",
            field="type",
        )

    init_fields = {f.name: f for f in fields(rule_cls) if f.init}
    unknown = sorted(set(data) - set(init_fields))
    if unknown:
        raise InvalidRuleError(rule_id, f"unknown field(s): {', '.join(unknown)}")
    if "id" not in data:
        raise InvalidRuleError(rule_id, "missing 'id'", field="id")

    hints = get_type_hints(rule_cls)
    kwargs: Dict[str, Any] = {}
    for name, value in data.items():
        kwargs[name] = _convert(rule_id, name, value, hints[name])

    try:
        return rule_cls(**kwargs)
    except TypeError as e:
        raise InvalidRuleError(rule_id, str(e))


def _convert(rule_id: str, name: str, value: Any, hint: Any) -> Any:
    """TOML value to the field's annotated type, or InvalidRuleError."""
    target, _ = unwrap_optional(hint)
    if isinstance(target, type) and issubclass(target, Enum):
        try:
            return target(value)
        except (ValueError, TypeError) as e:
            raise InvalidRuleError(rule_id, str(e), field=name)

    if is_collection_hint(target):
        values = _as_list(rule_id, name, value)
        return frozenset(values) if name == "allow_list" else tuple(values)
    if not value_fits(value, hint):
        raise InvalidRuleError(
            rule_id, f"expected {describe_hint(hint)}, got {type(value).__name__}", field=name
        )
    # TOML integers are accepted where a float is expected
    if target is float:
        return float(value)
    return value


def _as_list(rule_id: str, name: str, value: Any) -> List[str]:
    if isinstance(value, str):
        return [value]
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return value
    raise InvalidRuleError(rule_id, "expected a string or a list of strings", field=name)


def load_rules(path: Path) -> List[Rule]:
    """Rules from the ``[[rules]]`` array of a TOML file."""
    data = read_config_file(path, "rules file")
    tables = data.get("rules", [])
    if not isinstance(tables, list):
        raise InvalidRuleError("<file>", f"'rules' in {path} must be an array of tables")
    return [rule_from_table(t) for t in tables]


def rules_from_config(config: ScanConfig) -> List[Rule]:
    """Configured rules, else the default pack when enabled."""
    if config.rule_tables:
        return [rule_from_table(t) for t in config.rule_tables]
    if config.use_default_rules:
        return default_rules()
    return []
