"""Grouping of type names that differ only by a version or variant suffix."""

from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Sequence

from ..scanning.models import Declaration
from .models import DuplicateRule


@dataclass(frozen=True)
class DuplicateGroup:
    base: str
    members: tuple[Declaration, ...]

    @property
    def names(self) -> list[str]:
        return sorted({m.name for m in self.members})


def _merge_partials(declarations: Sequence[Declaration]) -> List[Declaration]:
    """Keep one declaration per name when every declaration of it is partial."""
    by_name: Dict[str, List[Declaration]] = defaultdict(list)
    for decl in declarations:
        by_name[decl.name].append(decl)

    merged: List[Declaration] = []
    for name in sorted(by_name):
        decls = sorted(by_name[name], key=lambda d: d.sort_key)
        if len(decls) > 1 and all("partial" in d.modifiers for d in decls):
            merged.append(decls[0])
        else:
            merged.extend(decls)
    return merged


def find_duplicate_groups(rule: DuplicateRule, declarations: Sequence[Declaration]) -> List[DuplicateGroup]:
    """Groups of at least ``rule.min_group`` declarations sharing a base key.

    Groups are sorted by base key; members by path and line.
    """
    candidates = [d for d in declarations if d.kind in rule.kind_set and not rule.allows(d.name)]

    groups: Dict[str, List[Declaration]] = defaultdict(list)
    for decl in _merge_partials(candidates):
        groups[rule.base_key(decl.name)].append(decl)

    found: List[DuplicateGroup] = []
    for base in sorted(groups):
        members = groups[base]
        if rule.allows(base) or len(members) < rule.min_group:
            continue
        if rule.ignore_file_scoped and all(m.is_file_scoped for m in members):
            continue
        if rule.require_distinct_suffixes and len({rule.suffix_of(m.name) for m in members}) < 2:
            continue
        found.append(DuplicateGroup(base=base, members=tuple(sorted(members, key=lambda d: d.sort_key))))
    return found
