"""Jaccard overlap between member sets.

    J(A,B) = |A ∩ B| / |A ∪ B|

Member names compare case-insensitively. Intersections for all pairs come
from one incidence-matrix product: with ``M[i, k] = 1`` when subject ``i``
has member ``k``, ``(M @ M.T)[i, j]`` is ``|A_i ∩ A_j|`` as an exact integer
and the union is ``|A_i| + |A_j| - |A_i ∩ A_j|``.

This is O(n²) in the number of qualifying subjects. ``M`` is held as
``uint8``; each block of rows is widened to ``int32`` only over the member
columns it uses, so ``block_size`` bounds both the widened operands and the
intersection matrix to ``block_size`` rows against ``n``.
"""

import re
from collections import Counter
from dataclasses import replace
from typing import Dict, Iterable, List, Mapping, Optional, Pattern, Sequence, Tuple

import numpy as np

from ..logging_config import get_logger
from ..rules.models import SimilarityRule
from ..scanning.models import Declaration, DeclarationKind
from .models import SimilarityPair
from .names import detect_similar_names

logger = get_logger(__name__)

DEFAULT_MIN_MEMBERS = 3


def jaccard(a: Iterable[str], b: Iterable[str]) -> Tuple[int, int, float]:
    """Return ``(shared, total, ratio)`` for two member collections."""
    left = {m.lower() for m in a}
    right = {m.lower() for m in b}
    total = len(left | right)
    shared = len(left & right)
    ratio = shared / total if total else 0.0
    return shared, total, ratio


def detect_similar(
    member_sets: Mapping[str, Iterable[str]],
    threshold: float,
    min_members: int = DEFAULT_MIN_MEMBERS,
    rule_id: str = "",
    block_size: Optional[int] = None,
) -> List[SimilarityPair]:
    """Every unordered pair of subjects with Jaccard ratio >= ``threshold``.

    Args:
        member_sets: Subject name to its members
        threshold: Minimum ratio to report
        min_members: Subjects with fewer distinct members are ignored
        rule_id: Stamped on every returned pair
        block_size: Rows of the intersection matrix computed at once

    Returns:
        Pairs sorted by ``(subject_a, subject_b)`` with ``subject_a < subject_b``
    """
    normalized = {
        subject: frozenset(m.lower() for m in members) for subject, members in member_sets.items()
    }
    subjects = sorted(s for s, members in normalized.items() if len(members) >= min_members)
    n = len(subjects)
    if n < 2:
        return []

    vocabulary = sorted(set().union(*(normalized[s] for s in subjects)))
    column = {member: k for k, member in enumerate(vocabulary)}
    incidence = np.zeros((n, len(vocabulary)), dtype=np.uint8)
    for i, subject in enumerate(subjects):
        incidence[i, [column[m] for m in normalized[subject]]] = 1
    sizes = incidence.sum(axis=1, dtype=np.int64)

    step = block_size if block_size and block_size > 0 else n
    pairs: List[SimilarityPair] = []
    for start in range(0, n, step):
        stop = min(start + step, n)
        block = incidence[start:stop]
        # Columns no row of the block uses add nothing to its intersections
        used = np.flatnonzero(block.any(axis=0))
        intersections = block[:, used].astype(np.int32) @ incidence[:, used].T.astype(np.int32)
        for i in range(start, stop):
            shared = intersections[i - start, i + 1:]
            union = sizes[i] + sizes[i + 1:] - shared
            ratios = shared / union
            for offset in np.nonzero(ratios >= threshold)[0]:
                j = i + 1 + int(offset)
                a, b = subjects[i], subjects[j]
                pairs.append(
                    SimilarityPair(
                        rule_id=rule_id,
                        subject_a=a,
                        subject_b=b,
                        shared=int(shared[offset]),
                        total=int(union[offset]),
                        ratio=float(ratios[offset]),
                        shared_members=tuple(sorted(normalized[a] & normalized[b])),
                    )
                )

    logger.debug(f"{rule_id or 'similarity'}: {n} subjects, {len(pairs)} pairs")
    return pairs


def select_subjects(
    declarations: Sequence[Declaration],
    kinds: Iterable[DeclarationKind],
    subject_pattern: Optional[Pattern[str]] = None,
) -> Dict[str, Declaration]:
    """Subject key to declaration.

    Names declared more than once are keyed by qualified name, and by
    ``qualified@path`` when even that collides.
    """
    kind_set = set(kinds)
    chosen = [
        d
        for d in sorted(declarations, key=lambda d: d.sort_key)
        if d.kind in kind_set and (subject_pattern is None or subject_pattern.search(d.name))
    ]

    name_counts = Counter(d.name for d in chosen)
    qualified_counts = Counter(d.qualified_name for d in chosen if name_counts[d.name] > 1)

    subjects: Dict[str, Declaration] = {}
    for decl in chosen:
        if name_counts[decl.name] == 1:
            key = decl.name
        elif qualified_counts[decl.qualified_name] == 1:
            key = decl.qualified_name
        else:
            key = f"{decl.qualified_name}@{decl.path}"
        subjects.setdefault(key, decl)
    return subjects


def member_sets(
    declarations: Sequence[Declaration],
    kinds: Iterable[DeclarationKind],
    subject_pattern: Optional[str] = None,
) -> Dict[str, Tuple[str, ...]]:
    """Subject key to member names, ready for ``detect_similar``."""
    pattern = re.compile(subject_pattern) if subject_pattern else None
    return {key: decl.members for key, decl in select_subjects(declarations, kinds, pattern).items()}


def run_similarity_rule(
    rule: SimilarityRule, declarations: Sequence[Declaration], block_size: Optional[int] = None
) -> List[SimilarityPair]:
    """Apply a compiled SimilarityRule; allow-listed pairs are dropped."""
    subjects = select_subjects(declarations, rule.kind_set, rule.compiled_subject)

    if rule.compare == "names":
        pairs = detect_similar_names(list(subjects), rule.similarity, rule_id=rule.id)
    else:
        pairs = detect_similar(
            {key: decl.members for key, decl in subjects.items()},
            rule.similarity,
            min_members=rule.min_members,
            rule_id=rule.id,
            block_size=block_size,
        )

    result = []
    for pair in pairs:
        first, second = subjects[pair.subject_a], subjects[pair.subject_b]
        if rule.allows_pair(pair.subject_a, pair.subject_b) or rule.allows_pair(first.name, second.name):
            continue
        location_a = f"{first.path}:{first.line}"
        location_b = f"{second.path}:{second.line}"
        message = rule.template.format_map(
            {
                "rule": rule.id,
                "name": pair.subject_a,
                "other": pair.subject_b,
                "kind": first.kind.value,
                "path": first.path,
                "line": first.line,
                "container": first.container_name or "",
                "container_kind": first.container.kind.value if first.container else "",
                "namespace": first.namespace,
                "reason": "overlapping members",
                "ratio": pair.ratio,
                "shared": ", ".join(pair.shared_members),
            }
        )
        result.append(replace(pair, location_a=location_a, location_b=location_b, message=message))
    return result
