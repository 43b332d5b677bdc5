"""Name similarity for rules that compare declaration names, not members."""

import difflib
from typing import Iterable, List

from .models import SimilarityPair


def name_similarity(a: str, b: str) -> float:
    """Case-insensitive ``SequenceMatcher`` ratio in [0, 1]."""
    return difflib.SequenceMatcher(None, a.lower(), b.lower()).ratio()


def detect_similar_names(names: Iterable[str], threshold: float, rule_id: str = "") -> List[SimilarityPair]:
    """Every unordered pair of distinct names at or above ``threshold``.

    ``shared`` counts matching characters and ``total`` the characters in
    either name, so ``shared <= total`` as for member sets.
    """
    ordered = sorted(set(names))
    pairs: List[SimilarityPair] = []
    for i, a in enumerate(ordered):
        for b in ordered[i + 1:]:
            matcher = difflib.SequenceMatcher(None, a.lower(), b.lower())
            ratio = matcher.ratio()
            if ratio < threshold:
                continue
            shared = sum(block.size for block in matcher.get_matching_blocks())
            pairs.append(
                SimilarityPair(
                    rule_id=rule_id,
                    subject_a=a,
                    subject_b=b,
                    shared=shared,
                    total=len(a) + len(b) - shared,
                    ratio=ratio,
                )
            )
    return pairs
