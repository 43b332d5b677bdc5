"""Similarity results."""

from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True, order=True)
class SimilarityPair:
    """Two subjects whose member sets (or names) overlap.

    ``subject_a`` always sorts before ``subject_b``; a pair is never
    reported twice and a subject never pairs with itself.
    """

    rule_id: str
    subject_a: str
    subject_b: str
    shared: int
    total: int
    ratio: float
    shared_members: Tuple[str, ...] = ()
    location_a: Optional[str] = None
    location_b: Optional[str] = None
    message: str = ""

    @property
    def key(self) -> str:
        return f"{self.subject_a},{self.subject_b}"

    @property
    def percent(self) -> str:
        return f"{self.ratio:.0%}"
