"""Member-set and name similarity between declarations."""

from .detector import detect_similar, jaccard, member_sets, run_similarity_rule, select_subjects
from .models import SimilarityPair
from .names import detect_similar_names, name_similarity

__all__ = [
    "SimilarityPair",
    "detect_similar",
    "detect_similar_names",
    "jaccard",
    "member_sets",
    "name_similarity",
    "run_similarity_rule",
    "select_subjects",
]
