"""Fuzzy matching of hallucinated tool names against known ones."""

import math
from typing import Iterable

from .models import FuzzyMatch

MATCH_RATIO = 0.3


def levenshtein_distance(a: str, b: str) -> int:
    """Edit distance between two strings (unit cost insert/delete/substitute)."""
    rows = len(b) + 1
    cols = len(a) + 1
    matrix = [[0] * cols for _ in range(rows)]

    for i in range(rows):
        matrix[i][0] = i
    for j in range(cols):
        matrix[0][j] = j

    for i in range(1, rows):
        for j in range(1, cols):
            if b[i - 1] == a[j - 1]:
                matrix[i][j] = matrix[i - 1][j - 1]
            else:
                matrix[i][j] = min(
                    matrix[i - 1][j - 1] + 1,  # substitution
                    matrix[i][j - 1] + 1,  # insertion
                    matrix[i - 1][j] + 1,  # deletion
                )

    return matrix[rows - 1][cols - 1]


def max_allowed_distance(candidate: str) -> int:
    """Largest distance at which ``candidate`` is still a plausible match.

    30% of the candidate's length rounded up, but never the whole name.
    """
    return min(math.ceil(len(candidate) * MATCH_RATIO), max(len(candidate) - 1, 0))


def find_closest_tool_name(name: str, candidates: Iterable[str]) -> FuzzyMatch:
    """
    Find the closest known tool name to a proposed one.

    Exact matches (case-sensitive, then case-insensitive) win with distance 0.
    Otherwise the candidate with the smallest Levenshtein distance over the
    lowercased names is kept; ties go to the earliest candidate.

    Args:
        name: Tool name proposed by the model
        candidates: Known tool names

    Returns:
        FuzzyMatch with the suggestion, or ``match=None`` and the best
        distance when no candidate is close enough
    """
    pool = list(candidates)
    if name in pool:
        return FuzzyMatch(match=name, distance=0)

    lowered = name.lower()
    closest = None
    min_distance = None

    for candidate in pool:
        candidate_lower = candidate.lower()
        if lowered == candidate_lower:
            return FuzzyMatch(match=candidate, distance=0)

        distance = levenshtein_distance(lowered, candidate_lower)
        if min_distance is None or distance < min_distance:
            min_distance = distance
            closest = candidate

    if closest is not None and min_distance <= max_allowed_distance(closest):
        return FuzzyMatch(match=closest, distance=min_distance)

    return FuzzyMatch(match=None, distance=min_distance)
