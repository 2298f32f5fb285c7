from __future__ import annotations

from collections.abc import Sequence

from rapidfuzz.distance import Levenshtein


def levenshtein(a: str, b: str) -> int:
    """Edit distance (insert/delete/substitute, unit cost)."""
    return Levenshtein.distance(a, b)


def normalized_similarity(a: str, b: str) -> float:
    """1 - levenshtein/max_len, in [0, 1].

    Equal strings (including two empty ones) score 1.0; exactly one empty scores 0.0.
    """
    if a == b:
        return 1.0
    if not a or not b:
        return 0.0
    return Levenshtein.normalized_similarity(a, b)


def compare_positions(a: Sequence[float], b: Sequence[float]) -> float:
    """Similarity of two 0..100 position arrays, paired by index.

    Mean absolute offset over the common prefix, scaled by the ratio of the
    shorter array's length to the longer one's.
    """
    if not a and not b:
        return 1.0
    if not a or not b:
        return 0.0
    n = min(len(a), len(b))
    mean_diff = sum(abs(a[i] - b[i]) for i in range(n)) / n
    return (1.0 - mean_diff / 100.0) * (n / max(len(a), len(b)))


def percent_offset(index: int, length: int) -> int:
    """Character offset as a 0..100 integer percentage, rounding half up."""
    return int(index / max(length, 1) * 100 + 0.5)
