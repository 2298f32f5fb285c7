from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Protocol

from skelmatch.exceptions import ValidationError

from .fingerprint import SentenceBankEntry, StructuralFingerprint
from .scoring import CoarseSkeletonScorer, Scorer


@dataclass(frozen=True)
class ScoredEntry:
    entry: SentenceBankEntry
    score: float
    rank: int = 1


class Matcher(Protocol):
    """Select one or several bank entries for a fingerprint.

    Returns an empty list when nothing qualifies.
    """

    name: str

    def match(
        self, query: StructuralFingerprint, bank: Sequence[SentenceBankEntry]
    ) -> list[ScoredEntry]:  # pragma: no cover - interface
        ...


def filter_by_length(
    entries: Sequence[SentenceBankEntry], char_length: int, tolerance: float = 0.1
) -> list[SentenceBankEntry]:
    """Filter A: keep entries within +/- tolerance of the input character length."""
    slack = tolerance * char_length
    return [e for e in entries if abs(e.char_length - char_length) <= slack]


def filter_by_clause_count(
    entries: Sequence[SentenceBankEntry], clause_count: int
) -> list[SentenceBankEntry]:
    """Filter B: exact clause count."""
    return [e for e in entries if e.clause_count == clause_count]


def prefer_punctuation(
    entries: Sequence[SentenceBankEntry], pattern: str
) -> tuple[list[SentenceBankEntry], bool]:
    """Filter C: exact punctuation matches if any exist, else everything passed in."""
    exact = [e for e in entries if e.punctuation_pattern == pattern]
    if exact:
        return exact, True
    return list(entries), False


@dataclass
class CascadingFilterMatcher:
    """Single-match strategy: hard length and clause filters, soft punctuation, argmax.

    Filters A and B are hard stops. Filter D keeps the first candidate on exact ties.
    """

    scorer: Scorer = field(default_factory=CoarseSkeletonScorer)
    length_tolerance: float = 0.1
    name: str = "cascading-filter"

    def match(
        self, query: StructuralFingerprint, bank: Sequence[SentenceBankEntry]
    ) -> list[ScoredEntry]:
        candidates = filter_by_length(bank, query.char_length, self.length_tolerance)
        if not candidates:
            return []
        candidates = filter_by_clause_count(candidates, query.clause_count)
        if not candidates:
            return []
        candidates, _exact = prefer_punctuation(candidates, query.punctuation_pattern)

        best: SentenceBankEntry | None = None
        best_score = float("-inf")
        for entry in candidates:
            s = self.scorer.score(query, entry)
            if s > best_score:
                best, best_score = entry, s
        if best is None:
            return []
        return [ScoredEntry(entry=best, score=best_score, rank=1)]


@dataclass
class WeightedTopNMatcher:
    """Ranking strategy: score the whole bank, keep the best N.

    Ties are broken by the richer pattern (higher clause count) unless
    ``prefer_more_clauses`` is off, in which case the earlier bank entry wins.
    """

    scorer: Scorer = field(default_factory=CoarseSkeletonScorer)
    top_n: int = 3
    name: str = "weighted-top-n"
    prefer_more_clauses: bool = True

    def match(
        self, query: StructuralFingerprint, bank: Sequence[SentenceBankEntry]
    ) -> list[ScoredEntry]:
        scored = [(self.scorer.score(query, e), e) for e in bank]
        if self.prefer_more_clauses:
            scored.sort(key=lambda p: (p[0], p[1].clause_count), reverse=True)
        else:
            # Stable: equal scores keep bank order
            scored.sort(key=lambda p: p[0], reverse=True)
        return [
            ScoredEntry(entry=e, score=s, rank=i)
            for i, (s, e) in enumerate(scored[: max(0, self.top_n)], 1)
        ]


MATCHERS = ("cascading-filter", "weighted-top-n")


def build_matcher(
    name: str,
    *,
    scorer: Scorer | None = None,
    top_n: int = 3,
    length_tolerance: float = 0.1,
) -> Matcher:
    key = (name or "").strip().lower()
    sc = scorer or CoarseSkeletonScorer()
    if key == "cascading-filter":
        return CascadingFilterMatcher(scorer=sc, length_tolerance=length_tolerance)
    if key == "weighted-top-n":
        if top_n < 1:
            raise ValidationError("top_n must be >= 1")
        return WeightedTopNMatcher(scorer=sc, top_n=top_n)
    raise ValidationError(f"Unknown matching strategy {name!r} (allowed: {', '.join(MATCHERS)})")
