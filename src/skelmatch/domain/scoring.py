from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Protocol

from skelmatch.exceptions import ValidationError

from .features import ClauseOrder, trigger_offsets
from .similarity import compare_positions, normalized_similarity, percent_offset

# Placeholders emitted by the oracle: X, X-ing, A1, greek letters, Ω7
PLACEHOLDER_RE = re.compile(r"\b[A-Z](?:-[a-z]+)?\b|\b[A-Z]\d+\b|[αβγδεζηθικλμνξπρστυφχψω]|Ω\d+")

FUNCTION_WORDS = frozenset(
    """
    the a an is are was were be been being have has had do does did will would could
    should may might must shall can to of in for on with at by from as into through
    during before after above below between under again further then once here there
    when where why how all each few more most other some such no nor not only own same
    so than too very just and but if or because until while although since that this
    these those it its their they them we us our you your he she him her his hers
    """.split()
)

FUNCTION_WORD_PREFIX = 10


class Pattern(Protocol):
    """Anything shaped like a fingerprint: inputs and bank entries alike."""

    @property
    def sentence(self) -> str: ...

    skeleton: str
    token_length: int
    clause_count: int
    clause_order: ClauseOrder
    punctuation_pattern: str


class Scorer(Protocol):
    name: str

    def score(self, query: Pattern, candidate: Pattern) -> float:  # pragma: no cover - interface
        ...


def _token_credit_banded(a: int, b: int) -> float:
    hi = max(a, b)
    if hi == 0:
        return 1.0
    diff = abs(a - b)
    if diff <= 0.2 * hi:
        return 1.0
    return max(0.0, 1.0 - diff / hi)


@dataclass(frozen=True)
class CoarseSkeletonScorer:
    """Weighted coarse score (0-100) dominated by whole-skeleton edit similarity."""

    name: str = "coarse-skeleton"
    w_skeleton: float = 40.0
    w_tokens: float = 15.0
    w_clause_count: float = 15.0
    w_clause_order: float = 15.0
    w_punctuation: float = 15.0

    def score(self, query: Pattern, candidate: Pattern) -> float:
        s = normalized_similarity(query.skeleton, candidate.skeleton) * self.w_skeleton
        s += _token_credit_banded(query.token_length, candidate.token_length) * self.w_tokens
        clause_diff = abs(query.clause_count - candidate.clause_count)
        # Each unit of difference costs a quarter of the weight
        s += max(0.0, self.w_clause_count - 0.25 * self.w_clause_count * clause_diff)
        if query.clause_order == candidate.clause_order:
            s += self.w_clause_order
        s += (
            normalized_similarity(query.punctuation_pattern, candidate.punctuation_pattern)
            * self.w_punctuation
        )
        return s


@dataclass(frozen=True)
class SkeletonFeatures:
    placeholder_count: int
    placeholder_positions: tuple[int, ...]
    clause_positions: tuple[int, ...]
    function_words: str
    word_count: int


@lru_cache(maxsize=8192)
def extract_skeleton_features(skeleton: str, original: str) -> SkeletonFeatures:
    placeholders = list(PLACEHOLDER_RE.finditer(skeleton))
    words = skeleton.lower().split()
    return SkeletonFeatures(
        placeholder_count=len(placeholders),
        placeholder_positions=tuple(percent_offset(m.start(), len(skeleton)) for m in placeholders),
        clause_positions=tuple(percent_offset(i, len(original)) for i in trigger_offsets(original)),
        function_words=" ".join([w for w in words if w in FUNCTION_WORDS][:FUNCTION_WORD_PREFIX]),
        word_count=len(words),
    )


@dataclass(frozen=True)
class PositionalSkeletonScorer:
    """Positional score (0-100): where placeholders and clause triggers sit.

    Used for single-best selection in style transfer.
    """

    name: str = "positional-skeleton"

    def score(self, query: Pattern, candidate: Pattern) -> float:
        qf = extract_skeleton_features(query.skeleton, query.sentence)
        cf = extract_skeleton_features(candidate.skeleton, candidate.sentence)

        s = compare_positions(qf.placeholder_positions, cf.placeholder_positions) * 15
        s += compare_positions(qf.clause_positions, cf.clause_positions) * 10
        s += normalized_similarity(qf.function_words, cf.function_words) * 10
        var_hi = max(qf.placeholder_count, cf.placeholder_count, 1)
        var_diff = abs(qf.placeholder_count - cf.placeholder_count)
        s += (1 - min(var_diff / var_hi, 1.0)) * 5

        tok_hi = max(query.token_length, candidate.token_length, 1)
        tok_diff = abs(query.token_length - candidate.token_length)
        s += (1 - min(tok_diff / tok_hi, 1.0)) * 15

        cl_hi = max(query.clause_count, candidate.clause_count, 1)
        cl_diff = abs(query.clause_count - candidate.clause_count)
        s += max(0.0, 15 * (1 - cl_diff / cl_hi))

        if query.clause_order == candidate.clause_order:
            s += 15
        s += normalized_similarity(query.punctuation_pattern, candidate.punctuation_pattern) * 15
        return s


SCORERS: dict[str, type] = {
    "coarse-skeleton": CoarseSkeletonScorer,
    "positional-skeleton": PositionalSkeletonScorer,
}


def get_scorer(name: str) -> Scorer:
    try:
        return SCORERS[name.strip().lower()]()
    except KeyError:
        raise ValidationError(
            f"Unknown scorer {name!r} (allowed: {', '.join(sorted(SCORERS))})"
        ) from None
