from __future__ import annotations

from dataclasses import replace

import pytest

from skelmatch.domain.features import ClauseOrder
from skelmatch.domain.fingerprint import SentenceBankEntry, build_fingerprint
from skelmatch.domain.scoring import (
    CoarseSkeletonScorer,
    PositionalSkeletonScorer,
    extract_skeleton_features,
    get_scorer,
)
from skelmatch.domain.similarity import (
    compare_positions,
    levenshtein,
    normalized_similarity,
    percent_offset,
)
from skelmatch.exceptions import ValidationError


def _entry(
    clause_count: int = 1, token_length: int = 5, skeleton: str = "The A B the C."
) -> SentenceBankEntry:
    return SentenceBankEntry(
        original="The cat sat on mat.",
        skeleton=skeleton,
        char_length=19,
        token_length=token_length,
        clause_count=clause_count,
        clause_order=ClauseOrder.MAIN_FIRST,
        punctuation_pattern=".",
    )


def test_levenshtein_and_normalized_similarity() -> None:
    assert levenshtein("kitten", "sitting") == 3
    assert levenshtein("", "abc") == 3
    assert normalized_similarity("", "") == 1.0
    assert normalized_similarity("abc", "") == 0.0
    assert normalized_similarity("abcd", "abce") == pytest.approx(0.75)
    assert normalized_similarity("kitten", "sitting") == pytest.approx(1 - 3 / 7)


def test_compare_positions_scales_by_length_ratio() -> None:
    assert compare_positions([], []) == 1.0
    assert compare_positions([10], []) == 0.0
    assert compare_positions([10, 50], [10, 50, 90]) == pytest.approx(2 / 3)
    assert compare_positions([0], [50]) == pytest.approx(0.5)


def test_percent_offset_rounds_half_up() -> None:
    assert percent_offset(1, 8) == 13
    assert percent_offset(0, 0) == 0


def test_identical_pattern_scores_maximum_with_both_scorers() -> None:
    fp = build_fingerprint("When it rains, we stay in.", "When it A, we B in.")
    entry = fp.to_entry()
    assert CoarseSkeletonScorer().score(fp, entry) == pytest.approx(100.0)
    assert PositionalSkeletonScorer().score(fp, entry) == pytest.approx(100.0)


def test_coarse_clause_penalty_is_a_quarter_weight_per_unit() -> None:
    a = _entry(clause_count=1)
    b = _entry(clause_count=3)
    # 40 + 15 + (15 - 0.25 * 15 * 2) + 15 + 15
    assert CoarseSkeletonScorer().score(a, b) == pytest.approx(92.5)


def test_coarse_token_band_gives_full_credit_within_twenty_percent() -> None:
    scorer = CoarseSkeletonScorer()
    assert scorer.score(_entry(token_length=10), _entry(token_length=12)) == pytest.approx(100.0)
    # diff 5 of 15 is outside the band: 1 - 5/15
    expected = 100.0 - 15.0 + 15.0 * (1 - 5 / 15)
    assert scorer.score(_entry(token_length=10), _entry(token_length=15)) == pytest.approx(expected)


def test_clause_order_mismatch_costs_its_weight() -> None:
    a = _entry()
    b = replace(a, clause_order=ClauseOrder.SUBORDINATE_FIRST)
    assert CoarseSkeletonScorer().score(a, b) == pytest.approx(85.0)


def test_skeleton_features_find_placeholders_and_function_words() -> None:
    f = extract_skeleton_features("The X-ing of A1 is α.", "The running of cars is fun.")
    assert f.placeholder_count == 3
    assert f.function_words == "the of is"
    assert f.clause_positions == ()
    assert f.word_count == 6


def test_positional_scorer_prefers_matching_placeholder_layout() -> None:
    query = build_fingerprint("The cat sat on the mat.", "The A B on the C.")
    close = build_fingerprint("The dog lay on the rug.", "The D E on the F.").to_entry()
    far = build_fingerprint("Cats, dogs and mice ran off.", "A, B and C D off.").to_entry()
    scorer = PositionalSkeletonScorer()
    assert scorer.score(query, close) > scorer.score(query, far)


def test_get_scorer_by_name() -> None:
    assert isinstance(get_scorer("coarse-skeleton"), CoarseSkeletonScorer)
    assert isinstance(get_scorer(" Positional-Skeleton "), PositionalSkeletonScorer)
    with pytest.raises(ValidationError):
        get_scorer("cosine")
