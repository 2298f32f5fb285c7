from __future__ import annotations

import pytest

from skelmatch.domain.features import ClauseOrder, extract_features
from skelmatch.domain.levels import TransformLevel
from skelmatch.domain.sentences import count_words, iter_sentence_spans, split_to_sentences
from skelmatch.exceptions import ValidationError


def test_three_sentences_with_mixed_terminators() -> None:
    assert split_to_sentences("A cat sat. It was calm! Was it happy?") == [
        "A cat sat.",
        "It was calm!",
        "Was it happy?",
    ]


def test_trailing_fragment_is_kept_and_empty_input_yields_nothing() -> None:
    assert split_to_sentences("One. two without end") == ["One.", "two without end"]
    assert split_to_sentences("") == []
    assert split_to_sentences("   \n ") == []


def test_spans_point_back_into_source() -> None:
    text = "  Hi there.   Bye now!"
    spans = list(iter_sentence_spans(text))
    assert [s.text for s in spans] == ["Hi there.", "Bye now!"]
    for s in spans:
        assert text[s.start : s.end] == s.text


def test_count_words_uses_whitespace_tokens() -> None:
    assert count_words("  a  b\tc\nd ") == 4
    assert count_words("") == 0


def test_features_of_subordinate_first_sentence() -> None:
    f = extract_features("When it rains, we stay inside because it is wet.")
    assert f.clause_count == 2
    assert f.clause_order is ClauseOrder.SUBORDINATE_FIRST
    assert f.punctuation_pattern == ",."
    assert f.token_length == 10
    assert f.char_length == len("When it rains, we stay inside because it is wet.")


def test_clause_count_floors_at_one_and_needs_whole_words() -> None:
    f = extract_features("Whenever he came, nobody noticed.")
    assert f.clause_count == 1
    assert f.clause_order is ClauseOrder.MAIN_FIRST


def test_trigger_followed_by_comma_starts_subordinate() -> None:
    assert extract_features("But, of course, nobody came.").clause_order is ClauseOrder.SUBORDINATE_FIRST


def test_punctuation_keeps_quotes_dashes_and_parentheses_in_order() -> None:
    f = extract_features('He said "no" (twice) - then left; sadly.')
    assert f.punctuation_pattern == '""()-;.'


def test_clause_order_accepts_legacy_arrow_labels() -> None:
    assert ClauseOrder.parse("subordinate → main") is ClauseOrder.SUBORDINATE_FIRST
    assert ClauseOrder.parse("main -> subordinate") is ClauseOrder.MAIN_FIRST
    with pytest.raises(ValueError):
        ClauseOrder.parse("sideways")


def test_transform_level_parsing() -> None:
    assert TransformLevel.parse(None) is TransformLevel.HEAVY
    assert TransformLevel.parse("very-heavy") is TransformLevel.VERY_HEAVY
    assert TransformLevel.parse("Moderate-Heavy") is TransformLevel.MODERATE_HEAVY
    assert TransformLevel.parse("LIGHT") is TransformLevel.LIGHT
    with pytest.raises(ValidationError):
        TransformLevel.parse("extreme")
