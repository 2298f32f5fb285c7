from __future__ import annotations

import pytest

from skelmatch.application.use_cases.match_sentences import MatchSentenceUseCase, MatchTextUseCase
from skelmatch.application.use_cases.style_transfer import SelectStylePatternsUseCase
from skelmatch.domain.fingerprint import build_fingerprint
from skelmatch.domain.levels import TransformLevel
from skelmatch.domain.matching import WeightedTopNMatcher
from skelmatch.exceptions import EmptyBankError, OracleFatalError, ValidationError
from skelmatch.infra.llm.providers import DummyRewriteOracle
from skelmatch.infra.stores.memory import InMemorySentenceBankStore

# --- Fakes -------------------------------------------------------------------


class FailingOnOracle:
    def __init__(self, marker: str) -> None:
        self.marker = marker
        self.inner = DummyRewriteOracle()

    def rewrite(self, text: str, level: TransformLevel) -> str:
        if self.marker in text:
            raise OracleFatalError("no text in response")
        return self.inner.rewrite(text, level)


def _bank(*pairs: tuple[str, str], owner: str | None = None) -> InMemorySentenceBankStore:
    bank = InMemorySentenceBankStore()
    bank.add_many(build_fingerprint(s, k).to_entry(owner) for s, k in pairs)
    return bank


def _no_sleep(_: float) -> None:
    return None


# --- Tests -------------------------------------------------------------------


def test_single_best_match_for_a_sentence() -> None:
    bank = _bank(("The cat sat.", "The A B."), ("It rained when we left.", "It A when we B."))
    uc = MatchSentenceUseCase(oracle=DummyRewriteOracle(), bank=bank, sleep=_no_sleep)

    result = uc.execute("The dog ran.")

    assert result.fingerprint.skeleton == "The A B."
    assert result.best is not None
    assert result.best.entry.original == "The cat sat."
    assert result.best.score == pytest.approx(100.0)


def test_ranked_matches_use_the_configured_matcher() -> None:
    bank = _bank(
        ("The cat sat.", "The A B."),
        ("The cow lay down.", "The A B C."),
        ("It rained when we left.", "It A when we B."),
    )
    uc = MatchSentenceUseCase(
        oracle=DummyRewriteOracle(),
        bank=bank,
        matcher=WeightedTopNMatcher(top_n=2),
        sleep=_no_sleep,
    )
    result = uc.execute("The dog ran.", level="Heavy")
    assert [m.rank for m in result.matches] == [1, 2]
    assert result.matches[0].entry.original == "The cat sat."


def test_matching_against_empty_scope_raises() -> None:
    bank = _bank(("The cat sat.", "The A B."), owner="alice")
    uc = MatchSentenceUseCase(oracle=DummyRewriteOracle(), bank=bank, sleep=_no_sleep)
    with pytest.raises(EmptyBankError):
        uc.execute("The dog ran.", owner="bob")
    with pytest.raises(ValidationError):
        uc.execute("  ")


def test_match_text_reports_per_sentence_results() -> None:
    bank = _bank(("The cat sat.", "The A B."))
    uc = MatchTextUseCase(
        oracle=FailingOnOracle("explode"),
        bank=bank,
        batch_size=5,
        batch_delay_seconds=0,
        sleep=_no_sleep,
    )

    report = uc.execute(
        "The dog ran. This sentence is far too long to match anything. Things explode."
    )

    assert report.total == 3
    assert report.matched == 1
    assert report.bank_size == 1
    first, second, third = report.results
    assert first.match is not None and first.match.entry.original == "The cat sat."
    assert second.match is None and second.error is None and second.skeleton
    assert third.match is None and third.skeleton == "" and "no text" in (third.error or "")


def test_style_selection_picks_closest_sample_pattern() -> None:
    uc = SelectStylePatternsUseCase(
        oracle=DummyRewriteOracle(), batch_delay_seconds=0, sleep=_no_sleep
    )
    sample = "The cat sat. When it rained, we stayed in because the roof leaked."

    selections = uc.execute("The dog ran. If it snows, we ski because the slopes open.", sample)

    assert len(selections) == 2
    assert selections[0].pattern is not None
    assert selections[0].pattern.entry.original == "The cat sat."
    assert selections[1].pattern is not None
    assert selections[1].pattern.entry.original.startswith("When it rained")


def test_style_selection_needs_both_texts() -> None:
    uc = SelectStylePatternsUseCase(oracle=DummyRewriteOracle(), sleep=_no_sleep)
    with pytest.raises(ValidationError):
        uc.execute("The dog ran.", "")
