from __future__ import annotations

import json

import pytest

from skelmatch.application.use_cases.build_bank import BuildSentenceBankUseCase
from skelmatch.application.use_cases.import_bank import (
    ExportSentenceBankUseCase,
    ImportSentenceBankUseCase,
)
from skelmatch.domain.levels import TransformLevel
from skelmatch.domain.retry import ExponentialBackoffPolicy
from skelmatch.exceptions import OracleFatalError, OracleTransientError, ValidationError
from skelmatch.infra.llm.providers import DummyRewriteOracle
from skelmatch.infra.stores.memory import InMemorySentenceBankStore

# --- Fakes -------------------------------------------------------------------


class PickyOracle:
    """Delegates to the dummy oracle but fails on sentences containing a marker word."""

    def __init__(self, fatal_on: str = "boom", transient_on: str = "") -> None:
        self.inner = DummyRewriteOracle()
        self.fatal_on = fatal_on
        self.transient_on = transient_on
        self.calls: list[str] = []

    def rewrite(self, text: str, level: TransformLevel) -> str:
        self.calls.append(text)
        if self.fatal_on and self.fatal_on in text:
            raise OracleFatalError("unusable response")
        if self.transient_on and self.transient_on in text:
            raise OracleTransientError("overloaded")
        return self.inner.rewrite(text, level)


def _build_uc(
    oracle: object, bank: InMemorySentenceBankStore, sleeps: list[float]
) -> BuildSentenceBankUseCase:
    return BuildSentenceBankUseCase(
        oracle=oracle,  # type: ignore[arg-type]
        bank=bank,
        policy=ExponentialBackoffPolicy(max_attempts=3),
        batch_size=2,
        batch_delay_seconds=0.5,
        sleep=sleeps.append,
    )


# --- Tests -------------------------------------------------------------------


def test_build_bank_appends_unique_skeletons_per_owner() -> None:
    bank = InMemorySentenceBankStore()
    sleeps: list[float] = []
    uc = _build_uc(DummyRewriteOracle(), bank, sleeps)

    report = uc.execute("The cat sat. The dog ran. When it rains, we stay in.", owner="alice")

    assert len(report.entries) == 3
    assert report.added == 2  # "The cat sat." and "The dog ran." share a skeleton
    assert report.skipped_duplicates == 1
    assert report.bank_size == 2
    assert bank.count("alice") == 2
    assert all(e.owner == "alice" for e in bank.all())
    assert [json.loads(line)["original"] for line in report.jsonl.splitlines()][0] == "The cat sat."
    # Two groups of two sentences: one pause between them
    assert sleeps == [0.5]

    again = uc.execute("The cow lay.", owner="alice")
    assert again.added == 0 and again.skipped_duplicates == 1
    other = uc.execute("The cow lay.", owner="bob")
    assert other.added == 1


def test_build_bank_drops_sentences_that_never_succeed() -> None:
    bank = InMemorySentenceBankStore()
    sleeps: list[float] = []
    oracle = PickyOracle(fatal_on="boom", transient_on="storm")
    uc = _build_uc(oracle, bank, sleeps)

    report = uc.execute("It went boom. A storm came. The cat sat.")

    assert report.failed_sentences == 2
    assert [e.original for e in report.entries] == ["The cat sat."]
    # Fatal: one call. Transient: three attempts with 2s and 4s backoff.
    assert oracle.calls.count("It went boom.") == 1
    assert oracle.calls.count("A storm came.") == 3
    assert 2.0 in sleeps and 4.0 in sleeps


def test_build_bank_rejects_empty_text_and_bad_level() -> None:
    uc = _build_uc(DummyRewriteOracle(), InMemorySentenceBankStore(), [])
    with pytest.raises(ValidationError):
        uc.execute("   ")
    with pytest.raises(ValidationError):
        uc.execute("The cat sat.", level="Scorched")


def test_import_then_export_bank() -> None:
    bank = InMemorySentenceBankStore()
    content = "\n".join(
        [
            json.dumps({"original": "The cat sat.", "skeleton": "The A B."}),
            "garbage",
            json.dumps(
                {"original": "We left because it rained.", "structure": "We A because it B."}
            ),
        ]
    )
    report = ImportSentenceBankUseCase(bank=bank).execute(content, owner="carol")

    assert report.format == "jsonl"
    assert report.imported == 2
    assert report.bank_size == 2
    assert len(report.errors) == 1

    exported = ExportSentenceBankUseCase(bank=bank).execute("txt", owner="carol")
    assert "--- Pattern 2 ---" in exported
    assert "Skeleton: We A because it B." in exported
    assert len(ExportSentenceBankUseCase(bank=bank).execute("jsonl").splitlines()) == 2
    with pytest.raises(ValidationError):
        ExportSentenceBankUseCase(bank=bank).execute("csv")


def test_import_without_valid_entries_is_rejected() -> None:
    uc = ImportSentenceBankUseCase(bank=InMemorySentenceBankStore())
    with pytest.raises(ValidationError):
        uc.execute('{"original": "No skeleton."}')
    with pytest.raises(ValidationError):
        uc.execute("")
