from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from skelmatch.application.dispatch import run_in_groups
from skelmatch.application.fingerprinting import (
    DEFAULT_CALL_TIMEOUT_SECONDS,
    fingerprint_sentence,
)
from skelmatch.application.ports.bank_store_port import SentenceBankStorePort
from skelmatch.application.ports.oracle_port import RewriteOraclePort
from skelmatch.domain.fingerprint import SentenceBankEntry, StructuralFingerprint
from skelmatch.domain.levels import TransformLevel
from skelmatch.domain.matching import CascadingFilterMatcher, Matcher, ScoredEntry
from skelmatch.domain.retry import ExponentialBackoffPolicy, RetryPolicy
from skelmatch.domain.sentences import split_to_sentences
from skelmatch.exceptions import EmptyBankError, ValidationError

logger = logging.getLogger(__name__)


def _load_bank(bank: SentenceBankStorePort, owner: str | None) -> list[SentenceBankEntry]:
    entries = bank.by_owner(owner)
    if not entries:
        scope = f" for owner {owner!r}" if owner else ""
        raise EmptyBankError(f"Sentence bank is empty{scope}")
    return entries


@dataclass
class SentenceMatch:
    fingerprint: StructuralFingerprint
    matches: list[ScoredEntry]

    @property
    def best(self) -> ScoredEntry | None:
        return self.matches[0] if self.matches else None


@dataclass
class MatchSentenceUseCase:
    """Fingerprint one sentence and run it through a matching strategy.

    With the cascading matcher the result holds at most one entry; with the
    weighted top-N matcher it holds up to N ranked entries.
    """

    oracle: RewriteOraclePort
    bank: SentenceBankStorePort
    matcher: Matcher = field(default_factory=CascadingFilterMatcher)
    policy: RetryPolicy = field(default_factory=ExponentialBackoffPolicy)
    sleep: Callable[[float], None] = time.sleep
    call_timeout_seconds: float | None = DEFAULT_CALL_TIMEOUT_SECONDS

    def execute(
        self, sentence: str, level: TransformLevel | str | None = None, owner: str | None = None
    ) -> SentenceMatch:
        text = (sentence or "").strip()
        if not text:
            raise ValidationError("Sentence must not be empty")
        lv = TransformLevel.parse(level)
        entries = _load_bank(self.bank, owner)
        fp = fingerprint_sentence(
            self.oracle, text, lv, self.policy, self.sleep,
            timeout_seconds=self.call_timeout_seconds,
        )
        matches = self.matcher.match(fp, entries)
        logger.info(
            "%s: %d match(es) among %d entries", self.matcher.name, len(matches), len(entries)
        )
        return SentenceMatch(fingerprint=fp, matches=matches)


@dataclass
class TextSentenceMatch:
    sentence: str
    skeleton: str
    match: ScoredEntry | None
    error: str | None = None


@dataclass
class TextMatchReport:
    results: list[TextSentenceMatch]
    total: int
    matched: int
    bank_size: int


@dataclass
class MatchTextUseCase:
    """Single-match every sentence of a text against the bank."""

    oracle: RewriteOraclePort
    bank: SentenceBankStorePort
    matcher: Matcher = field(default_factory=CascadingFilterMatcher)
    policy: RetryPolicy = field(default_factory=ExponentialBackoffPolicy)
    batch_size: int = 5
    batch_delay_seconds: float = 0.5
    sleep: Callable[[float], None] = time.sleep
    call_timeout_seconds: float | None = DEFAULT_CALL_TIMEOUT_SECONDS

    def execute(
        self, text: str, level: TransformLevel | str | None = None, owner: str | None = None
    ) -> TextMatchReport:
        lv = TransformLevel.parse(level)
        sentences = split_to_sentences(text or "")
        if not sentences:
            raise ValidationError("No sentences found in text")
        entries = _load_bank(self.bank, owner)

        def _one(sentence: str) -> tuple[StructuralFingerprint, list[ScoredEntry]]:
            fp = fingerprint_sentence(
                self.oracle, sentence, lv, self.policy, self.sleep,
                timeout_seconds=self.call_timeout_seconds,
            )
            return fp, self.matcher.match(fp, entries)

        outcomes = run_in_groups(
            sentences,
            _one,
            group_size=self.batch_size,
            delay_seconds=self.batch_delay_seconds,
            sleep=self.sleep,
        )
        results: list[TextSentenceMatch] = []
        for sentence, o in zip(sentences, outcomes):
            if o.ok and o.value is not None:
                fp, matches = o.value
                results.append(
                    TextSentenceMatch(
                        sentence=sentence,
                        skeleton=fp.skeleton,
                        match=matches[0] if matches else None,
                    )
                )
            else:
                logger.warning("Could not fingerprint sentence %d: %s", o.index + 1, o.error)
                results.append(
                    TextSentenceMatch(sentence=sentence, skeleton="", match=None, error=str(o.error))
                )
        matched = sum(1 for r in results if r.match is not None)
        logger.info("Matched %d/%d sentences", matched, len(results))
        return TextMatchReport(
            results=results, total=len(results), matched=matched, bank_size=len(entries)
        )
