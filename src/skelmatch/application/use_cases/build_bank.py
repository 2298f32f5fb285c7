from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from skelmatch.application.dispatch import run_in_groups
from skelmatch.application.fingerprinting import (
    DEFAULT_CALL_TIMEOUT_SECONDS,
    fingerprint_sentence,
)
from skelmatch.application.ports.bank_store_port import SentenceBankStorePort
from skelmatch.application.ports.oracle_port import RewriteOraclePort
from skelmatch.domain.bank_format import to_jsonl
from skelmatch.domain.fingerprint import SentenceBankEntry
from skelmatch.domain.levels import TransformLevel
from skelmatch.domain.retry import ExponentialBackoffPolicy, RetryPolicy
from skelmatch.domain.sentences import split_to_sentences
from skelmatch.exceptions import ValidationError

logger = logging.getLogger(__name__)


def append_unique(
    bank: SentenceBankStorePort, entries: Sequence[SentenceBankEntry], owner: str | None
) -> tuple[list[SentenceBankEntry], int]:
    """Append entries whose skeleton is not yet stored for ``owner``.

    Duplicates inside ``entries`` are dropped as well. Returns (added, skipped).
    """
    existing = bank.existing_skeletons(owner, [e.skeleton for e in entries])
    seen = set(existing)
    fresh: list[SentenceBankEntry] = []
    for e in entries:
        if e.skeleton in seen:
            continue
        seen.add(e.skeleton)
        fresh.append(e.with_owner(owner))
    if fresh:
        bank.add_many(fresh)
    return fresh, len(entries) - len(fresh)


@dataclass
class BankBuildReport:
    entries: list[SentenceBankEntry]
    jsonl: str
    added: int
    skipped_duplicates: int
    failed_sentences: int
    bank_size: int


@dataclass
class BuildSentenceBankUseCase:
    """Fingerprint every sentence of a text and append the patterns to the bank.

    Sentences are sent to the oracle in small concurrent groups with a pause between
    groups. Transient oracle errors back off exponentially; sentences that never
    succeed are dropped from the result.
    """

    oracle: RewriteOraclePort
    bank: SentenceBankStorePort
    policy: RetryPolicy = field(default_factory=ExponentialBackoffPolicy)
    batch_size: int = 5
    batch_delay_seconds: float = 0.5
    sleep: Callable[[float], None] = time.sleep
    call_timeout_seconds: float | None = DEFAULT_CALL_TIMEOUT_SECONDS

    def execute(
        self, text: str, level: TransformLevel | str | None = None, owner: str | None = None
    ) -> BankBuildReport:
        lv = TransformLevel.parse(level)
        sentences = split_to_sentences(text or "")
        if not sentences:
            raise ValidationError("No sentences found in text")

        logger.info("Building bank from %d sentences (level=%s)", len(sentences), lv.value)
        outcomes = run_in_groups(
            sentences,
            lambda s: fingerprint_sentence(
                self.oracle, s, lv, self.policy, self.sleep,
                timeout_seconds=self.call_timeout_seconds,
            ),
            group_size=self.batch_size,
            delay_seconds=self.batch_delay_seconds,
            sleep=self.sleep,
        )
        entries: list[SentenceBankEntry] = []
        failed = 0
        for o in outcomes:
            if o.ok and o.value is not None:
                entries.append(o.value.to_entry(owner))
            else:
                failed += 1
                logger.warning("Dropping sentence %d after oracle failure: %s", o.index + 1, o.error)

        added, skipped = append_unique(self.bank, entries, owner)
        size = self.bank.count(owner)
        logger.info(
            "Bank build done: %d added, %d duplicate, %d failed (bank size %d)",
            len(added),
            skipped,
            failed,
            size,
        )
        return BankBuildReport(
            entries=entries,
            jsonl=to_jsonl(entries),
            added=len(added),
            skipped_duplicates=skipped,
            failed_sentences=failed,
            bank_size=size,
        )
