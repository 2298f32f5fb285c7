from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from skelmatch.application.dispatch import Outcome, run_in_groups
from skelmatch.application.fingerprinting import (
    DEFAULT_CALL_TIMEOUT_SECONDS,
    request_skeleton,
)
from skelmatch.application.ports.bank_store_port import SentenceBankStorePort
from skelmatch.application.ports.oracle_port import RewriteOraclePort
from skelmatch.application.use_cases.build_bank import append_unique
from skelmatch.domain.fingerprint import FAILED_SKELETON, SentenceBankEntry, build_fingerprint
from skelmatch.domain.jobs import BatchJob, BatchSection, JobKind
from skelmatch.domain.retry import FixedDelayPolicy, RetryPolicy
from skelmatch.domain.sentences import split_to_sentences
from skelmatch.exceptions import SectionFailedError

logger = logging.getLogger(__name__)

MARKER_PREFIX_CHARS = 50


def failure_marker(sentence: str) -> str:
    return f"[FAILED: {sentence[:MARKER_PREFIX_CHARS]}...]"


def failed_record(sentence: str) -> dict[str, object]:
    record: dict[str, object] = build_fingerprint(sentence, FAILED_SKELETON).to_entry().to_record()
    record["error"] = True
    return record


@dataclass
class SectionTransformer:
    """Run one batch section through the oracle, sentence by sentence.

    Each sentence gets its own retry budget. A sentence that still fails is replaced
    by a failure marker so the section output keeps one line per input sentence.
    The section itself fails only when no sentence succeeded.
    """

    oracle: RewriteOraclePort
    bank: SentenceBankStorePort
    policy: RetryPolicy = field(default_factory=FixedDelayPolicy)
    parallelism: int = 1
    politeness_seconds: float = 0.5
    sleep: Callable[[float], None] = time.sleep
    call_timeout_seconds: float | None = DEFAULT_CALL_TIMEOUT_SECONDS

    def transform(self, job: BatchJob, section: BatchSection) -> str:
        sentences = split_to_sentences(section.input_text)
        if not sentences:
            raise SectionFailedError("Section contains no sentences")

        outcomes: list[Outcome[str]] = run_in_groups(
            sentences,
            lambda s: request_skeleton(
                self.oracle, s, job.level, self.policy, self.sleep,
                timeout_seconds=self.call_timeout_seconds,
            ),
            group_size=self.parallelism,
            delay_seconds=self.politeness_seconds,
            sleep=self.sleep,
        )
        failures = [o for o in outcomes if not o.ok]
        for o in failures:
            logger.warning(
                "Job %s section %d: sentence %d failed after retries: %s",
                job.id,
                section.index,
                o.index + 1,
                o.error,
            )
        if len(failures) == len(outcomes):
            raise SectionFailedError(str(failures[-1].error) or "All sentences failed")

        if job.kind is JobKind.BANK_BUILD:
            return self._bank_output(job, sentences, outcomes)
        return "\n".join(
            o.value if o.ok and o.value is not None else failure_marker(s)
            for s, o in zip(sentences, outcomes)
        )

    def _bank_output(
        self, job: BatchJob, sentences: list[str], outcomes: list[Outcome[str]]
    ) -> str:
        lines: list[str] = []
        entries: list[SentenceBankEntry] = []
        for s, o in zip(sentences, outcomes):
            if o.ok and o.value is not None:
                entry = build_fingerprint(s, o.value).to_entry(job.owner)
                entries.append(entry)
                lines.append(json.dumps(entry.to_record(), ensure_ascii=False))
            else:
                lines.append(json.dumps(failed_record(s), ensure_ascii=False))
        added, skipped = append_unique(self.bank, entries, job.owner)
        logger.info(
            "Job %s: %d pattern(s) appended to bank, %d duplicate(s) skipped",
            job.id,
            len(added),
            skipped,
        )
        return "\n".join(lines)
