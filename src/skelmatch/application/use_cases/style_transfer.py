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
from skelmatch.application.ports.oracle_port import RewriteOraclePort
from skelmatch.domain.fingerprint import SentenceBankEntry, StructuralFingerprint
from skelmatch.domain.levels import TransformLevel
from skelmatch.domain.matching import ScoredEntry, WeightedTopNMatcher
from skelmatch.domain.retry import ExponentialBackoffPolicy, RetryPolicy
from skelmatch.domain.scoring import PositionalSkeletonScorer
from skelmatch.domain.sentences import split_to_sentences
from skelmatch.exceptions import ValidationError

logger = logging.getLogger(__name__)


@dataclass
class StyleSelection:
    sentence: str
    skeleton: str
    pattern: ScoredEntry | None


@dataclass
class SelectStylePatternsUseCase:
    """Pick, for each target sentence, the closest sentence pattern of a style sample.

    The sample is fingerprinted into a throwaway bank (never persisted); selection
    is the weighted top-N strategy with the positional scorer and N=1, ranked by
    score alone: on a tie the earlier sample sentence wins.
    """

    oracle: RewriteOraclePort
    policy: RetryPolicy = field(default_factory=ExponentialBackoffPolicy)
    batch_size: int = 5
    batch_delay_seconds: float = 0.5
    sleep: Callable[[float], None] = time.sleep
    call_timeout_seconds: float | None = DEFAULT_CALL_TIMEOUT_SECONDS
    matcher: WeightedTopNMatcher = field(
        default_factory=lambda: WeightedTopNMatcher(
            scorer=PositionalSkeletonScorer(),
            top_n=1,
            name="style-transfer",
            prefer_more_clauses=False,
        )
    )

    def _fingerprint_all(
        self, sentences: list[str], level: TransformLevel
    ) -> list[StructuralFingerprint | None]:
        outcomes = run_in_groups(
            sentences,
            lambda s: fingerprint_sentence(
                self.oracle, s, level, self.policy, self.sleep,
                timeout_seconds=self.call_timeout_seconds,
            ),
            group_size=self.batch_size,
            delay_seconds=self.batch_delay_seconds,
            sleep=self.sleep,
        )
        out: list[StructuralFingerprint | None] = []
        for o in outcomes:
            if not o.ok:
                logger.warning("Style fingerprint failed for sentence %d: %s", o.index + 1, o.error)
            out.append(o.value if o.ok else None)
        return out

    def execute(
        self, target_text: str, style_sample: str, level: TransformLevel | str | None = None
    ) -> list[StyleSelection]:
        lv = TransformLevel.parse(level)
        targets = split_to_sentences(target_text or "")
        samples = split_to_sentences(style_sample or "")
        if not targets:
            raise ValidationError("No sentences found in target text")
        if not samples:
            raise ValidationError("No sentences found in style sample")

        style_bank: list[SentenceBankEntry] = [
            fp.to_entry() for fp in self._fingerprint_all(samples, lv) if fp is not None
        ]
        if not style_bank:
            raise ValidationError("Style sample could not be fingerprinted")

        selections: list[StyleSelection] = []
        for sentence, fp in zip(targets, self._fingerprint_all(targets, lv)):
            if fp is None:
                selections.append(StyleSelection(sentence=sentence, skeleton="", pattern=None))
                continue
            best = self.matcher.match(fp, style_bank)
            selections.append(
                StyleSelection(sentence=sentence, skeleton=fp.skeleton, pattern=best[0] if best else None)
            )
        return selections
