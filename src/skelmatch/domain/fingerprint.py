from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any

from .features import ClauseOrder, extract_features

FAILED_SKELETON = "[FAILED]"


@dataclass(frozen=True)
class StructuralFingerprint:
    """Deterministic features of a sentence plus the oracle's skeleton rendering.

    Ephemeral: computed per input sentence at match time, never persisted on its own.
    """

    sentence: str
    skeleton: str
    char_length: int
    token_length: int
    clause_count: int
    clause_order: ClauseOrder
    punctuation_pattern: str

    def to_entry(self, owner: str | None = None) -> SentenceBankEntry:
        return SentenceBankEntry(
            original=self.sentence,
            skeleton=self.skeleton,
            char_length=self.char_length,
            token_length=self.token_length,
            clause_count=self.clause_count,
            clause_order=self.clause_order,
            punctuation_pattern=self.punctuation_pattern,
            owner=owner,
        )


@dataclass(frozen=True)
class SentenceBankEntry:
    """Persisted structural pattern. Immutable once written."""

    original: str
    skeleton: str
    char_length: int
    token_length: int
    clause_count: int
    clause_order: ClauseOrder
    punctuation_pattern: str
    owner: str | None = None
    id: int | None = None
    created_at: datetime | None = None

    # The fingerprint view lets scorers treat bank entries and inputs alike
    @property
    def sentence(self) -> str:
        return self.original

    def with_owner(self, owner: str | None) -> SentenceBankEntry:
        return replace(self, owner=owner)

    def to_record(self) -> dict[str, Any]:
        """Serializable form used by JSONL export and batch output."""
        return {
            "original": self.original,
            "skeleton": self.skeleton,
            "char_length": self.char_length,
            "token_length": self.token_length,
            "clause_count": self.clause_count,
            "clause_order": self.clause_order.value,
            "punctuation_pattern": self.punctuation_pattern,
        }


def build_fingerprint(sentence: str, skeleton: str) -> StructuralFingerprint:
    """Combine features of the *original* sentence with its skeleton."""
    f = extract_features(sentence)
    return StructuralFingerprint(
        sentence=sentence,
        skeleton=skeleton,
        char_length=f.char_length,
        token_length=f.token_length,
        clause_count=f.clause_count,
        clause_order=f.clause_order,
        punctuation_pattern=f.punctuation_pattern,
    )
