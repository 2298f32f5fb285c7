from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from .sentences import count_words

CLAUSE_TRIGGERS: tuple[str, ...] = ("when", "because", "although", "if", "while", "since", "but")

PUNCTUATION_CHARS = ".,;:!?'\"()-—"

_TRIGGER_RE = re.compile(r"\b(?:" + "|".join(CLAUSE_TRIGGERS) + r")\b", re.IGNORECASE)
_NON_PUNCT_RE = re.compile("[^" + re.escape(PUNCTUATION_CHARS) + "]")


class ClauseOrder(str, Enum):
    SUBORDINATE_FIRST = "subordinate-first"
    MAIN_FIRST = "main-first"

    @classmethod
    def parse(cls, value: str) -> ClauseOrder:
        """Accept the canonical values and the legacy arrow labels of older bank files."""
        v = (value or "").strip().lower()
        if v in (cls.SUBORDINATE_FIRST.value, "subordinate → main", "subordinate -> main"):
            return cls.SUBORDINATE_FIRST
        if v in (cls.MAIN_FIRST.value, "main → subordinate", "main -> subordinate"):
            return cls.MAIN_FIRST
        raise ValueError(f"Unknown clause order: {value!r}")


@dataclass(frozen=True)
class SentenceFeatures:
    char_length: int
    token_length: int
    clause_count: int
    clause_order: ClauseOrder
    punctuation_pattern: str


def count_clauses(sentence: str) -> int:
    # Zero triggers still means one (main) clause
    return max(1, len(_TRIGGER_RE.findall(sentence)))


def clause_order(sentence: str) -> ClauseOrder:
    lowered = sentence.strip().lower()
    for trigger in CLAUSE_TRIGGERS:
        if lowered.startswith(trigger + " ") or lowered.startswith(trigger + ","):
            return ClauseOrder.SUBORDINATE_FIRST
    return ClauseOrder.MAIN_FIRST


def punctuation_pattern(sentence: str) -> str:
    return _NON_PUNCT_RE.sub("", sentence)


def trigger_offsets(sentence: str) -> list[int]:
    """Character offsets of every clause trigger, in reading order."""
    return [m.start() for m in _TRIGGER_RE.finditer(sentence)]


def extract_features(sentence: str) -> SentenceFeatures:
    return SentenceFeatures(
        char_length=len(sentence),
        token_length=count_words(sentence),
        clause_count=count_clauses(sentence),
        clause_order=clause_order(sentence),
        punctuation_pattern=punctuation_pattern(sentence),
    )
