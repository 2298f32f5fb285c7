from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass

# Boundary: whitespace run that follows sentence-final punctuation
_BOUNDARY_RE = re.compile(r"(?<=[.!?])\s+")
_WS_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class SentenceSpan:
    text: str
    start: int
    end: int


def iter_sentence_spans(text: str) -> Iterator[SentenceSpan]:
    """Yield trimmed, non-empty sentences with their offsets in ``text``.

    A trailing fragment without terminal punctuation is kept as the final sentence.
    """
    if not text:
        return
    pos = 0
    for m in _BOUNDARY_RE.finditer(text):
        span = _trimmed(text, pos, m.start())
        if span is not None:
            yield span
        pos = m.end()
    span = _trimmed(text, pos, len(text))
    if span is not None:
        yield span


def _trimmed(text: str, start: int, end: int) -> SentenceSpan | None:
    piece = text[start:end]
    stripped = piece.strip()
    if not stripped:
        return None
    lead = len(piece) - len(piece.lstrip())
    s = start + lead
    return SentenceSpan(text=stripped, start=s, end=s + len(stripped))


def split_to_sentences(text: str) -> list[str]:
    return [s.text for s in iter_sentence_spans(text)]


def count_words(text: str) -> int:
    """Whitespace-delimited word count."""
    return len([w for w in _WS_RE.split(text or "") if w])
