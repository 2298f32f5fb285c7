from __future__ import annotations

from dataclasses import dataclass

from skelmatch.exceptions import ValidationError

from .sentences import SentenceSpan, count_words, iter_sentence_spans

PREVIEW_CHARS = 100


@dataclass(frozen=True)
class Section:
    id: str
    text: str
    word_count: int
    sentence_count: int
    char_start: int
    char_end: int
    preview: str


@dataclass
class ChunkingConfig:
    target_words: int = 1000
    joiner: str = " "


class TextChunker:
    """Sentence-aligned, word-bounded sectioning of long documents.

    Sentences are never cut: a single sentence longer than the target becomes its own
    oversized section.
    """

    def __init__(self, cfg: ChunkingConfig | None = None) -> None:
        self.cfg = cfg or ChunkingConfig()
        if int(self.cfg.target_words) < 1:
            raise ValidationError("target_words must be >= 1")

    def split(self, text: str) -> list[Section]:
        target = int(self.cfg.target_words)
        sections: list[Section] = []
        cur: list[SentenceSpan] = []
        cur_words = 0

        for span in iter_sentence_spans(text or ""):
            n = count_words(span.text)
            if cur and cur_words + n > target:
                sections.append(self._section(len(sections) + 1, cur, cur_words))
                cur, cur_words = [], 0
            cur.append(span)
            cur_words += n
        if cur:
            sections.append(self._section(len(sections) + 1, cur, cur_words))
        return sections

    def _section(self, number: int, spans: list[SentenceSpan], words: int) -> Section:
        text = self.cfg.joiner.join(s.text for s in spans)
        preview = text if len(text) <= PREVIEW_CHARS else text[:PREVIEW_CHARS] + "..."
        return Section(
            id=f"section-{number}",
            text=text,
            word_count=words,
            sentence_count=len(spans),
            char_start=spans[0].start,
            char_end=spans[-1].end,
            preview=preview,
        )


def chunk_text(text: str, target_words: int = 1000) -> list[Section]:
    return TextChunker(ChunkingConfig(target_words=target_words)).split(text)
