from __future__ import annotations

import pytest

from skelmatch.domain.chunking import PREVIEW_CHARS, ChunkingConfig, TextChunker, chunk_text
from skelmatch.domain.sentences import count_words, split_to_sentences
from skelmatch.exceptions import ValidationError

TEXT = (
    "The committee met on Tuesday. It reviewed the budget line by line! "
    "Was anything cut? Several members, after a long debate, agreed to defer the vote "
    "until the auditors had finished their report. Nobody objected. "
    "The chair thanked everyone and closed the session at noon."
)


@pytest.mark.parametrize("target", [1, 5, 12, 30, 1000])
def test_sections_never_split_sentences_and_keep_all_words(target: int) -> None:
    sections = chunk_text(TEXT, target)

    assert sum(s.word_count for s in sections) == count_words(TEXT)
    regrouped = [sent for s in sections for sent in split_to_sentences(s.text)]
    assert regrouped == split_to_sentences(TEXT)
    assert sum(s.sentence_count for s in sections) == len(regrouped)


def test_sections_respect_target_unless_single_sentence_is_larger() -> None:
    sections = chunk_text(TEXT, 12)
    for s in sections:
        assert s.word_count <= 12 or s.sentence_count == 1
    oversized = [s for s in sections if s.word_count > 12]
    assert len(oversized) == 1
    assert oversized[0].text.startswith("Several members")


def test_section_ids_offsets_and_preview() -> None:
    sections = chunk_text(TEXT, 12)
    assert [s.id for s in sections] == [f"section-{i}" for i in range(1, len(sections) + 1)]
    for s in sections:
        first, last = split_to_sentences(s.text)[0], split_to_sentences(s.text)[-1]
        assert TEXT[s.char_start :].startswith(first)
        assert TEXT[: s.char_end].endswith(last)
        if len(s.text) > PREVIEW_CHARS:
            assert s.preview == s.text[:PREVIEW_CHARS] + "..."
        else:
            assert s.preview == s.text


def test_whole_text_fits_in_one_section() -> None:
    sections = TextChunker(ChunkingConfig(target_words=1000)).split(TEXT)
    assert len(sections) == 1
    assert sections[0].sentence_count == 6


def test_empty_text_and_invalid_target() -> None:
    assert chunk_text("", 10) == []
    with pytest.raises(ValidationError):
        chunk_text(TEXT, 0)
