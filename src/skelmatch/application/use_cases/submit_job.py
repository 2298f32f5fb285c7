from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from skelmatch.application.ports.job_store_port import JobStorePort
from skelmatch.domain.chunking import ChunkingConfig, TextChunker
from skelmatch.domain.jobs import BatchJob, BatchSection, JobKind
from skelmatch.domain.levels import TransformLevel
from skelmatch.exceptions import ValidationError

logger = logging.getLogger(__name__)


@dataclass
class SubmitBatchJobUseCase:
    jobs: JobStorePort
    section_words: int = 1000

    def execute(
        self,
        text: str,
        level: TransformLevel | str | None = None,
        *,
        kind: JobKind | str = JobKind.REWRITE,
        section_words: int | None = None,
        break_seconds: float | None = None,
        sections: Sequence[int] | None = None,
        owner: str | None = None,
    ) -> BatchJob:
        """Chunk ``text`` and persist a pending job with one section per chunk.

        ``sections`` optionally restricts the job to a subset of chunks, given as
        1-based chunk numbers; the kept sections are re-indexed in document order.
        """
        if not (text or "").strip():
            raise ValidationError("Text must not be empty")
        lv = TransformLevel.parse(level)
        jk = JobKind.parse(kind)
        words = int(section_words if section_words is not None else self.section_words)
        if words < 1:
            raise ValidationError("section_words must be >= 1")
        if break_seconds is not None and break_seconds < 0:
            raise ValidationError("break_seconds must be >= 0")

        chunks = TextChunker(ChunkingConfig(target_words=words)).split(text)
        if not chunks:
            raise ValidationError("No sentences found in text")
        if sections:
            wanted = sorted(set(int(n) for n in sections))
            bad = [n for n in wanted if n < 1 or n > len(chunks)]
            if bad:
                raise ValidationError(
                    f"Section numbers out of range 1..{len(chunks)}: {', '.join(map(str, bad))}"
                )
            chunks = [chunks[n - 1] for n in wanted]

        job = BatchJob(
            kind=jk,
            level=lv,
            total_sections=len(chunks),
            owner=owner,
            break_duration_seconds=break_seconds,
        )
        rows = [
            BatchSection(
                job_id=0,
                index=i,
                input_text=c.text,
                word_count=c.word_count,
                sentence_count=c.sentence_count,
            )
            for i, c in enumerate(chunks)
        ]
        created = self.jobs.create_job(job, rows)
        logger.info(
            "Submitted %s job %s: %d section(s), level=%s",
            jk.value,
            created.id,
            created.total_sections,
            lv.value,
        )
        return created
