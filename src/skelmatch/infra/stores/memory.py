from __future__ import annotations

import threading
from collections.abc import Iterable, Sequence
from dataclasses import replace
from datetime import datetime, timezone

from skelmatch.domain.fingerprint import SentenceBankEntry
from skelmatch.domain.jobs import BatchJob, BatchSection, JobStatus, SectionStatus
from skelmatch.exceptions import PersistenceError


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InMemorySentenceBankStore:
    """Process-local bank. Entries are immutable, so they are shared as-is."""

    def __init__(self) -> None:
        self._entries: list[SentenceBankEntry] = []
        self._next_id = 1
        self._lock = threading.Lock()

    def add(self, entry: SentenceBankEntry) -> SentenceBankEntry:
        with self._lock:
            stored = replace(entry, id=self._next_id, created_at=entry.created_at or _utcnow())
            self._next_id += 1
            self._entries.append(stored)
            return stored

    def add_many(self, entries: Iterable[SentenceBankEntry]) -> int:
        n = 0
        for e in entries:
            self.add(e)
            n += 1
        return n

    def all(self) -> list[SentenceBankEntry]:
        with self._lock:
            return list(self._entries)

    def by_owner(self, owner: str | None) -> list[SentenceBankEntry]:
        if owner is None:
            return self.all()
        with self._lock:
            return [e for e in self._entries if e.owner == owner]

    def count(self, owner: str | None = None) -> int:
        return len(self.by_owner(owner))

    def existing_skeletons(self, owner: str | None, skeletons: Iterable[str]) -> set[str]:
        wanted = set(skeletons)
        return {e.skeleton for e in self.by_owner(owner) if e.skeleton in wanted}


class InMemoryJobStore:
    """Dict-backed job store. Every read and write goes through copies."""

    def __init__(self) -> None:
        self._jobs: dict[int, BatchJob] = {}
        self._sections: dict[int, list[BatchSection]] = {}
        self._next_job_id = 1
        self._next_section_id = 1
        self._lock = threading.Lock()

    def create_job(self, job: BatchJob, sections: Sequence[BatchSection]) -> BatchJob:
        with self._lock:
            job_id = self._next_job_id
            self._next_job_id += 1
            stored = replace(
                job,
                id=job_id,
                total_sections=len(sections),
                created_at=job.created_at or _utcnow(),
            )
            rows: list[BatchSection] = []
            for s in sorted(sections, key=lambda s: s.index):
                rows.append(replace(s, id=self._next_section_id, job_id=job_id))
                self._next_section_id += 1
            self._jobs[job_id] = stored
            self._sections[job_id] = rows
            return replace(stored)

    def get_job(self, job_id: int) -> BatchJob | None:
        with self._lock:
            job = self._jobs.get(job_id)
            return replace(job) if job is not None else None

    def list_jobs(self, owner: str | None = None) -> list[BatchJob]:
        with self._lock:
            jobs = [j for j in self._jobs.values() if owner is None or j.owner == owner]
            return [replace(j) for j in sorted(jobs, key=lambda j: j.id or 0, reverse=True)]

    def update_job(self, job: BatchJob) -> None:
        with self._lock:
            if job.id not in self._jobs:
                raise PersistenceError(f"Job {job.id} does not exist")
            self._jobs[job.id] = replace(job)

    def get_sections(self, job_id: int) -> list[BatchSection]:
        with self._lock:
            return [replace(s) for s in self._sections.get(job_id, [])]

    def update_section(self, section: BatchSection) -> None:
        with self._lock:
            rows = self._sections.get(section.job_id, [])
            for i, row in enumerate(rows):
                if row.id == section.id:
                    rows[i] = replace(section)
                    return
            raise PersistenceError(f"Section {section.id} of job {section.job_id} does not exist")

    def get_active_jobs(self) -> list[BatchJob]:
        active = (JobStatus.PENDING, JobStatus.PROCESSING)
        with self._lock:
            jobs = [j for j in self._jobs.values() if j.status in active]
            return [replace(j) for j in sorted(jobs, key=lambda j: j.id or 0)]

    def get_next_pending_section(self, job_id: int) -> BatchSection | None:
        with self._lock:
            for s in self._sections.get(job_id, []):
                if s.status is SectionStatus.PENDING:
                    return replace(s)
            return None

    def reset_processing_sections_to_pending(self, job_id: int) -> int:
        with self._lock:
            n = 0
            for i, s in enumerate(self._sections.get(job_id, [])):
                if s.status is SectionStatus.PROCESSING:
                    self._sections[job_id][i] = replace(s, status=SectionStatus.PENDING)
                    n += 1
            return n
