from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from skelmatch.domain.jobs import BatchJob, BatchSection


class JobStorePort(Protocol):
    """Durable state of batch jobs and their sections.

    Every write is committed before the call returns so the scheduler can resume
    from the last durable state after a crash. Returned objects are copies.
    """

    def create_job(
        self, job: BatchJob, sections: Sequence[BatchSection]
    ) -> BatchJob:  # pragma: no cover - interface
        ...

    def get_job(self, job_id: int) -> BatchJob | None:  # pragma: no cover - interface
        ...

    def list_jobs(self, owner: str | None = None) -> list[BatchJob]:  # pragma: no cover - interface
        ...

    def update_job(self, job: BatchJob) -> None:  # pragma: no cover - interface
        ...

    def get_sections(self, job_id: int) -> list[BatchSection]:  # pragma: no cover - interface
        ...

    def update_section(self, section: BatchSection) -> None:  # pragma: no cover - interface
        ...

    def get_active_jobs(self) -> list[BatchJob]:  # pragma: no cover - interface
        """Pending and processing jobs, oldest first."""
        ...

    def get_next_pending_section(self, job_id: int) -> BatchSection | None:  # pragma: no cover - interface
        ...

    def reset_processing_sections_to_pending(self, job_id: int) -> int:  # pragma: no cover - interface
        ...
