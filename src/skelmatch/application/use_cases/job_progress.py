from __future__ import annotations

from dataclasses import dataclass

from skelmatch.application.ports.job_store_port import JobStorePort
from skelmatch.domain.jobs import BatchJob, BatchSection, JobKind, SectionStatus
from skelmatch.exceptions import ValidationError


@dataclass
class JobProgress:
    job: BatchJob
    sections: list[BatchSection]

    @property
    def percent_complete(self) -> float:
        if self.job.total_sections <= 0:
            return 100.0
        return round(100.0 * self.job.resolved_sections / self.job.total_sections, 1)

    @property
    def output_text(self) -> str:
        """Outputs of the completed sections, in section order."""
        # Bank-build output stays valid JSONL
        sep = "\n" if self.job.kind is JobKind.BANK_BUILD else "\n\n"
        return sep.join(
            s.output_text or ""
            for s in self.sections
            if s.status is SectionStatus.COMPLETED and s.output_text
        )


@dataclass
class JobProgressUseCase:
    jobs: JobStorePort

    def execute(self, job_id: int) -> JobProgress:
        job = self.jobs.get_job(job_id)
        if job is None:
            raise ValidationError(f"Unknown job id {job_id}")
        return JobProgress(job=job, sections=self.jobs.get_sections(job_id))

    def list_jobs(self, owner: str | None = None) -> list[BatchJob]:
        return self.jobs.list_jobs(owner)
