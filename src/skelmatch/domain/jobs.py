from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from skelmatch.exceptions import ValidationError

from .levels import TransformLevel


class JobKind(str, Enum):
    REWRITE = "rewrite"
    BANK_BUILD = "bank-build"

    @classmethod
    def parse(cls, value: str | JobKind) -> JobKind:
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower().replace("_", "-")
        # Older clients call these "bleach" and "jsonl"
        aliases = {"bleach": cls.REWRITE, "jsonl": cls.BANK_BUILD}
        if key in aliases:
            return aliases[key]
        for kind in cls:
            if kind.value == key:
                return kind
        raise ValidationError(f"Unknown job kind {value!r}")


class JobStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


class SectionStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class BatchJob:
    kind: JobKind
    level: TransformLevel
    total_sections: int
    status: JobStatus = JobStatus.PENDING
    completed_sections: int = 0
    failed_sections: int = 0
    current_section_index: int = 0
    next_process_time: datetime | None = None
    owner: str | None = None
    break_duration_seconds: float | None = None
    id: int | None = None
    created_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def resolved_sections(self) -> int:
        return self.completed_sections + self.failed_sections

    def final_status(self) -> JobStatus:
        """Failed only when every section failed; partial failure still completes."""
        if self.failed_sections >= self.total_sections:
            return JobStatus.FAILED
        return JobStatus.COMPLETED


@dataclass
class BatchSection:
    job_id: int
    index: int
    input_text: str
    word_count: int
    sentence_count: int
    status: SectionStatus = SectionStatus.PENDING
    output_text: str | None = None
    error_message: str | None = None
    processed_at: datetime | None = None
    id: int | None = None
