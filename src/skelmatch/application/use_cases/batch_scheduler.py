from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import timedelta

from apscheduler.schedulers.background import BackgroundScheduler

from skelmatch.application.ports.clock_port import Clock
from skelmatch.application.ports.job_store_port import JobStorePort
from skelmatch.application.use_cases.section_transform import SectionTransformer
from skelmatch.domain.jobs import BatchJob, BatchSection, JobStatus, SectionStatus
from skelmatch.exceptions import PersistenceError
from skelmatch.infra.observability.job_log import log_job_event

logger = logging.getLogger(__name__)

TICK_JOB_ID = "skelmatch-batch-tick"


@dataclass
class BatchScheduler:
    """Periodic state machine that walks batch jobs through their sections.

    Each tick processes at most one section of one job. Every state change is
    written to the job store before the next step, so a process killed mid-section
    leaves a ``processing`` job without ``next_process_time``; the next tick sees
    that as an interruption, resets the job's in-flight section and retries it.

    ``tick`` never blocks: when a previous tick still runs, it returns at once.
    """

    jobs: JobStorePort
    transformer: SectionTransformer
    clock: Clock
    break_seconds: float = 60.0
    tick_seconds: float = 10.0
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)
    _processing_job_id: int | None = field(default=None, init=False, repr=False)
    _scheduler: BackgroundScheduler | None = field(default=None, init=False, repr=False)

    @property
    def is_busy(self) -> bool:
        return self._lock.locked()

    @property
    def processing_job_id(self) -> int | None:
        return self._processing_job_id

    @property
    def running(self) -> bool:
        return self._scheduler is not None

    # ---- lifecycle -------------------------------------------------------

    def start(self) -> None:
        """Register the interval tick on a background scheduler; first tick runs now."""
        if self._scheduler is not None:
            logger.info("[Scheduler] Already running")
            return
        scheduler = BackgroundScheduler(timezone="UTC")
        scheduler.add_job(
            self.tick,
            trigger="interval",
            seconds=self.tick_seconds,
            id=TICK_JOB_ID,
            name="Batch section tick",
            max_instances=1,
            coalesce=True,
            next_run_time=self.clock.now(),
            replace_existing=True,
        )
        scheduler.start()
        self._scheduler = scheduler
        logger.info("[Scheduler] Started (tick every %.1fs)", self.tick_seconds)

    def stop(self, wait: bool = False) -> None:
        if self._scheduler is None:
            return
        self._scheduler.shutdown(wait=wait)
        self._scheduler = None
        logger.info("[Scheduler] Stopped")

    def is_job_processing(self, job_id: int) -> bool:
        return self._processing_job_id == job_id

    # ---- state machine ---------------------------------------------------

    def tick(self) -> bool:
        """Run one scheduling pass. Returns True when a section or job was advanced."""
        if not self._lock.acquire(blocking=False):
            logger.debug("Tick skipped: a section is still in flight")
            return False
        try:
            return self._tick()
        except PersistenceError as e:
            # Last durable state stays authoritative; recovery happens on a later tick
            logger.error("Tick abandoned after store error: %s", e)
            return False
        finally:
            self._processing_job_id = None
            self._lock.release()

    def _tick(self) -> bool:
        now = self.clock.now()
        for job in self.jobs.get_active_jobs():
            if job.status is JobStatus.PENDING:
                job.status = JobStatus.PROCESSING
                self.jobs.update_job(job)
                log_job_event("started", job)
                return self._process_next_section(job)
            if job.next_process_time is None:
                n = self.jobs.reset_processing_sections_to_pending(self._job_id(job))
                log_job_event("recovered", job, reset_sections=n)
                return self._process_next_section(job)
            if job.next_process_time <= now:
                return self._process_next_section(job)
        return False

    def _process_next_section(self, job: BatchJob) -> bool:
        job_id = self._job_id(job)
        self._processing_job_id = job_id
        section = self.jobs.get_next_pending_section(job_id)
        if section is None:
            self._finalize(job_id)
            return True

        logger.info(
            "Processing job %s, section %d/%d", job_id, section.index + 1, job.total_sections
        )
        section.status = SectionStatus.PROCESSING
        self.jobs.update_section(section)
        job.current_section_index = section.index
        job.next_process_time = None
        self.jobs.update_job(job)

        output, error = self._run(job, section)

        # Counters are re-read so concurrent status readers never see stale totals
        current = self.jobs.get_job(job_id)
        if current is None:
            logger.error("Job %s disappeared while processing section %d", job_id, section.index)
            return True
        section.processed_at = self.clock.now()
        if error is None:
            section.status = SectionStatus.COMPLETED
            section.output_text = output
            section.error_message = None
            current.completed_sections += 1
        else:
            section.status = SectionStatus.FAILED
            section.error_message = error
            current.failed_sections += 1
        self.jobs.update_section(section)
        self.jobs.update_job(current)
        log_job_event(
            "section_completed" if error is None else "section_failed",
            current,
            section=section.index,
            **({"error": error} if error else {}),
        )

        if self.jobs.get_next_pending_section(job_id) is not None:
            pause = (
                current.break_duration_seconds
                if current.break_duration_seconds is not None
                else self.break_seconds
            )
            current.next_process_time = self.clock.now() + timedelta(seconds=pause)
            self.jobs.update_job(current)
            logger.info(
                "Job %s: next section due at %s (%.0fs break)",
                job_id,
                current.next_process_time,
                pause,
            )
        else:
            self._finalize(job_id)
        return True

    def _run(self, job: BatchJob, section: BatchSection) -> tuple[str | None, str | None]:
        try:
            return self.transformer.transform(job, section), None
        except PersistenceError:
            raise
        except Exception as e:
            logger.warning("Job %s section %d failed: %s", job.id, section.index, e)
            return None, str(e) or e.__class__.__name__

    def _finalize(self, job_id: int) -> None:
        job = self.jobs.get_job(job_id)
        if job is None:
            return
        job.status = job.final_status()
        job.next_process_time = None
        job.completed_at = self.clock.now()
        self.jobs.update_job(job)
        log_job_event("finished", job)

    @staticmethod
    def _job_id(job: BatchJob) -> int:
        if job.id is None:
            raise PersistenceError("Job has no id; it was never stored")
        return job.id
