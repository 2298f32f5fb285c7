from __future__ import annotations

import logging

from skelmatch.domain.jobs import BatchJob

_log = logging.getLogger(__name__)


def log_job_event(event: str, job: BatchJob, **extra: object) -> None:
    """Log one job lifecycle transition as a single structured line.

    Parameters
    ----------
    event : str
        Transition name, e.g. "started", "section_completed", "recovered", "finished".
    job : BatchJob
        Job state after the transition.
    extra : object
        Additional key/value pairs appended to the line (section index, error, ...).
    """
    fields = " ".join(f"{k}={v}" for k, v in extra.items())
    _log.info(
        "job_event: %s job=%s kind=%s status=%s done=%d failed=%d total=%d%s",
        event,
        job.id,
        job.kind.value,
        job.status.value,
        job.completed_sections,
        job.failed_sections,
        job.total_sections,
        (" " + fields) if fields else "",
    )
