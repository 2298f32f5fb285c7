from .job_log import log_job_event

__all__ = ["log_job_event"]
