from .bank_store_port import SentenceBankStorePort
from .clock_port import Clock
from .job_store_port import JobStorePort
from .oracle_port import RewriteOraclePort

__all__ = [
    "RewriteOraclePort",
    "SentenceBankStorePort",
    "JobStorePort",
    "Clock",
]
