from .memory import InMemoryJobStore, InMemorySentenceBankStore
from .sql import SqlJobStore, SqlSentenceBankStore, build_engine, init_schema

__all__ = [
    "InMemorySentenceBankStore",
    "InMemoryJobStore",
    "SqlSentenceBankStore",
    "SqlJobStore",
    "build_engine",
    "init_schema",
]
