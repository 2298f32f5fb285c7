from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from skelmatch.application.use_cases.batch_scheduler import BatchScheduler
from skelmatch.application.use_cases.build_bank import append_unique
from skelmatch.application.use_cases.section_transform import SectionTransformer
from skelmatch.application.use_cases.submit_job import SubmitBatchJobUseCase
from skelmatch.domain.features import ClauseOrder
from skelmatch.domain.fingerprint import build_fingerprint
from skelmatch.domain.jobs import BatchJob, BatchSection, JobKind, JobStatus, SectionStatus
from skelmatch.domain.levels import TransformLevel
from skelmatch.exceptions import PersistenceError
from skelmatch.infra.llm.providers import DummyRewriteOracle
from skelmatch.infra.stores.sql import (
    SqlJobStore,
    SqlSentenceBankStore,
    build_engine,
    init_schema,
)

Stores = tuple[SqlSentenceBankStore, SqlJobStore]

T0 = datetime(2026, 1, 1, tzinfo=timezone.utc)

# --- Fakes -------------------------------------------------------------------


class FakeClock:
    def __init__(self) -> None:
        self.t = T0

    def now(self) -> datetime:
        return self.t

    def sleep(self, seconds: float) -> None:
        self.t = self.t + timedelta(seconds=seconds)


@pytest.fixture()
def stores() -> Stores:
    engine = build_engine("sqlite://")
    init_schema(engine)
    return SqlSentenceBankStore(engine), SqlJobStore(engine)


def _job(total: int, **kwargs: Any) -> tuple[BatchJob, list[BatchSection]]:
    job = BatchJob(
        kind=JobKind.REWRITE, level=TransformLevel.HEAVY, total_sections=total, **kwargs
    )
    sections = [
        BatchSection(job_id=0, index=i, input_text=f"Sentence {i}.", word_count=2, sentence_count=1)
        for i in range(total)
    ]
    return job, sections


# --- Tests -------------------------------------------------------------------


def test_bank_store_round_trips_entries_and_scopes_by_owner(stores: Stores) -> None:
    bank, _jobs = stores
    fp = build_fingerprint("When it rains, we stay in.", "When it A, we B in.")
    stored = bank.add(fp.to_entry("alice"))
    bank.add_many(
        [
            build_fingerprint("The cat sat.", "The A B.").to_entry("bob"),
            build_fingerprint("The dog ran.", "The A B.").to_entry(None),
        ]
    )

    assert stored.id == 1
    assert stored.created_at is not None and stored.created_at.tzinfo is not None
    assert bank.count() == 3
    assert bank.count("alice") == 1
    alice = bank.by_owner("alice")
    assert alice[0].clause_order is ClauseOrder.SUBORDINATE_FIRST
    assert alice[0].punctuation_pattern == ",."
    assert [e.original for e in bank.all()][0] == "When it rains, we stay in."
    assert bank.existing_skeletons("bob", ["The A B.", "Nope."]) == {"The A B."}
    assert bank.existing_skeletons("alice", ["The A B."]) == set()


def test_append_unique_against_sql_bank(stores: Stores) -> None:
    bank, _jobs = stores
    bank.add(build_fingerprint("The cat sat.", "The A B.").to_entry("alice"))

    added, skipped = append_unique(
        bank,
        [
            build_fingerprint("The dog ran.", "The A B.").to_entry("alice"),
            build_fingerprint("It rained when we left.", "It A when we B.").to_entry("alice"),
        ],
        "alice",
    )

    assert [e.original for e in added] == ["It rained when we left."]
    assert skipped == 1
    assert bank.count("alice") == 2


def test_job_store_crud_and_ordering(stores: Stores) -> None:
    _bank, jobs = stores
    first = jobs.create_job(*_job(2, owner="alice", break_duration_seconds=2.5))
    second = jobs.create_job(*_job(1))

    assert (first.id, second.id) == (1, 2)
    assert first.total_sections == 2
    assert first.break_duration_seconds == 2.5
    assert [j.id for j in jobs.list_jobs()] == [2, 1]
    assert [j.id for j in jobs.list_jobs("alice")] == [1]
    assert [j.id for j in jobs.get_active_jobs()] == [1, 2]

    sections = jobs.get_sections(1)
    assert [s.index for s in sections] == [0, 1]
    assert all(s.job_id == 1 for s in sections)

    sections[0].status = SectionStatus.COMPLETED
    sections[0].output_text = "Sentence A."
    sections[0].processed_at = T0
    jobs.update_section(sections[0])
    nxt = jobs.get_next_pending_section(1)
    assert nxt is not None and nxt.index == 1
    assert jobs.get_sections(1)[0].processed_at == T0

    first.status = JobStatus.PROCESSING
    first.next_process_time = T0 + timedelta(seconds=60)
    jobs.update_job(first)
    reloaded = jobs.get_job(1)
    assert reloaded is not None
    assert reloaded.status is JobStatus.PROCESSING
    assert reloaded.next_process_time == T0 + timedelta(seconds=60)
    assert reloaded.next_process_time.tzinfo is not None

    assert jobs.get_job(99) is None


def test_reset_processing_sections(stores: Stores) -> None:
    _bank, jobs = stores
    job = jobs.create_job(*_job(3))
    for s in jobs.get_sections(job.id)[:2]:
        s.status = SectionStatus.PROCESSING
        jobs.update_section(s)

    assert jobs.reset_processing_sections_to_pending(job.id) == 2
    assert all(s.status is SectionStatus.PENDING for s in jobs.get_sections(job.id))


def test_updates_of_missing_rows_raise_persistence_error(stores: Stores) -> None:
    _bank, jobs = stores
    ghost, _sections = _job(1, id=42)
    with pytest.raises(PersistenceError):
        jobs.update_job(ghost)
    with pytest.raises(PersistenceError):
        jobs.update_section(
            BatchSection(job_id=42, index=0, input_text="x", word_count=1, sentence_count=1, id=7)
        )


def test_scheduler_runs_a_job_on_sql_stores(stores: Stores) -> None:
    bank, jobs = stores
    clock = FakeClock()
    transformer = SectionTransformer(
        oracle=DummyRewriteOracle(), bank=bank, politeness_seconds=0, sleep=clock.sleep
    )
    scheduler = BatchScheduler(jobs=jobs, transformer=transformer, clock=clock, break_seconds=30)
    job = SubmitBatchJobUseCase(jobs=jobs, section_words=3).execute(
        "The cat sat. When it rains, we stay in.", kind="bank-build", owner="alice"
    )

    assert scheduler.tick() is True
    assert scheduler.tick() is False
    clock.sleep(30)
    assert scheduler.tick() is True

    done = jobs.get_job(job.id)
    assert done is not None
    assert done.status is JobStatus.COMPLETED
    assert done.completed_sections == 2
    assert bank.count("alice") == 2
