from __future__ import annotations

"""SQLAlchemy-backed sentence bank and job stores.

Every public method runs in its own session and commits before returning, so the
scheduler can always resume from the last committed state. Backend errors are rolled
back and re-raised as PersistenceError.
"""

import logging  # noqa: E402
from collections.abc import Iterable, Iterator, Sequence  # noqa: E402
from contextlib import contextmanager  # noqa: E402
from datetime import datetime, timezone  # noqa: E402

from sqlalchemy import (  # noqa: E402
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    create_engine,
    func,
    select,
    update,
)
from sqlalchemy.engine import Engine  # noqa: E402
from sqlalchemy.exc import SQLAlchemyError  # noqa: E402
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from skelmatch.domain.features import ClauseOrder  # noqa: E402
from skelmatch.domain.fingerprint import SentenceBankEntry  # noqa: E402
from skelmatch.domain.jobs import (  # noqa: E402
    BatchJob,
    BatchSection,
    JobKind,
    JobStatus,
    SectionStatus,
)
from skelmatch.domain.levels import TransformLevel  # noqa: E402
from skelmatch.exceptions import PersistenceError  # noqa: E402

logger = logging.getLogger(__name__)

_IN_CHUNK = 500


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _aware(dt: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes even for timezone=True columns
    if dt is None or dt.tzinfo is not None:
        return dt
    return dt.replace(tzinfo=timezone.utc)


class Base(DeclarativeBase):
    pass


class SentenceEntryRow(Base):
    __tablename__ = "sentence_entries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    original = Column(Text, nullable=False)
    skeleton = Column(Text, nullable=False)
    char_length = Column(Integer, nullable=False)
    token_length = Column(Integer, nullable=False)
    clause_count = Column(Integer, nullable=False, default=1)
    clause_order = Column(String(32), nullable=False)
    punctuation_pattern = Column(Text, nullable=False, default="")
    owner = Column(String(128), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now())


class BatchJobRow(Base):
    __tablename__ = "batch_jobs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    kind = Column(Enum(JobKind), nullable=False)
    level = Column(Enum(TransformLevel), nullable=False, default=TransformLevel.HEAVY)
    status = Column(Enum(JobStatus), nullable=False, default=JobStatus.PENDING, index=True)
    total_sections = Column(Integer, nullable=False)
    completed_sections = Column(Integer, nullable=False, default=0)
    failed_sections = Column(Integer, nullable=False, default=0)
    current_section_index = Column(Integer, nullable=False, default=0)
    next_process_time = Column(DateTime(timezone=True), nullable=True)
    owner = Column(String(128), nullable=True)
    break_duration_seconds = Column(Float, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now())
    completed_at = Column(DateTime(timezone=True), nullable=True)


class BatchSectionRow(Base):
    __tablename__ = "batch_sections"

    id = Column(Integer, primary_key=True, autoincrement=True)
    job_id = Column(Integer, ForeignKey("batch_jobs.id", ondelete="CASCADE"), nullable=False, index=True)
    section_index = Column(Integer, nullable=False)
    input_text = Column(Text, nullable=False)
    output_text = Column(Text, nullable=True)
    status = Column(Enum(SectionStatus), nullable=False, default=SectionStatus.PENDING)
    word_count = Column(Integer, nullable=False, default=0)
    sentence_count = Column(Integer, nullable=False, default=0)
    error_message = Column(Text, nullable=True)
    processed_at = Column(DateTime(timezone=True), nullable=True)


def build_engine(database_url: str, echo: bool = False) -> Engine:
    """Create an engine; in-memory SQLite gets one shared connection across threads."""
    if database_url in ("sqlite://", "sqlite:///:memory:"):
        return create_engine(
            database_url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    if database_url.startswith("sqlite"):
        return create_engine(database_url, echo=echo, connect_args={"check_same_thread": False})
    return create_engine(database_url, echo=echo, pool_pre_ping=True)


def init_schema(engine: Engine) -> None:
    Base.metadata.create_all(bind=engine)


class _SqlStore:
    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self._Session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

    @contextmanager
    def _session(self) -> Iterator[Session]:
        session = self._Session()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error("Database operation failed, rolled back: %s", e)
            raise PersistenceError(str(e)) from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


# ---- sentence bank -------------------------------------------------------


def _entry_from_row(row: SentenceEntryRow) -> SentenceBankEntry:
    return SentenceBankEntry(
        original=row.original,
        skeleton=row.skeleton,
        char_length=row.char_length,
        token_length=row.token_length,
        clause_count=row.clause_count,
        clause_order=ClauseOrder.parse(row.clause_order),
        punctuation_pattern=row.punctuation_pattern or "",
        owner=row.owner,
        id=row.id,
        created_at=_aware(row.created_at),
    )


def _row_from_entry(e: SentenceBankEntry) -> SentenceEntryRow:
    return SentenceEntryRow(
        original=e.original,
        skeleton=e.skeleton,
        char_length=e.char_length,
        token_length=e.token_length,
        clause_count=e.clause_count,
        clause_order=e.clause_order.value,
        punctuation_pattern=e.punctuation_pattern,
        owner=e.owner,
    )


class SqlSentenceBankStore(_SqlStore):
    def add(self, entry: SentenceBankEntry) -> SentenceBankEntry:
        with self._session() as s:
            row = _row_from_entry(entry)
            s.add(row)
            s.flush()
            return _entry_from_row(row)

    def add_many(self, entries: Iterable[SentenceBankEntry]) -> int:
        rows = [_row_from_entry(e) for e in entries]
        if not rows:
            return 0
        with self._session() as s:
            s.add_all(rows)
        logger.info("Appended %d sentence bank entries", len(rows))
        return len(rows)

    def all(self) -> list[SentenceBankEntry]:
        return self.by_owner(None)

    def by_owner(self, owner: str | None) -> list[SentenceBankEntry]:
        stmt = select(SentenceEntryRow).order_by(SentenceEntryRow.id)
        if owner is not None:
            stmt = stmt.where(SentenceEntryRow.owner == owner)
        with self._session() as s:
            return [_entry_from_row(r) for r in s.scalars(stmt)]

    def count(self, owner: str | None = None) -> int:
        stmt = select(func.count(SentenceEntryRow.id))
        if owner is not None:
            stmt = stmt.where(SentenceEntryRow.owner == owner)
        with self._session() as s:
            return int(s.scalar(stmt) or 0)

    def existing_skeletons(self, owner: str | None, skeletons: Iterable[str]) -> set[str]:
        wanted = list(dict.fromkeys(skeletons))
        found: set[str] = set()
        with self._session() as s:
            for i in range(0, len(wanted), _IN_CHUNK):
                stmt = select(SentenceEntryRow.skeleton).where(
                    SentenceEntryRow.skeleton.in_(wanted[i : i + _IN_CHUNK])
                )
                if owner is not None:
                    stmt = stmt.where(SentenceEntryRow.owner == owner)
                found.update(s.scalars(stmt))
        return found


# ---- jobs ----------------------------------------------------------------


def _job_from_row(row: BatchJobRow) -> BatchJob:
    return BatchJob(
        kind=row.kind,
        level=row.level,
        total_sections=row.total_sections,
        status=row.status,
        completed_sections=row.completed_sections,
        failed_sections=row.failed_sections,
        current_section_index=row.current_section_index,
        next_process_time=_aware(row.next_process_time),
        owner=row.owner,
        break_duration_seconds=row.break_duration_seconds,
        id=row.id,
        created_at=_aware(row.created_at),
        completed_at=_aware(row.completed_at),
    )


def _section_from_row(row: BatchSectionRow) -> BatchSection:
    return BatchSection(
        job_id=row.job_id,
        index=row.section_index,
        input_text=row.input_text,
        word_count=row.word_count,
        sentence_count=row.sentence_count,
        status=row.status,
        output_text=row.output_text,
        error_message=row.error_message,
        processed_at=_aware(row.processed_at),
        id=row.id,
    )


class SqlJobStore(_SqlStore):
    def create_job(self, job: BatchJob, sections: Sequence[BatchSection]) -> BatchJob:
        with self._session() as s:
            row = BatchJobRow(
                kind=job.kind,
                level=job.level,
                status=job.status,
                total_sections=len(sections),
                completed_sections=job.completed_sections,
                failed_sections=job.failed_sections,
                current_section_index=job.current_section_index,
                next_process_time=job.next_process_time,
                owner=job.owner,
                break_duration_seconds=job.break_duration_seconds,
            )
            s.add(row)
            s.flush()
            s.add_all(
                BatchSectionRow(
                    job_id=row.id,
                    section_index=sec.index,
                    input_text=sec.input_text,
                    status=sec.status,
                    word_count=sec.word_count,
                    sentence_count=sec.sentence_count,
                )
                for sec in sections
            )
            s.flush()
            return _job_from_row(row)

    def get_job(self, job_id: int) -> BatchJob | None:
        with self._session() as s:
            row = s.get(BatchJobRow, job_id)
            return _job_from_row(row) if row is not None else None

    def list_jobs(self, owner: str | None = None) -> list[BatchJob]:
        stmt = select(BatchJobRow).order_by(BatchJobRow.id.desc())
        if owner is not None:
            stmt = stmt.where(BatchJobRow.owner == owner)
        with self._session() as s:
            return [_job_from_row(r) for r in s.scalars(stmt)]

    def update_job(self, job: BatchJob) -> None:
        with self._session() as s:
            row = s.get(BatchJobRow, job.id)
            if row is None:
                raise PersistenceError(f"Job {job.id} does not exist")
            row.status = job.status
            row.completed_sections = job.completed_sections
            row.failed_sections = job.failed_sections
            row.current_section_index = job.current_section_index
            row.next_process_time = job.next_process_time
            row.completed_at = job.completed_at

    def get_sections(self, job_id: int) -> list[BatchSection]:
        stmt = (
            select(BatchSectionRow)
            .where(BatchSectionRow.job_id == job_id)
            .order_by(BatchSectionRow.section_index)
        )
        with self._session() as s:
            return [_section_from_row(r) for r in s.scalars(stmt)]

    def update_section(self, section: BatchSection) -> None:
        with self._session() as s:
            row = s.get(BatchSectionRow, section.id)
            if row is None:
                raise PersistenceError(f"Section {section.id} does not exist")
            row.status = section.status
            row.output_text = section.output_text
            row.error_message = section.error_message
            row.processed_at = section.processed_at

    def get_active_jobs(self) -> list[BatchJob]:
        stmt = (
            select(BatchJobRow)
            .where(BatchJobRow.status.in_([JobStatus.PENDING, JobStatus.PROCESSING]))
            .order_by(BatchJobRow.created_at, BatchJobRow.id)
        )
        with self._session() as s:
            return [_job_from_row(r) for r in s.scalars(stmt)]

    def get_next_pending_section(self, job_id: int) -> BatchSection | None:
        stmt = (
            select(BatchSectionRow)
            .where(
                BatchSectionRow.job_id == job_id,
                BatchSectionRow.status == SectionStatus.PENDING,
            )
            .order_by(BatchSectionRow.section_index)
            .limit(1)
        )
        with self._session() as s:
            row = s.scalars(stmt).first()
            return _section_from_row(row) if row is not None else None

    def reset_processing_sections_to_pending(self, job_id: int) -> int:
        stmt = (
            update(BatchSectionRow)
            .where(
                BatchSectionRow.job_id == job_id,
                BatchSectionRow.status == SectionStatus.PROCESSING,
            )
            .values(status=SectionStatus.PENDING)
        )
        with self._session() as s:
            n = s.execute(stmt).rowcount or 0
        if n:
            logger.info("Job %s: reset %d interrupted section(s) to pending", job_id, n)
        return int(n)
