from __future__ import annotations

"""Composition root: assemble and expose application use-cases.

Provides cached getters to avoid re-building adapters repeatedly in long-lived
processes (worker/CLI). Keeps environment/settings handling inside the config layer.
"""

from functools import lru_cache  # noqa: E402

from skelmatch.application.ports.bank_store_port import SentenceBankStorePort  # noqa: E402
from skelmatch.application.ports.job_store_port import JobStorePort  # noqa: E402
from skelmatch.application.ports.oracle_port import RewriteOraclePort  # noqa: E402
from skelmatch.application.use_cases import (  # noqa: E402
    BatchScheduler,
    BuildSentenceBankUseCase,
    ExportSentenceBankUseCase,
    ImportSentenceBankUseCase,
    JobProgressUseCase,
    MatchSentenceUseCase,
    MatchTextUseCase,
    SectionTransformer,
    SelectStylePatternsUseCase,
    SubmitBatchJobUseCase,
)
from skelmatch.config.providers import (  # noqa: E402
    build_oracle_from_settings,
    build_ranking_matcher,
    build_single_matcher,
    build_stores,
)
from skelmatch.core.settings import get_settings  # noqa: E402
from skelmatch.domain.retry import RetryPolicy, build_retry_policy  # noqa: E402
from skelmatch.infra.clock import SystemClock  # noqa: E402


@lru_cache(maxsize=1)
def get_oracle() -> RewriteOraclePort:
    return build_oracle_from_settings(get_settings().oracle)


@lru_cache(maxsize=1)
def get_stores() -> tuple[SentenceBankStorePort, JobStorePort]:
    return build_stores(get_settings())


def _direct_policy() -> RetryPolicy:
    s = get_settings().scheduler
    return build_retry_policy(
        s.direct_retry_policy,
        max_attempts=s.max_retries,
        delay_seconds=s.direct_retry_delay_seconds,
    )


def _section_policy() -> RetryPolicy:
    s = get_settings().scheduler
    return build_retry_policy(
        s.section_retry_policy, max_attempts=s.max_retries, delay_seconds=s.retry_delay_seconds
    )


def _call_timeout() -> float:
    return get_settings().oracle.call_timeout_seconds


@lru_cache(maxsize=1)
def get_build_bank_use_case() -> BuildSentenceBankUseCase:
    m = get_settings().matching
    return BuildSentenceBankUseCase(
        oracle=get_oracle(),
        bank=get_stores()[0],
        policy=_direct_policy(),
        call_timeout_seconds=_call_timeout(),
        batch_size=m.batch_size,
        batch_delay_seconds=m.batch_delay_seconds,
    )


@lru_cache(maxsize=1)
def get_import_bank_use_case() -> ImportSentenceBankUseCase:
    return ImportSentenceBankUseCase(bank=get_stores()[0])


@lru_cache(maxsize=1)
def get_export_bank_use_case() -> ExportSentenceBankUseCase:
    return ExportSentenceBankUseCase(bank=get_stores()[0])


@lru_cache(maxsize=1)
def get_match_use_case() -> MatchSentenceUseCase:
    return MatchSentenceUseCase(
        oracle=get_oracle(),
        bank=get_stores()[0],
        matcher=build_single_matcher(get_settings().matching),
        policy=_direct_policy(),
        call_timeout_seconds=_call_timeout(),
    )


@lru_cache(maxsize=8)
def get_rank_use_case(top_n: int | None = None) -> MatchSentenceUseCase:
    return MatchSentenceUseCase(
        oracle=get_oracle(),
        bank=get_stores()[0],
        matcher=build_ranking_matcher(get_settings().matching, top_n=top_n),
        policy=_direct_policy(),
        call_timeout_seconds=_call_timeout(),
    )


@lru_cache(maxsize=1)
def get_match_text_use_case() -> MatchTextUseCase:
    m = get_settings().matching
    return MatchTextUseCase(
        oracle=get_oracle(),
        bank=get_stores()[0],
        matcher=build_single_matcher(m),
        policy=_direct_policy(),
        call_timeout_seconds=_call_timeout(),
        batch_size=m.batch_size,
        batch_delay_seconds=m.batch_delay_seconds,
    )


@lru_cache(maxsize=1)
def get_style_use_case() -> SelectStylePatternsUseCase:
    m = get_settings().matching
    return SelectStylePatternsUseCase(
        oracle=get_oracle(),
        policy=_direct_policy(),
        call_timeout_seconds=_call_timeout(),
        batch_size=m.batch_size,
        batch_delay_seconds=m.batch_delay_seconds,
    )


@lru_cache(maxsize=1)
def get_submit_use_case() -> SubmitBatchJobUseCase:
    return SubmitBatchJobUseCase(
        jobs=get_stores()[1], section_words=get_settings().scheduler.section_words
    )


@lru_cache(maxsize=1)
def get_progress_use_case() -> JobProgressUseCase:
    return JobProgressUseCase(jobs=get_stores()[1])


@lru_cache(maxsize=1)
def get_scheduler() -> BatchScheduler:
    s = get_settings().scheduler
    clock = SystemClock()
    transformer = SectionTransformer(
        oracle=get_oracle(),
        bank=get_stores()[0],
        policy=_section_policy(),
        parallelism=s.section_parallelism,
        politeness_seconds=s.politeness_seconds,
        call_timeout_seconds=_call_timeout(),
        sleep=clock.sleep,
    )
    return BatchScheduler(
        jobs=get_stores()[1],
        transformer=transformer,
        clock=clock,
        break_seconds=s.break_seconds,
        tick_seconds=s.tick_seconds,
    )


def clear_caches() -> None:
    """Drop every cached adapter and use case (settings included)."""
    get_settings.cache_clear()
    for getter in (
        get_oracle,
        get_stores,
        get_build_bank_use_case,
        get_import_bank_use_case,
        get_export_bank_use_case,
        get_match_use_case,
        get_rank_use_case,
        get_match_text_use_case,
        get_style_use_case,
        get_submit_use_case,
        get_progress_use_case,
        get_scheduler,
    ):
        getter.cache_clear()


__all__ = [
    "clear_caches",
    "get_oracle",
    "get_stores",
    "get_build_bank_use_case",
    "get_import_bank_use_case",
    "get_export_bank_use_case",
    "get_match_use_case",
    "get_rank_use_case",
    "get_match_text_use_case",
    "get_style_use_case",
    "get_submit_use_case",
    "get_progress_use_case",
    "get_scheduler",
]
