from __future__ import annotations

"""Composition helpers: build adapters and strategies from AppSettings.

Defaults to the offline DummyRewriteOracle so tests and demos work without credentials.
Setting SKM_ORACLE_PROVIDER=openai switches to the langchain-openai adapter.
"""

import logging  # noqa: E402

from skelmatch.application.ports.bank_store_port import SentenceBankStorePort  # noqa: E402
from skelmatch.application.ports.job_store_port import JobStorePort  # noqa: E402
from skelmatch.application.ports.oracle_port import RewriteOraclePort  # noqa: E402
from skelmatch.core.settings import AppSettings, MatchingSettings, OracleSettings  # noqa: E402
from skelmatch.domain.matching import Matcher, build_matcher  # noqa: E402
from skelmatch.domain.scoring import get_scorer  # noqa: E402
from skelmatch.exceptions import ConfigurationError  # noqa: E402
from skelmatch.infra.llm.providers import DummyRewriteOracle, OpenAIRewriteOracle  # noqa: E402
from skelmatch.infra.stores.sql import (  # noqa: E402
    SqlJobStore,
    SqlSentenceBankStore,
    build_engine,
    init_schema,
)

logger = logging.getLogger(__name__)


def build_oracle_from_settings(cfg: OracleSettings | None = None) -> RewriteOraclePort:
    cfg = cfg or OracleSettings()
    prov = (cfg.provider or "dummy").strip().lower()
    if prov in ("openai", "azure-openai"):
        if not cfg.api_key and not cfg.base_url:
            raise ConfigurationError(
                "SKM_ORACLE_PROVIDER=openai needs OPENAI_API_KEY or OPENAI_BASE_URL"
            )
        logger.info("Using OpenAI rewrite oracle (model=%s)", cfg.model)
        return OpenAIRewriteOracle(
            model=cfg.model,
            api_key=cfg.api_key,
            base_url=cfg.base_url,
            max_tokens=cfg.max_tokens,
            timeout_seconds=cfg.timeout_seconds,
        )
    if prov == "dummy":
        return DummyRewriteOracle()
    raise ConfigurationError(f"Unknown oracle provider {cfg.provider!r} (allowed: dummy, openai)")


def build_stores(app: AppSettings | None = None) -> tuple[SentenceBankStorePort, JobStorePort]:
    """SQL stores sharing one engine; the schema is created on first use."""
    app = app or AppSettings()
    engine = build_engine(app.store.database_url, echo=app.store.echo_sql)
    init_schema(engine)
    return SqlSentenceBankStore(engine), SqlJobStore(engine)


def build_single_matcher(cfg: MatchingSettings | None = None) -> Matcher:
    cfg = cfg or MatchingSettings()
    return build_matcher(
        cfg.match_strategy,
        scorer=get_scorer(cfg.scorer),
        top_n=cfg.top_n,
        length_tolerance=cfg.length_tolerance,
    )


def build_ranking_matcher(cfg: MatchingSettings | None = None, top_n: int | None = None) -> Matcher:
    cfg = cfg or MatchingSettings()
    return build_matcher(
        cfg.rank_strategy,
        scorer=get_scorer(cfg.scorer),
        top_n=top_n if top_n is not None else cfg.top_n,
        length_tolerance=cfg.length_tolerance,
    )


__all__ = [
    "build_oracle_from_settings",
    "build_stores",
    "build_single_matcher",
    "build_ranking_matcher",
]
