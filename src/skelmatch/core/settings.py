from __future__ import annotations

from functools import lru_cache

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

RETRY_POLICIES = ("fixed", "exponential")

_ENV = SettingsConfigDict(
    env_file=".env",
    env_file_encoding="utf-8",
    extra="ignore",
    populate_by_name=True,
)


class SchedulerSettings(BaseSettings):
    model_config = _ENV

    # Polling interval of the background worker
    tick_seconds: float = Field(10.0, alias="SKM_TICK_SECONDS")
    # Pause between two sections of the same job (throttles oracle usage)
    break_seconds: float = Field(60.0, alias="SKM_BREAK_SECONDS")
    max_retries: int = Field(3, alias="SKM_MAX_RETRIES")
    # Named retry policies: "fixed" | "exponential"
    section_retry_policy: str = Field("fixed", alias="SKM_SECTION_RETRY_POLICY")
    direct_retry_policy: str = Field("exponential", alias="SKM_DIRECT_RETRY_POLICY")
    retry_delay_seconds: float = Field(5.0, alias="SKM_RETRY_DELAY_SECONDS")
    # Base delay of the direct (non-batch) flows; doubles per attempt when exponential
    direct_retry_delay_seconds: float = Field(1.0, alias="SKM_DIRECT_RETRY_DELAY_SECONDS")
    politeness_seconds: float = Field(0.5, alias="SKM_POLITENESS_SECONDS")
    # Sentences dispatched to the oracle at once inside a section
    section_parallelism: int = Field(1, alias="SKM_SECTION_PARALLELISM")
    section_words: int = Field(1000, alias="SKM_SECTION_WORDS")

    @field_validator("max_retries", "section_parallelism", "section_words")
    @classmethod
    def _positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be >= 1")
        return v

    @field_validator("section_retry_policy", "direct_retry_policy", mode="before")
    @classmethod
    def _policy_name(cls, v):  # type: ignore[no-untyped-def]
        if isinstance(v, str):
            v = v.strip().lower()
            if v not in RETRY_POLICIES:
                allowed = ", ".join(RETRY_POLICIES)
                raise ValueError(f"unknown retry policy {v!r} (allowed: {allowed})")
        return v


class MatchingSettings(BaseSettings):
    model_config = _ENV

    match_strategy: str = Field("cascading-filter", alias="SKM_MATCH_STRATEGY")
    rank_strategy: str = Field("weighted-top-n", alias="SKM_RANK_STRATEGY")
    scorer: str = Field("coarse-skeleton", alias="SKM_SCORER")
    top_n: int = Field(3, alias="SKM_TOP_N")
    length_tolerance: float = Field(0.1, alias="SKM_LENGTH_TOLERANCE")
    # Sentences fingerprinted concurrently by the direct (non-batch) flows
    batch_size: int = Field(5, alias="SKM_MATCH_BATCH_SIZE")
    batch_delay_seconds: float = Field(0.5, alias="SKM_MATCH_BATCH_DELAY_SECONDS")
    default_level: str = Field("Heavy", alias="SKM_DEFAULT_LEVEL")


class OracleSettings(BaseSettings):
    model_config = _ENV

    # "dummy" (offline placeholder skeletons) | "openai"
    provider: str = Field("dummy", alias="SKM_ORACLE_PROVIDER")
    model: str = Field("gpt-4o-mini", alias="OPENAI_MODEL")
    api_key: str | None = Field(None, alias="OPENAI_API_KEY")
    base_url: str | None = Field(None, alias="OPENAI_BASE_URL")
    timeout_seconds: float = Field(25.0, alias="SKM_ORACLE_TIMEOUT_SECONDS")
    # Caller-side ceiling per oracle call; expiry counts as a transient failure
    call_timeout_seconds: float = Field(30.0, alias="SKM_ORACLE_CALL_TIMEOUT_SECONDS")
    max_tokens: int = Field(2048, alias="SKM_ORACLE_MAX_TOKENS")

    @field_validator("provider", mode="before")
    @classmethod
    def _norm_provider(cls, v):  # type: ignore[no-untyped-def]
        if isinstance(v, str):
            return v.strip().lower()
        return v


class StoreSettings(BaseSettings):
    model_config = _ENV

    database_url: str = Field("sqlite:///skelmatch.db", alias="SKM_DATABASE_URL")
    echo_sql: bool = Field(False, alias="SKM_ECHO_SQL")

    # Accept tolerant boolean env values (e.g., "yes", "0 ")
    @field_validator("echo_sql", mode="before")
    @classmethod
    def _coerce_bool(cls, v):  # type: ignore[no-untyped-def]
        if isinstance(v, str):
            s = v.strip().lower()
            if s in ("1", "true", "yes", "on"):
                return True
            if s in ("0", "false", "no", "off", ""):
                return False
        return v


class AppSettings(BaseModel):
    scheduler: SchedulerSettings = Field(default_factory=SchedulerSettings)
    matching: MatchingSettings = Field(default_factory=MatchingSettings)
    oracle: OracleSettings = Field(default_factory=OracleSettings)
    store: StoreSettings = Field(default_factory=StoreSettings)


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    return AppSettings()
