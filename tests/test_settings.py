from __future__ import annotations

import pytest
from pydantic import ValidationError as PydanticValidationError

from skelmatch.config import configure_app as cfg
from skelmatch.core.settings import (
    MatchingSettings,
    SchedulerSettings,
    StoreSettings,
    get_settings,
)
from skelmatch.domain.retry import ExponentialBackoffPolicy, FixedDelayPolicy


def test_defaults() -> None:
    s = SchedulerSettings()
    assert s.tick_seconds == 10.0
    assert s.break_seconds == 60.0
    assert s.max_retries == 3
    assert MatchingSettings().default_level == "Heavy"


def test_env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SKM_BREAK_SECONDS", "2.5")
    monkeypatch.setenv("SKM_TOP_N", "7")
    monkeypatch.setenv("SKM_ORACLE_PROVIDER", "  OpenAI ")
    get_settings.cache_clear()
    try:
        s = get_settings()
        assert s.scheduler.break_seconds == 2.5
        assert s.matching.top_n == 7
        assert s.oracle.provider == "openai"
    finally:
        get_settings.cache_clear()


@pytest.mark.parametrize("raw,expected", [("yes", True), ("0 ", False), ("ON", True), ("", False)])
def test_echo_sql_accepts_loose_booleans(
    monkeypatch: pytest.MonkeyPatch, raw: str, expected: bool
) -> None:
    monkeypatch.setenv("SKM_ECHO_SQL", raw)
    assert StoreSettings().echo_sql is expected


def test_non_positive_counts_are_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SKM_MAX_RETRIES", "0")
    with pytest.raises(PydanticValidationError):
        SchedulerSettings()


def test_unknown_retry_policy_name_is_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SKM_SECTION_RETRY_POLICY", "linear")
    with pytest.raises(PydanticValidationError):
        SchedulerSettings()


def test_retry_policies_and_call_timeout_are_wired_from_settings(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("SKM_DATABASE_URL", "sqlite://")
    monkeypatch.setenv("SKM_ORACLE_PROVIDER", "dummy")
    monkeypatch.setenv("SKM_SECTION_RETRY_POLICY", " Exponential ")
    monkeypatch.setenv("SKM_DIRECT_RETRY_POLICY", "fixed")
    monkeypatch.setenv("SKM_RETRY_DELAY_SECONDS", "2")
    monkeypatch.setenv("SKM_DIRECT_RETRY_DELAY_SECONDS", "0.5")
    monkeypatch.setenv("SKM_MAX_RETRIES", "4")
    monkeypatch.setenv("SKM_ORACLE_CALL_TIMEOUT_SECONDS", "12")
    cfg.clear_caches()
    try:
        section = cfg.get_scheduler().transformer
        assert section.policy == ExponentialBackoffPolicy(max_attempts=4, base_seconds=2.0)
        assert section.call_timeout_seconds == 12.0

        direct = cfg.get_match_use_case()
        assert direct.policy == FixedDelayPolicy(max_attempts=4, delay_seconds=0.5)
        assert direct.call_timeout_seconds == 12.0
        assert cfg.get_build_bank_use_case().policy == direct.policy
    finally:
        cfg.clear_caches()
