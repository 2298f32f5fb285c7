from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol, TypeVar

from skelmatch.exceptions import OracleTransientError, ValidationError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryPolicy(Protocol):
    name: str
    max_attempts: int

    def delay_for(self, attempt: int) -> float:  # pragma: no cover - interface
        """Seconds to wait after failed attempt number ``attempt`` (1-based)."""
        ...

    def should_retry(self, exc: BaseException) -> bool:  # pragma: no cover - interface
        ...


@dataclass(frozen=True)
class FixedDelayPolicy:
    """Same pause after every failed attempt. Used by the section pipeline."""

    max_attempts: int = 3
    delay_seconds: float = 5.0
    retry_on: tuple[type[BaseException], ...] = (OracleTransientError,)
    name: str = "fixed"

    def delay_for(self, attempt: int) -> float:
        return self.delay_seconds

    def should_retry(self, exc: BaseException) -> bool:
        return isinstance(exc, self.retry_on)


@dataclass(frozen=True)
class ExponentialBackoffPolicy:
    """base * 2**attempt, capped. Used by direct bank building."""

    max_attempts: int = 3
    base_seconds: float = 1.0
    max_delay_seconds: float = 60.0
    retry_on: tuple[type[BaseException], ...] = (OracleTransientError,)
    name: str = "exponential"

    def delay_for(self, attempt: int) -> float:
        return min(self.base_seconds * (2**attempt), self.max_delay_seconds)

    def should_retry(self, exc: BaseException) -> bool:
        return isinstance(exc, self.retry_on)


def build_retry_policy(
    name: str, *, max_attempts: int = 3, delay_seconds: float = 5.0
) -> RetryPolicy:
    """Build a named policy. For "exponential", ``delay_seconds`` is the base delay."""
    key = (name or "").strip().lower()
    if key == "fixed":
        return FixedDelayPolicy(max_attempts=max_attempts, delay_seconds=delay_seconds)
    if key == "exponential":
        return ExponentialBackoffPolicy(max_attempts=max_attempts, base_seconds=delay_seconds)
    raise ValidationError(f"Unknown retry policy {name!r} (allowed: fixed, exponential)")


def call_with_retry(
    fn: Callable[[], T],
    policy: RetryPolicy,
    sleep: Callable[[float], None],
    *,
    label: str = "call",
) -> T:
    """Run ``fn`` until it succeeds, the error is not retryable, or attempts run out.

    The last exception propagates unchanged.
    """
    attempts = max(1, int(policy.max_attempts))
    for attempt in range(1, attempts + 1):
        try:
            return fn()
        except Exception as e:
            if not policy.should_retry(e) or attempt >= attempts:
                raise
            delay = policy.delay_for(attempt)
            logger.info(
                "Retry %d/%d for %s in %.2fs: %s", attempt + 1, attempts, label, delay, e
            )
            sleep(delay)
    raise AssertionError("unreachable")  # pragma: no cover
