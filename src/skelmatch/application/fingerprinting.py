from __future__ import annotations

import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from typing import TypeVar

from skelmatch.application.ports.oracle_port import RewriteOraclePort
from skelmatch.domain.fingerprint import StructuralFingerprint, build_fingerprint
from skelmatch.domain.levels import TransformLevel
from skelmatch.domain.retry import RetryPolicy, call_with_retry
from skelmatch.exceptions import OracleFatalError, OracleTransientError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Hard ceiling on a single oracle call, enforced here whatever the adapter does
DEFAULT_CALL_TIMEOUT_SECONDS = 30.0


def call_with_timeout(fn: Callable[[], T], timeout_seconds: float | None) -> T:
    """Run ``fn`` on a worker thread and give up after ``timeout_seconds``.

    An expired call raises OracleTransientError so the retry policy treats it like any
    other transient failure. The abandoned worker is not joined; its late result is
    discarded. ``None`` or a non-positive timeout calls ``fn`` inline.
    """
    if timeout_seconds is None or timeout_seconds <= 0:
        return fn()
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="oracle-call")
    future = executor.submit(fn)
    try:
        return future.result(timeout=timeout_seconds)
    except FuturesTimeoutError as e:
        future.cancel()
        logger.warning("Oracle call exceeded %.1fs and was abandoned", timeout_seconds)
        raise OracleTransientError(f"Oracle call timed out after {timeout_seconds:g}s") from e
    finally:
        executor.shutdown(wait=False)


def request_skeleton(
    oracle: RewriteOraclePort,
    sentence: str,
    level: TransformLevel,
    policy: RetryPolicy,
    sleep: Callable[[float], None],
    *,
    timeout_seconds: float | None = DEFAULT_CALL_TIMEOUT_SECONDS,
) -> str:
    """Ask the oracle for a skeleton under ``policy``; blank answers are fatal."""

    def _call() -> str:
        out = call_with_timeout(lambda: oracle.rewrite(sentence, level), timeout_seconds)
        if not isinstance(out, str) or not out.strip():
            raise OracleFatalError("Oracle returned an empty response")
        return out.strip()

    return call_with_retry(_call, policy, sleep, label=f"rewrite[{sentence[:30]!r}]")


def fingerprint_sentence(
    oracle: RewriteOraclePort,
    sentence: str,
    level: TransformLevel,
    policy: RetryPolicy,
    sleep: Callable[[float], None],
    *,
    timeout_seconds: float | None = DEFAULT_CALL_TIMEOUT_SECONDS,
) -> StructuralFingerprint:
    skeleton = request_skeleton(
        oracle, sentence, level, policy, sleep, timeout_seconds=timeout_seconds
    )
    return build_fingerprint(sentence, skeleton)
